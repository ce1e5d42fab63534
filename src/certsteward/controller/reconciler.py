"""
Reconcile loop for one certificate.

Every pass is level-triggered: the spec, the stored bundle and the status
are re-read, the certificate is classified, and at most one issuance is
attempted. The outcome is written back as conditions plus a backoff state,
and the caller gets the delay until the next pass.

Writes to the secret store are optimistic: ``put`` carries the version read
at the start of the pass, so concurrent reconciles of the same identity can
never both win.
"""

import asyncio
from collections.abc import Awaitable, Callable
from copy import deepcopy
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import TypeVar

from loguru import logger

from certsteward.controller.status import mark_failed, mark_issuing, mark_ready
from certsteward.core.reconcile_context import reconcile_key_context
from certsteward.domain.backoff import BackoffPolicy
from certsteward.domain.duration import DurationPolicy, EffectiveDurations
from certsteward.domain.errors import (
    CertificateControllerError,
    IssuerNotReady,
    SignPending,
    SignTransient,
    StoreConflict,
)
from certsteward.domain.fingerprint import spec_fingerprint
from certsteward.domain.models import (
    Certificate,
    CertificateBundle,
    CertificateKey,
    CertificateStatus,
    ConditionStatus,
    ConditionType,
    StoredBundle,
)
from certsteward.domain.state import (
    CertificateState,
    Classification,
    Reason,
    classify,
    next_wake_up,
    renewal_time,
)
from certsteward.infrastructure.repositories import (
    CertificateRepository,
    SecretStore,
    StatusRepository,
)
from certsteward.issuers.base import SigningRequest
from certsteward.issuers.registry import IssuerRegistry

T = TypeVar("T")

ISSUED_MESSAGE = "Certificate is up to date and has not expired"


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of one reconcile pass.

    Attributes:
        next_wake_up: Delay until the next pass, None to wait for a spec change
        state: State the certificate was left in (None when it is gone)
        reason: Reason code of the outcome
    """

    next_wake_up: timedelta | None
    state: CertificateState | None
    reason: str


class Reconciler:
    """
    Drives one certificate at a time towards its declared spec.

    Args:
        certificates: Declared certificates (desired state)
        secrets: Store of issued bundles
        statuses: Status surface
        issuers: Resolves issuer references to backends
        duration_policy: Duration defaulting and validation
        backoff_policy: Retry intervals per failure reason
        backend_timeout: Deadline of each backend call
        max_conflict_retries: Immediate re-read attempts after a store conflict
        clock: Source of the current time
    """

    def __init__(
        self,
        certificates: CertificateRepository,
        secrets: SecretStore,
        statuses: StatusRepository,
        issuers: IssuerRegistry,
        duration_policy: DurationPolicy | None = None,
        backoff_policy: BackoffPolicy | None = None,
        backend_timeout: timedelta = timedelta(seconds=30),
        max_conflict_retries: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.certificates = certificates
        self.secrets = secrets
        self.statuses = statuses
        self.issuers = issuers
        self.duration_policy = duration_policy or DurationPolicy()
        self.backoff_policy = backoff_policy or BackoffPolicy()
        self.backend_timeout = backend_timeout
        self.max_conflict_retries = max_conflict_retries
        self.clock = clock

    async def reconcile(
        self, key: CertificateKey, force: bool = False
    ) -> ReconcileResult:
        """
        Run one reconcile pass.

        Never raises: every failure is recorded on the status and turned into
        a retry delay.

        Args:
            key: Certificate to reconcile
            force: Ignore an active backoff window

        Returns:
            ReconcileResult with the delay until the next pass
        """
        token = reconcile_key_context.set(str(key))
        try:
            return await self._reconcile(key, force)
        except Exception as e:
            logger.exception(f"Unexpected error while reconciling {key}: {e}")
            return await self._record_internal_error(key, e)
        finally:
            reconcile_key_context.reset(token)

    async def _reconcile(self, key: CertificateKey, force: bool) -> ReconcileResult:
        certificate = await self.certificates.get_certificate(key)
        if certificate is None:
            logger.debug(f"Certificate {key} not found, assuming it was deleted")
            return ReconcileResult(None, None, "NotFound")

        now = self.clock()
        status = await self.statuses.get_status(key) or CertificateStatus()
        previous = deepcopy(status)
        fingerprint = spec_fingerprint(certificate)

        try:
            durations = self.duration_policy.effective(
                certificate.duration, certificate.renew_before
            )
        except CertificateControllerError as e:
            return await self._record_failure(
                certificate, fingerprint, status, previous, e, now
            )

        signed: CertificateBundle | None = None
        conflicts = 0
        while True:
            try:
                stored = await self.secrets.get(certificate.secret_key)
            except CertificateControllerError as e:
                return await self._record_failure(
                    certificate, fingerprint, status, previous, e, now
                )

            classification = classify(
                certificate, stored, fingerprint, durations.renew_before, now
            )
            if not classification.requires_issuance:
                return await self._record_ready(
                    certificate,
                    fingerprint,
                    status,
                    previous,
                    stored,
                    classification,
                    now,
                )

            if conflicts == 0 and not force:
                waiting = self._active_backoff(status, fingerprint, now)
                if waiting is not None:
                    return waiting

            keep_ready = classification.reason == Reason.RENEWING
            logger.info(
                f"Issuing {key}: {classification.reason} ({classification.message})"
            )

            try:
                if signed is None:
                    signed = await self._issue(certificate, fingerprint, durations)

                current = await self.certificates.get_certificate(key)
                if current is None:
                    logger.info(f"Certificate {key} was deleted during issuance")
                    return ReconcileResult(None, None, "NotFound")
                if spec_fingerprint(current) != fingerprint:
                    logger.info(
                        f"Spec of {key} changed during issuance, discarding result"
                    )
                    return ReconcileResult(
                        timedelta(0),
                        CertificateState.ISSUING,
                        Reason.INCORRECT_FINGERPRINT,
                    )

                version = await self.secrets.put(
                    certificate.secret_key,
                    signed,
                    stored.version if stored else None,
                )
            except StoreConflict as e:
                conflicts += 1
                if conflicts > self.max_conflict_retries:
                    return await self._record_failure(
                        certificate, fingerprint, status, previous, e, now, keep_ready
                    )
                logger.info(
                    f"Store conflict on {key} (attempt {conflicts}), re-reading"
                )
                continue
            except CertificateControllerError as e:
                return await self._record_failure(
                    certificate, fingerprint, status, previous, e, now, keep_ready
                )

            stored = StoredBundle(bundle=signed, version=version)
            logger.info(
                f"Issued {key} valid until {signed.not_after.isoformat()} "
                f"(version {version})"
            )
            return await self._record_issued(
                certificate, fingerprint, durations, status, previous, stored, now
            )

    def _active_backoff(
        self, status: CertificateStatus, fingerprint: str, now: datetime
    ) -> ReconcileResult | None:
        """Return a wait result while a backoff window for this spec is open."""
        backoff = status.backoff
        if backoff.reason is None or backoff.fingerprint != fingerprint:
            return None
        if not self.backoff_policy.is_retryable_on_timer(backoff.reason):
            return None

        retry_at = backoff.retry_at()
        if retry_at is None or now >= retry_at:
            return None

        failed = status.get_condition(ConditionType.FAILED)
        state = (
            CertificateState.FAILED
            if failed is not None and failed.status == ConditionStatus.TRUE
            else CertificateState.ISSUING
        )
        logger.debug(f"Backing off until {retry_at.isoformat()} ({backoff.reason})")
        return ReconcileResult(retry_at - now, state, backoff.reason)

    async def _call_backend(self, call: Awaitable[T], operation: str) -> T:
        try:
            return await asyncio.wait_for(
                call, timeout=self.backend_timeout.total_seconds()
            )
        except TimeoutError as e:
            raise SignTransient(
                f"Issuer {operation} timed out after {self.backend_timeout}"
            ) from e

    async def _issue(
        self,
        certificate: Certificate,
        fingerprint: str,
        durations: EffectiveDurations,
    ) -> CertificateBundle:
        backend = self.issuers.resolve(
            certificate.issuer_ref, certificate.key.namespace
        )

        if not await self._call_backend(backend.is_ready(), "readiness check"):
            raise IssuerNotReady(f"Issuer {certificate.issuer_ref} is not ready")

        request = SigningRequest.for_certificate(
            certificate, durations.duration, fingerprint
        )
        bundle = await self._call_backend(backend.sign(request), "signing")
        return replace(
            bundle, spec_fingerprint=fingerprint, generation=certificate.generation
        )

    async def _save_status(
        self,
        key: CertificateKey,
        previous: CertificateStatus,
        status: CertificateStatus,
    ) -> None:
        if status == previous:
            logger.debug(f"Status of {key} unchanged, skipping write")
            return
        await self.statuses.save_status(key, status)

    @staticmethod
    def _observe(
        status: CertificateStatus, certificate: Certificate, fingerprint: str
    ) -> None:
        status.observed_generation = certificate.generation
        status.observed_fingerprint = fingerprint

    async def _record_ready(
        self,
        certificate: Certificate,
        fingerprint: str,
        status: CertificateStatus,
        previous: CertificateStatus,
        stored: StoredBundle,
        classification: Classification,
        now: datetime,
    ) -> ReconcileResult:
        wake_up = next_wake_up(CertificateState.READY, now, classification.renewal_time)

        if classification.reason == Reason.STALE:
            logger.debug(f"{certificate.key}: {classification.message}")
            # The newer generation owns renewal; only poll until it is observed
            if wake_up is not None:
                wake_up = max(wake_up, self.backoff_policy.base)
            return ReconcileResult(
                wake_up, CertificateState.READY, classification.reason
            )

        mark_ready(status, classification.reason, classification.message, now)
        self._observe(status, certificate, fingerprint)
        status.not_before = stored.bundle.not_before
        status.not_after = stored.bundle.not_after
        status.renewal_time = classification.renewal_time
        status.next_reconcile_time = classification.renewal_time
        status.backoff = self.backoff_policy.reset()

        await self._save_status(certificate.key, previous, status)
        return ReconcileResult(wake_up, CertificateState.READY, classification.reason)

    async def _record_issued(
        self,
        certificate: Certificate,
        fingerprint: str,
        durations: EffectiveDurations,
        status: CertificateStatus,
        previous: CertificateStatus,
        stored: StoredBundle,
        now: datetime,
    ) -> ReconcileResult:
        bundle = stored.bundle
        renewal_at = renewal_time(
            bundle.not_after, durations.renew_before, bundle.not_before
        )
        lifetime = bundle.not_after - bundle.not_before
        if lifetime <= durations.renew_before:
            logger.warning(
                f"Issuer shortened {certificate.key} to {lifetime}, "
                f"renewing at {renewal_at.isoformat()}"
            )

        mark_ready(status, Reason.VALID, ISSUED_MESSAGE, now)
        self._observe(status, certificate, fingerprint)
        status.not_before = stored.bundle.not_before
        status.not_after = stored.bundle.not_after
        status.renewal_time = renewal_at
        status.next_reconcile_time = renewal_at
        status.backoff = self.backoff_policy.reset()
        await self._save_status(certificate.key, previous, status)

        wake_up = next_wake_up(CertificateState.READY, now, renewal_at)
        if not wake_up:
            # Backdated bundle
            logger.warning(
                f"Issued {certificate.key} is already inside its renewal window"
            )
            wake_up = self.backoff_policy.base
        return ReconcileResult(wake_up, CertificateState.READY, Reason.VALID)

    async def _record_failure(
        self,
        certificate: Certificate,
        fingerprint: str,
        status: CertificateStatus,
        previous: CertificateStatus,
        error: CertificateControllerError,
        now: datetime,
        keep_ready: bool = False,
    ) -> ReconcileResult:
        reason = error.reason
        message = error.message or reason

        # A failure only a spec change can clear is recorded once
        repeated = (
            not self.backoff_policy.is_retryable_on_timer(reason)
            and status.backoff.reason == reason
            and status.backoff.fingerprint == fingerprint
        )
        if not repeated:
            status.backoff = self.backoff_policy.record_failure(
                status.backoff, reason, now, fingerprint
            )
        self._observe(status, certificate, fingerprint)

        if isinstance(error, SignPending):
            mark_issuing(status, reason, message, now, keep_ready=keep_ready)
            state = CertificateState.ISSUING
            logger.info(f"Issuance of {certificate.key} pending: {message}")
        else:
            mark_failed(status, reason, message, now, keep_ready=keep_ready)
            if not repeated:
                status.last_failure_time = now
            state = CertificateState.FAILED
            logger.warning(
                f"Issuance of {certificate.key} failed ({reason}): {message}"
            )

        wake_up: timedelta | None = status.backoff.interval
        if not self.backoff_policy.is_retryable_on_timer(reason):
            wake_up = None
        status.next_reconcile_time = now + wake_up if wake_up is not None else None

        await self._save_status(certificate.key, previous, status)
        return ReconcileResult(wake_up, state, reason)

    async def _record_internal_error(
        self, key: CertificateKey, error: Exception
    ) -> ReconcileResult:
        internal = CertificateControllerError(f"{type(error).__name__}: {error}")
        try:
            certificate = await self.certificates.get_certificate(key)
            if certificate is None:
                return ReconcileResult(None, None, internal.reason)

            status = await self.statuses.get_status(key) or CertificateStatus()
            return await self._record_failure(
                certificate,
                spec_fingerprint(certificate),
                status,
                deepcopy(status),
                internal,
                self.clock(),
                keep_ready=status.is_ready(),
            )
        except Exception as e:
            logger.error(f"Could not record failure of {key}: {e}")
            return ReconcileResult(
                self.backoff_policy.base, CertificateState.FAILED, internal.reason
            )
