"""
Certificate state machine.

Classifies a declared certificate against the bundle currently held in the
secret store and computes when the next reconcile must happen.

    NoBundle --(issue)--> Issuing --(signed + persisted)--> Ready
                              |                               |
                              +--(error)--> Failed            +--(renewal window
                                   |                              or drift)--> Issuing
                                   +--(backoff elapsed)--> Issuing
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from certsteward.domain.models import BackoffState, Certificate, StoredBundle


class CertificateState(str, Enum):
    NO_BUNDLE = "NoBundle"
    ISSUING = "Issuing"
    READY = "Ready"
    FAILED = "Failed"


class Reason:
    """Reason codes produced by classification."""

    DOES_NOT_EXIST = "DoesNotExist"
    INCORRECT_FINGERPRINT = "IncorrectFingerprint"
    EXPIRED = "Expired"
    RENEWING = "Renewing"
    STALE = "StaleSpec"
    VALID = "Valid"


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one certificate.

    Attributes:
        state: Classified state
        reason: Machine-readable reason code
        message: Human-readable explanation
        renewal_time: Start of the renewal window of the current bundle
    """

    state: CertificateState
    reason: str
    message: str
    renewal_time: datetime | None = None

    @property
    def requires_issuance(self) -> bool:
        return self.state in (CertificateState.NO_BUNDLE, CertificateState.ISSUING)


def renewal_time(
    not_after: datetime,
    renew_before: timedelta,
    not_before: datetime | None = None,
) -> datetime:
    """
    Start of the renewal window ``[notAfter - renewBefore, notAfter]``.

    When the issued lifetime is not longer than renewBefore (the issuer
    shortened the validity), the window opens after 2/3 of the lifetime
    instead.

    Args:
        not_after: End of validity of the issued certificate
        renew_before: Effective renewBefore
        not_before: Start of validity, if known
    """
    if not_before is not None:
        lifetime = not_after - not_before
        if renew_before >= lifetime:
            return not_before + lifetime * 2 / 3
    return not_after - renew_before


def is_due_for_renewal(
    not_after: datetime,
    renew_before: timedelta,
    now: datetime,
    not_before: datetime | None = None,
) -> bool:
    return now >= renewal_time(not_after, renew_before, not_before)


def classify(
    certificate: Certificate,
    stored: StoredBundle | None,
    fingerprint: str,
    renew_before: timedelta,
    now: datetime,
) -> Classification:
    """
    Classify the current state of a certificate.

    Args:
        certificate: Current declared spec
        stored: Bundle read from the secret store, if any
        fingerprint: Fingerprint of ``certificate``
        renew_before: Effective renewBefore
        now: Reference time

    Returns:
        Classification describing the required action
    """
    if stored is None:
        return Classification(
            state=CertificateState.NO_BUNDLE,
            reason=Reason.DOES_NOT_EXIST,
            message=f"Secret {certificate.secret_name!r} does not exist",
        )

    bundle = stored.bundle
    window_start = renewal_time(bundle.not_after, renew_before, bundle.not_before)

    if bundle.spec_fingerprint != fingerprint:
        if bundle.generation > certificate.generation:
            # The store already holds the result of a newer spec than the one
            # observed; the newer spec's reconcile will follow.
            return Classification(
                state=CertificateState.READY,
                reason=Reason.STALE,
                message=(
                    f"Observed generation {certificate.generation} is older than "
                    f"the issued generation {bundle.generation}"
                ),
                renewal_time=window_start,
            )
        return Classification(
            state=CertificateState.ISSUING,
            reason=Reason.INCORRECT_FINGERPRINT,
            message="Issued certificate does not match the current spec",
        )

    if now >= bundle.not_after:
        return Classification(
            state=CertificateState.ISSUING,
            reason=Reason.EXPIRED,
            message=f"Certificate expired at {bundle.not_after.isoformat()}",
            renewal_time=window_start,
        )

    if now >= window_start:
        return Classification(
            state=CertificateState.ISSUING,
            reason=Reason.RENEWING,
            message=(
                f"Renewing certificate as renewal was scheduled at "
                f"{window_start.isoformat()}"
            ),
            renewal_time=window_start,
        )

    return Classification(
        state=CertificateState.READY,
        reason=Reason.VALID,
        message="Certificate is up to date and has not expired",
        renewal_time=window_start,
    )


def next_wake_up(
    state: CertificateState,
    now: datetime,
    renewal_at: datetime | None = None,
    backoff: BackoffState | None = None,
) -> timedelta | None:
    """
    Delay until the next reconcile of a certificate.

    Ready certificates wake up at the start of their renewal window,
    Issuing/Failed ones after the current backoff interval.

    Returns:
        Delay (never negative), or None when no timer is needed
    """
    if state == CertificateState.READY:
        if renewal_at is None:
            return None
        return max(renewal_at - now, timedelta(0))

    if backoff is None:
        return timedelta(0)
    return backoff.interval
