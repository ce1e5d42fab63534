"""
Per-identity retry policy.

Backoff state lives in each certificate's status, so every identity backs
off independently and a spec change resets it.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from certsteward.domain.errors import (
    InvalidDurationConfig,
    IssuerNotFound,
    IssuerNotReady,
    SignDenied,
    SignPending,
)
from certsteward.domain.models import BackoffState

if TYPE_CHECKING:
    from certsteward.config import Settings

_ISSUER_NOT_READY_REASONS = {IssuerNotReady.reason, IssuerNotFound.reason}


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Retry intervals per failure reason.

    Attributes:
        base: First interval of the exponential schedule
        cap: Upper bound for every interval
        pending_interval: Fixed interval while signing is pending
        denied_interval: Fixed interval after a denial
        issuer_not_ready_interval: First interval while the issuer is not ready
    """

    base: timedelta = timedelta(seconds=5)
    cap: timedelta = timedelta(minutes=10)
    pending_interval: timedelta = timedelta(seconds=10)
    denied_interval: timedelta = timedelta(hours=1)
    issuer_not_ready_interval: timedelta = timedelta(seconds=30)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BackoffPolicy":
        return cls(
            base=timedelta(seconds=settings.backoff_base_seconds),
            cap=timedelta(seconds=settings.backoff_cap_seconds),
            pending_interval=timedelta(seconds=settings.pending_interval_seconds),
            denied_interval=timedelta(seconds=settings.denied_interval_seconds),
            issuer_not_ready_interval=timedelta(
                seconds=settings.issuer_not_ready_interval_seconds
            ),
        )

    def _exponential(self, first: timedelta, failures: int) -> timedelta:
        exponent = max(failures - 1, 0)
        # Stop doubling once past the cap; avoids overflowing timedelta
        if first * (2 ** min(exponent, 32)) >= self.cap:
            return self.cap
        return first * (2**exponent)

    def interval_for(self, reason: str, failures: int) -> timedelta:
        """
        Interval to wait after a failure.

        Args:
            reason: Error reason code
            failures: Consecutive failure count including this one

        Returns:
            Delay before the next attempt
        """
        if reason == SignPending.reason:
            return self.pending_interval
        if reason == SignDenied.reason:
            return self.denied_interval
        if reason in _ISSUER_NOT_READY_REASONS:
            return self._exponential(self.issuer_not_ready_interval, failures)
        return self._exponential(self.base, failures)

    def record_failure(
        self,
        state: BackoffState,
        reason: str,
        now: datetime,
        fingerprint: str | None,
    ) -> BackoffState:
        """
        Advance the backoff state after a failed attempt.

        Pending results keep the failure count. A failure recorded against a
        different fingerprint starts a fresh schedule.

        Returns:
            New BackoffState (the input is not modified)
        """
        failures = state.failures if state.fingerprint == fingerprint else 0
        if reason != SignPending.reason:
            failures += 1

        return BackoffState(
            failures=failures,
            reason=reason,
            interval=self.interval_for(reason, max(failures, 1)),
            last_attempt=now,
            fingerprint=fingerprint,
        )

    @staticmethod
    def is_retryable_on_timer(reason: str) -> bool:
        """Invalid configuration is only re-evaluated on a spec change."""
        return reason != InvalidDurationConfig.reason

    @staticmethod
    def reset() -> BackoffState:
        return BackoffState()
