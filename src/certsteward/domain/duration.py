"""
Duration policy for issued certificates.

Computes the effective validity duration and renewal offset from the values
declared on a certificate and the configured defaults. Pure functions only,
no I/O.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from certsteward.domain.errors import InvalidDurationConfig

if TYPE_CHECKING:
    from certsteward.config import Settings

DEFAULT_DURATION = timedelta(days=90)
MINIMUM_DURATION = timedelta(hours=1)
MINIMUM_RENEW_BEFORE = timedelta(minutes=30)
MINIMUM_MARGIN = timedelta(minutes=5)
RENEW_BEFORE_DIVISOR = 3

# Keeps a defaulted renewBefore strictly below the margin boundary
_CAP_RESOLUTION = timedelta(seconds=1)


@dataclass(frozen=True)
class EffectiveDurations:
    """Duration and renewBefore after defaulting and validation."""

    duration: timedelta
    renew_before: timedelta


@dataclass(frozen=True)
class DurationPolicy:
    """
    Defaulting and validation rules for certificate durations.

    Attributes:
        default_duration: Duration used when none is requested
        minimum_duration: Shortest accepted duration
        minimum_renew_before: Floor for the defaulted renewBefore
        minimum_margin: Required gap between renewBefore and duration
        renew_before_divisor: Default renewBefore is duration / divisor
    """

    default_duration: timedelta = DEFAULT_DURATION
    minimum_duration: timedelta = MINIMUM_DURATION
    minimum_renew_before: timedelta = MINIMUM_RENEW_BEFORE
    minimum_margin: timedelta = MINIMUM_MARGIN
    renew_before_divisor: int = RENEW_BEFORE_DIVISOR

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DurationPolicy":
        """Build the policy from controller settings."""
        return cls(
            default_duration=settings.get_default_duration(),
            minimum_duration=timedelta(hours=settings.minimum_duration_hours),
            minimum_renew_before=timedelta(
                minutes=settings.minimum_renew_before_minutes
            ),
            minimum_margin=timedelta(minutes=settings.minimum_margin_minutes),
            renew_before_divisor=settings.renew_before_divisor,
        )

    def default_renew_before(self, duration: timedelta) -> timedelta:
        """
        Compute renewBefore for a certificate that does not declare one.

        Args:
            duration: Effective certificate duration

        Returns:
            duration / divisor, floored at the minimum and capped below
            ``duration - minimum_margin``
        """
        renew_before = max(
            duration / self.renew_before_divisor, self.minimum_renew_before
        )
        cap = duration - self.minimum_margin - _CAP_RESOLUTION
        return min(renew_before, cap)

    def effective(
        self,
        duration: timedelta | None = None,
        renew_before: timedelta | None = None,
    ) -> EffectiveDurations:
        """
        Resolve the effective duration and renewBefore.

        Args:
            duration: Requested duration (None or zero means unset)
            renew_before: Requested renewBefore (None or zero means unset)

        Returns:
            EffectiveDurations with both values resolved

        Raises:
            InvalidDurationConfig: If the resulting pair cannot be honored
        """
        if duration is not None and duration < timedelta(0):
            raise InvalidDurationConfig(
                f"duration must not be negative, got {duration}"
            )
        if renew_before is not None and renew_before < timedelta(0):
            raise InvalidDurationConfig(
                f"renewBefore must not be negative, got {renew_before}"
            )

        effective_duration = duration if duration else self.default_duration
        if effective_duration < self.minimum_duration:
            raise InvalidDurationConfig(
                f"certificate duration {effective_duration} is less than "
                f"the minimum value of {self.minimum_duration}"
            )

        if renew_before:
            effective_renew_before = renew_before
        else:
            effective_renew_before = self.default_renew_before(effective_duration)

        if effective_renew_before >= effective_duration - self.minimum_margin:
            raise InvalidDurationConfig(
                f"certificate duration {effective_duration} must be greater than "
                f"renewBefore {effective_renew_before} plus a margin of "
                f"{self.minimum_margin}"
            )
        if effective_renew_before <= timedelta(0):
            raise InvalidDurationConfig(
                f"renewBefore {effective_renew_before} must be positive"
            )

        return EffectiveDurations(
            duration=effective_duration, renew_before=effective_renew_before
        )
