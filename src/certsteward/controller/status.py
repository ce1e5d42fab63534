"""
Condition bookkeeping on the certificate status.

``last_transition_time`` only moves when a condition's status flips, so
re-applying the same outcome leaves the status unchanged and the
reconciler can skip the write.
"""

from datetime import datetime

from certsteward.domain.models import (
    CertificateStatus,
    Condition,
    ConditionStatus,
    ConditionType,
)


def set_condition(
    status: CertificateStatus,
    condition_type: ConditionType,
    condition_status: ConditionStatus,
    reason: str,
    message: str,
    now: datetime,
) -> None:
    """
    Add or replace one condition in place.

    Args:
        status: Status to update
        condition_type: Condition to set
        condition_status: New status value
        reason: Machine-readable reason code
        message: Human-readable message
        now: Transition time used when the status value changes
    """
    existing = status.get_condition(condition_type)
    transition_time = now
    if existing is not None and existing.status == condition_status:
        transition_time = existing.last_transition_time

    condition = Condition(
        type=condition_type,
        status=condition_status,
        reason=reason,
        message=message,
        last_transition_time=transition_time,
    )
    status.conditions = [c for c in status.conditions if c.type != condition_type]
    status.conditions.append(condition)
    status.conditions.sort(key=lambda c: list(ConditionType).index(c.type))


def remove_condition(status: CertificateStatus, condition_type: ConditionType) -> None:
    status.conditions = [c for c in status.conditions if c.type != condition_type]


def mark_ready(
    status: CertificateStatus, reason: str, message: str, now: datetime
) -> None:
    """The current bundle matches the spec and is within its validity window."""
    set_condition(
        status, ConditionType.READY, ConditionStatus.TRUE, reason, message, now
    )
    remove_condition(status, ConditionType.ISSUING)
    remove_condition(status, ConditionType.FAILED)


def mark_issuing(
    status: CertificateStatus,
    reason: str,
    message: str,
    now: datetime,
    keep_ready: bool = False,
) -> None:
    """
    Issuance is in progress.

    Args:
        keep_ready: Leave Ready untouched; the held bundle is still usable
    """
    if not keep_ready:
        set_condition(
            status, ConditionType.READY, ConditionStatus.FALSE, reason, message, now
        )
    set_condition(
        status, ConditionType.ISSUING, ConditionStatus.TRUE, reason, message, now
    )
    remove_condition(status, ConditionType.FAILED)


def mark_failed(
    status: CertificateStatus,
    reason: str,
    message: str,
    now: datetime,
    keep_ready: bool = False,
) -> None:
    """
    The last issuance attempt failed.

    Args:
        keep_ready: Leave Ready untouched; the held bundle is still usable
    """
    if not keep_ready:
        set_condition(
            status, ConditionType.READY, ConditionStatus.FALSE, reason, message, now
        )
    set_condition(
        status, ConditionType.ISSUING, ConditionStatus.FALSE, reason, message, now
    )
    set_condition(
        status, ConditionType.FAILED, ConditionStatus.TRUE, reason, message, now
    )
