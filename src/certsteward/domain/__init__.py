"""
Domain layer: data model, duration policy, state machine, retry policy.

Everything in this package is pure and free of I/O.
"""

from certsteward.domain.backoff import BackoffPolicy
from certsteward.domain.duration import DurationPolicy, EffectiveDurations
from certsteward.domain.fingerprint import spec_fingerprint
from certsteward.domain.models import (
    BackoffState,
    Certificate,
    CertificateBundle,
    CertificateKey,
    CertificateStatus,
    Condition,
    ConditionStatus,
    ConditionType,
    IssuerKind,
    IssuerRef,
    KeyAlgorithm,
    StoredBundle,
)
from certsteward.domain.state import CertificateState, Classification, classify

__all__ = [
    "BackoffPolicy",
    "BackoffState",
    "Certificate",
    "CertificateBundle",
    "CertificateKey",
    "CertificateState",
    "CertificateStatus",
    "Classification",
    "Condition",
    "ConditionStatus",
    "ConditionType",
    "DurationPolicy",
    "EffectiveDurations",
    "IssuerKind",
    "IssuerRef",
    "KeyAlgorithm",
    "StoredBundle",
    "classify",
    "spec_fingerprint",
]
