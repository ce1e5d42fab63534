"""
JSON-compatible conversion of domain objects.

Used by the file-based and DynamoDB implementations. Datetimes are stored
as ISO 8601 strings, durations as seconds.
"""

from datetime import datetime, timedelta
from typing import Any

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
)


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _seconds(value: timedelta | None) -> float | None:
    return value.total_seconds() if value is not None else None


def _parse_seconds(value: float | None) -> timedelta | None:
    return timedelta(seconds=value) if value is not None else None


def bundle_to_dict(bundle: CertificateBundle) -> dict[str, Any]:
    """Convert CertificateBundle to JSON-serializable dict."""
    return {
        "private_key_pem": bundle.private_key_pem,
        "certificate_pem": bundle.certificate_pem,
        "ca_pem": bundle.ca_pem,
        "not_before": _dt(bundle.not_before),
        "not_after": _dt(bundle.not_after),
        "spec_fingerprint": bundle.spec_fingerprint,
        "generation": bundle.generation,
    }


def dict_to_bundle(data: dict[str, Any]) -> CertificateBundle:
    """Convert dict to CertificateBundle."""
    return CertificateBundle(
        private_key_pem=data["private_key_pem"],
        certificate_pem=data["certificate_pem"],
        ca_pem=data.get("ca_pem"),
        not_before=datetime.fromisoformat(data["not_before"]),
        not_after=datetime.fromisoformat(data["not_after"]),
        spec_fingerprint=data.get("spec_fingerprint", ""),
        generation=int(data.get("generation", 0)),
    )


def certificate_to_dict(certificate: Certificate) -> dict[str, Any]:
    """Convert Certificate to JSON-serializable dict."""
    return {
        "namespace": certificate.key.namespace,
        "name": certificate.key.name,
        "secret_name": certificate.secret_name,
        "issuer_ref": {
            "name": certificate.issuer_ref.name,
            "kind": certificate.issuer_ref.kind.value,
        },
        "generation": certificate.generation,
        "duration": _seconds(certificate.duration),
        "renew_before": _seconds(certificate.renew_before),
        "key_algorithm": certificate.key_algorithm.value,
        "key_size": certificate.key_size,
        "common_name": certificate.common_name,
        "dns_names": list(certificate.dns_names),
        "is_ca": certificate.is_ca,
    }


def dict_to_certificate(data: dict[str, Any]) -> Certificate:
    """Convert dict to Certificate."""
    return Certificate(
        key=CertificateKey(namespace=data["namespace"], name=data["name"]),
        secret_name=data["secret_name"],
        issuer_ref=IssuerRef(
            name=data["issuer_ref"]["name"],
            kind=IssuerKind(data["issuer_ref"].get("kind", IssuerKind.ISSUER.value)),
        ),
        generation=int(data.get("generation", 1)),
        duration=_parse_seconds(data.get("duration")),
        renew_before=_parse_seconds(data.get("renew_before")),
        key_algorithm=KeyAlgorithm(data.get("key_algorithm", KeyAlgorithm.RSA.value)),
        key_size=data.get("key_size"),
        common_name=data.get("common_name"),
        dns_names=tuple(data.get("dns_names", [])),
        is_ca=bool(data.get("is_ca", False)),
    )


def status_to_dict(status: CertificateStatus) -> dict[str, Any]:
    """Convert CertificateStatus to JSON-serializable dict."""
    return {
        "conditions": [
            {
                "type": condition.type.value,
                "status": condition.status.value,
                "reason": condition.reason,
                "message": condition.message,
                "last_transition_time": _dt(condition.last_transition_time),
            }
            for condition in status.conditions
        ],
        "observed_generation": status.observed_generation,
        "observed_fingerprint": status.observed_fingerprint,
        "not_before": _dt(status.not_before),
        "not_after": _dt(status.not_after),
        "renewal_time": _dt(status.renewal_time),
        "next_reconcile_time": _dt(status.next_reconcile_time),
        "last_failure_time": _dt(status.last_failure_time),
        "backoff": {
            "failures": status.backoff.failures,
            "reason": status.backoff.reason,
            "interval": _seconds(status.backoff.interval),
            "last_attempt": _dt(status.backoff.last_attempt),
            "fingerprint": status.backoff.fingerprint,
        },
    }


def dict_to_status(data: dict[str, Any]) -> CertificateStatus:
    """Convert dict to CertificateStatus."""
    backoff = data.get("backoff") or {}
    return CertificateStatus(
        conditions=[
            Condition(
                type=ConditionType(item["type"]),
                status=ConditionStatus(item["status"]),
                reason=item["reason"],
                message=item["message"],
                last_transition_time=datetime.fromisoformat(
                    item["last_transition_time"]
                ),
            )
            for item in data.get("conditions", [])
        ],
        observed_generation=int(data.get("observed_generation", 0)),
        observed_fingerprint=data.get("observed_fingerprint"),
        not_before=_parse_dt(data.get("not_before")),
        not_after=_parse_dt(data.get("not_after")),
        renewal_time=_parse_dt(data.get("renewal_time")),
        next_reconcile_time=_parse_dt(data.get("next_reconcile_time")),
        last_failure_time=_parse_dt(data.get("last_failure_time")),
        backoff=BackoffState(
            failures=int(backoff.get("failures", 0)),
            reason=backoff.get("reason"),
            interval=_parse_seconds(backoff.get("interval")) or timedelta(0),
            last_attempt=_parse_dt(backoff.get("last_attempt")),
            fingerprint=backoff.get("fingerprint"),
        ),
    )
