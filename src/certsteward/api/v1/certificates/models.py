"""Certificate request and response models."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field, field_validator, model_validator

from certsteward.domain.models import (
    Certificate,
    CertificateKey,
    CertificateStatus,
    IssuerKind,
    IssuerRef,
    KeyAlgorithm,
)

# RFC 1123 label, as used for namespaces and names
NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


class IssuerRefModel(BaseModel):
    """Reference to the issuer that signs the certificate."""

    name: str = Field(..., min_length=1, description="Issuer name")
    kind: IssuerKind = Field(
        IssuerKind.ISSUER, description="Issuer (namespaced) or ClusterIssuer"
    )


class CertificateRequest(BaseModel):
    """
    Desired state of a certificate.

    Durations accept seconds or ISO 8601 (e.g. ``P35D``).

    Attributes:
        secret_name: Secret that receives the issued bundle
        issuer_ref: Issuer that signs the certificate
        duration: Requested validity (default 90 days)
        renew_before: Renew this long before expiry (default duration / 3)
        key_algorithm: RSA or ECDSA
        key_size: Key size in bits (RSA 2048/3072/4096, ECDSA 256/384/521)
        common_name: Subject common name
        dns_names: Subject alternative DNS names
        is_ca: Issue a certificate that may sign other certificates
    """

    secret_name: str = Field(..., pattern=NAME_PATTERN, max_length=253)
    issuer_ref: IssuerRefModel
    duration: timedelta | None = Field(None, description="Requested validity")
    renew_before: timedelta | None = Field(
        None, description="Renewal offset before expiry"
    )
    key_algorithm: KeyAlgorithm = Field(KeyAlgorithm.RSA)
    key_size: int | None = Field(None, description="Key size in bits")
    common_name: str | None = Field(None, max_length=64)
    dns_names: list[str] = Field(default_factory=list)
    is_ca: bool = False

    @field_validator("dns_names")
    @classmethod
    def validate_dns_names(cls, v: list[str]) -> list[str]:
        """Reject empty entries."""
        if any(not name.strip() for name in v):
            raise ValueError("dns_names must not contain empty entries")
        return v

    @model_validator(mode="after")
    def validate_key_and_subject(self) -> "CertificateRequest":
        if (
            self.key_size is not None
            and self.key_size not in self.key_algorithm.valid_key_sizes()
        ):
            raise ValueError(
                f"key_size {self.key_size} is not valid for "
                f"{self.key_algorithm.value}, "
                f"expected one of {self.key_algorithm.valid_key_sizes()}"
            )
        if not self.common_name and not self.dns_names:
            raise ValueError("at least one of common_name or dns_names is required")
        return self

    def to_certificate(self, key: CertificateKey) -> Certificate:
        """Build the domain certificate declared under ``key``."""
        return Certificate(
            key=key,
            secret_name=self.secret_name,
            issuer_ref=IssuerRef(name=self.issuer_ref.name, kind=self.issuer_ref.kind),
            duration=self.duration,
            renew_before=self.renew_before,
            key_algorithm=self.key_algorithm,
            key_size=self.key_size,
            common_name=self.common_name,
            dns_names=tuple(self.dns_names),
            is_ca=self.is_ca,
        )


class ConditionResponse(BaseModel):
    type: str
    status: str
    reason: str
    message: str
    last_transition_time: datetime


class StatusResponse(BaseModel):
    """Observed status of a certificate."""

    ready: bool = Field(False, description="Whether a valid bundle is available")
    conditions: list[ConditionResponse] = Field(default_factory=list)
    observed_generation: int = 0
    not_before: datetime | None = None
    not_after: datetime | None = None
    renewal_time: datetime | None = None
    next_reconcile_time: datetime | None = None
    last_failure_time: datetime | None = None
    failed_attempts: int = 0

    @classmethod
    def from_status(cls, status: CertificateStatus | None) -> "StatusResponse":
        if status is None:
            return cls()

        return cls(
            ready=status.is_ready(),
            conditions=[
                ConditionResponse(
                    type=condition.type.value,
                    status=condition.status.value,
                    reason=condition.reason,
                    message=condition.message,
                    last_transition_time=condition.last_transition_time,
                )
                for condition in status.conditions
            ],
            observed_generation=status.observed_generation,
            not_before=status.not_before,
            not_after=status.not_after,
            renewal_time=status.renewal_time,
            next_reconcile_time=status.next_reconcile_time,
            last_failure_time=status.last_failure_time,
            failed_attempts=status.backoff.failures,
        )


class CertificateResponse(BaseModel):
    """A declared certificate together with its observed status."""

    namespace: str
    name: str
    generation: int
    secret_name: str
    issuer_ref: IssuerRefModel
    duration: timedelta | None = None
    renew_before: timedelta | None = None
    key_algorithm: KeyAlgorithm
    key_size: int
    common_name: str | None = None
    dns_names: list[str] = Field(default_factory=list)
    is_ca: bool = False
    status: StatusResponse

    @classmethod
    def from_domain(
        cls, certificate: Certificate, status: CertificateStatus | None
    ) -> "CertificateResponse":
        return cls(
            namespace=certificate.key.namespace,
            name=certificate.key.name,
            generation=certificate.generation,
            secret_name=certificate.secret_name,
            issuer_ref=IssuerRefModel(
                name=certificate.issuer_ref.name, kind=certificate.issuer_ref.kind
            ),
            duration=certificate.duration,
            renew_before=certificate.renew_before,
            key_algorithm=certificate.key_algorithm,
            key_size=certificate.effective_key_size,
            common_name=certificate.common_name,
            dns_names=list(certificate.dns_names),
            is_ca=certificate.is_ca,
            status=StatusResponse.from_status(status),
        )


class CertificateListResponse(BaseModel):
    items: list[CertificateResponse]
    total: int


class ReconcileResponse(BaseModel):
    """Acknowledgement of a manual reconcile trigger."""

    namespace: str
    name: str
    queued: bool = True
