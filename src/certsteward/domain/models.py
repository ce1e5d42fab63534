"""
Domain model of the certificate lifecycle controller.

Declared intent (Certificate, IssuerRef), persisted artifact
(CertificateBundle, StoredBundle) and observed status (Condition,
BackoffState, CertificateStatus).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

RSA_KEY_SIZES = (2048, 3072, 4096)
ECDSA_KEY_SIZES = (256, 384, 521)


class KeyAlgorithm(str, Enum):
    """Private key algorithm requested for a certificate."""

    RSA = "RSA"
    ECDSA = "ECDSA"

    def default_key_size(self) -> int:
        return 2048 if self is KeyAlgorithm.RSA else 256

    def valid_key_sizes(self) -> tuple[int, ...]:
        return RSA_KEY_SIZES if self is KeyAlgorithm.RSA else ECDSA_KEY_SIZES


class IssuerKind(str, Enum):
    """Scope of an issuer reference."""

    ISSUER = "Issuer"
    CLUSTER_ISSUER = "ClusterIssuer"


class ConditionType(str, Enum):
    READY = "Ready"
    ISSUING = "Issuing"
    FAILED = "Failed"


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, order=True)
class CertificateKey:
    """
    Identity of a declared certificate.

    Attributes:
        namespace: Owning namespace
        name: Certificate name, unique within the namespace
    """

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "CertificateKey":
        """Parse a ``namespace/name`` string."""
        namespace, sep, name = value.partition("/")
        if not sep or not namespace or not name:
            raise ValueError(f"Invalid certificate key: {value!r}")
        return cls(namespace=namespace, name=name)


@dataclass(frozen=True)
class IssuerRef:
    """Reference to the issuer that signs a certificate."""

    name: str
    kind: IssuerKind = IssuerKind.ISSUER

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.name}"


@dataclass(frozen=True)
class Certificate:
    """
    Declared certificate intent.

    Attributes:
        key: Certificate identity
        secret_name: Name of the secret holding the issued bundle
        issuer_ref: Issuer that must sign the certificate
        generation: Incremented on every spec change
        duration: Requested validity duration (None means default)
        renew_before: Requested renewal offset (None means default)
        key_algorithm: RSA or ECDSA
        key_size: Key size in bits (None means algorithm default)
        common_name: Optional subject common name
        dns_names: Subject alternative DNS names
        is_ca: Whether the issued certificate may sign other certificates
    """

    key: CertificateKey
    secret_name: str
    issuer_ref: IssuerRef
    generation: int = 1
    duration: timedelta | None = None
    renew_before: timedelta | None = None
    key_algorithm: KeyAlgorithm = KeyAlgorithm.RSA
    key_size: int | None = None
    common_name: str | None = None
    dns_names: tuple[str, ...] = ()
    is_ca: bool = False

    @property
    def secret_key(self) -> CertificateKey:
        """Secret store identity of the bundle."""
        return CertificateKey(namespace=self.key.namespace, name=self.secret_name)

    @property
    def effective_key_size(self) -> int:
        return self.key_size or self.key_algorithm.default_key_size()


@dataclass(frozen=True)
class CertificateBundle:
    """
    Issued keypair and certificate for one identity.

    ``not_before``/``not_after`` are always parsed from the issued
    certificate, never copied from the request.
    """

    private_key_pem: str
    certificate_pem: str
    not_before: datetime
    not_after: datetime
    ca_pem: str | None = None
    spec_fingerprint: str = ""
    generation: int = 0

    def __repr__(self) -> str:
        return (
            f"CertificateBundle(fingerprint={self.spec_fingerprint[:12]}, "
            f"generation={self.generation}, not_after={self.not_after.isoformat()})"
        )


@dataclass(frozen=True)
class StoredBundle:
    """A bundle as read from the secret store, with its version token."""

    bundle: CertificateBundle
    version: str


@dataclass(frozen=True)
class Condition:
    """One status condition."""

    type: ConditionType
    status: ConditionStatus
    reason: str
    message: str
    last_transition_time: datetime


@dataclass
class BackoffState:
    """
    Retry state of one identity.

    Attributes:
        failures: Consecutive counted failures
        reason: Reason of the last failure
        interval: Last interval handed to the scheduler
        last_attempt: When the last failing attempt finished
        fingerprint: Spec fingerprint the state belongs to
    """

    failures: int = 0
    reason: str | None = None
    interval: timedelta = timedelta(0)
    last_attempt: datetime | None = None
    fingerprint: str | None = None

    def retry_at(self) -> datetime | None:
        if self.last_attempt is None:
            return None
        return self.last_attempt + self.interval


@dataclass
class CertificateStatus:
    """Observed status of one certificate."""

    conditions: list[Condition] = field(default_factory=list)
    observed_generation: int = 0
    observed_fingerprint: str | None = None
    not_before: datetime | None = None
    not_after: datetime | None = None
    renewal_time: datetime | None = None
    next_reconcile_time: datetime | None = None
    last_failure_time: datetime | None = None
    backoff: BackoffState = field(default_factory=BackoffState)

    def get_condition(self, condition_type: ConditionType) -> Condition | None:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def is_ready(self) -> bool:
        ready = self.get_condition(ConditionType.READY)
        return ready is not None and ready.status == ConditionStatus.TRUE
