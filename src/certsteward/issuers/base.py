"""
Issuer backend capability contract.

Every backend variant (self-signed, CA, Vault, in-memory) implements
exactly ``is_ready`` and ``sign``. There is no shared base class: the
reconciler only relies on this protocol.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol, runtime_checkable

from certsteward.domain.models import Certificate, CertificateBundle, KeyAlgorithm


@dataclass(frozen=True)
class SigningRequest:
    """
    Everything a backend needs to issue one bundle.

    Attributes:
        common_name: Optional subject common name
        dns_names: Subject alternative DNS names
        key_algorithm: Algorithm of the key to generate
        key_size: Key size in bits
        duration: Effective validity duration
        is_ca: Whether the certificate may sign other certificates
        fingerprint: Spec fingerprint, recorded in the bundle
        generation: Spec generation, recorded in the bundle
    """

    common_name: str | None
    dns_names: tuple[str, ...]
    key_algorithm: KeyAlgorithm
    key_size: int
    duration: timedelta
    is_ca: bool = False
    fingerprint: str = ""
    generation: int = 0

    @classmethod
    def for_certificate(
        cls, certificate: Certificate, duration: timedelta, fingerprint: str
    ) -> "SigningRequest":
        return cls(
            common_name=certificate.common_name,
            dns_names=tuple(certificate.dns_names),
            key_algorithm=certificate.key_algorithm,
            key_size=certificate.effective_key_size,
            duration=duration,
            is_ca=certificate.is_ca,
            fingerprint=fingerprint,
            generation=certificate.generation,
        )

    @property
    def idempotency_key(self) -> str:
        return f"{self.fingerprint}:{self.generation}"


@runtime_checkable
class IssuerBackend(Protocol):
    """Capability contract of a signing backend."""

    async def is_ready(self) -> bool:
        """
        Report whether the backend can sign right now.

        Returns:
            False while e.g. the signing keypair or upstream account is missing
        """
        ...

    async def sign(self, request: SigningRequest) -> CertificateBundle:
        """
        Issue a bundle for the request.

        Raises:
            SignPending: Issuance in progress upstream, retry shortly
            SignDenied: The request was refused
            SignTransient: Temporary failure, retry with backoff
        """
        ...
