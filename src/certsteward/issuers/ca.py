"""
CA issuer: signs certificates with a keypair held in the secret store.

The signing keypair is itself a bundle (private key + CA certificate) that
lives in the secret store, typically produced by a self-signed certificate
with ``is_ca`` set. It is re-read on every call so that a rotated CA is
picked up without restarting the controller.

Security notes:
- CA private key never leaves the secret store boundary
- Leaf certificates never outlive the CA certificate
- Each certificate has a unique random serial number
"""

import asyncio
from datetime import UTC, datetime

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import (
    CertificateIssuerPrivateKeyTypes,
)
from loguru import logger

from certsteward.domain.errors import SignDenied, SignTransient
from certsteward.domain.models import CertificateBundle, CertificateKey
from certsteward.infrastructure.repositories import SecretStore
from certsteward.issuers.base import SigningRequest
from certsteward.issuers.keys import (
    build_subject,
    bundle_from_pem,
    certificate_to_pem,
    generate_private_key,
    load_private_key,
    private_key_to_pem,
    sign_certificate,
)


class CAIssuer:
    """
    Issuer backed by a CA keypair stored in the secret store.

    Args:
        secret_store: Store holding the signing keypair
        keypair_key: Identity of the signing keypair bundle
    """

    def __init__(self, secret_store: SecretStore, keypair_key: CertificateKey):
        self.secret_store = secret_store
        self.keypair_key = keypair_key

    async def _load_keypair(self):
        """
        Load and validate the signing keypair.

        Returns:
            Tuple (private key, CA certificate, CA PEM), or None when the
            keypair is missing or unusable
        """
        stored = await self.secret_store.get(self.keypair_key)
        if stored is None:
            logger.warning(f"CA signing keypair {self.keypair_key} not found")
            return None

        try:
            ca_key = load_private_key(stored.bundle.private_key_pem)
            ca_cert = x509.load_pem_x509_certificate(
                stored.bundle.certificate_pem.encode()
            )
        except (ValueError, TypeError) as e:
            logger.error(f"CA signing keypair {self.keypair_key} is invalid: {e}")
            return None

        try:
            constraints = ca_cert.extensions.get_extension_for_class(
                x509.BasicConstraints
            ).value
        except x509.ExtensionNotFound:
            constraints = None
        if constraints is None or not constraints.ca:
            logger.error(f"Certificate in {self.keypair_key} is not a CA")
            return None

        if ca_cert.not_valid_after_utc <= datetime.now(UTC):
            logger.error(f"CA certificate in {self.keypair_key} has expired")
            return None

        return ca_key, ca_cert, stored.bundle.certificate_pem

    async def is_ready(self) -> bool:
        return await self._load_keypair() is not None

    async def sign(self, request: SigningRequest) -> CertificateBundle:
        keypair = await self._load_keypair()
        if keypair is None:
            raise SignTransient(f"CA signing keypair {self.keypair_key} unavailable")
        return await asyncio.to_thread(self._issue, request, *keypair)

    def _issue(
        self,
        request: SigningRequest,
        ca_key: CertificateIssuerPrivateKeyTypes,
        ca_cert: x509.Certificate,
        ca_pem: str,
    ) -> CertificateBundle:
        """Generate the leaf key and sign it; CPU-bound, runs off the event loop."""
        try:
            private_key = generate_private_key(request.key_algorithm, request.key_size)
        except ValueError as e:
            raise SignDenied(str(e)) from e

        certificate = sign_certificate(
            subject_key=private_key.public_key(),
            subject=build_subject(request.common_name),
            dns_names=request.dns_names,
            duration=request.duration,
            signing_key=ca_key,
            issuer_name=ca_cert.subject,
            is_ca=request.is_ca,
            not_after_limit=ca_cert.not_valid_after_utc,
        )

        logger.info(
            f"Certificate signed by CA {self.keypair_key}: "
            f"serial={format(certificate.serial_number, 'X')}, "
            f"expires={certificate.not_valid_after_utc.isoformat()}"
        )

        return bundle_from_pem(
            private_key_pem=private_key_to_pem(private_key),
            certificate_pem=certificate_to_pem(certificate),
            ca_pem=ca_pem,
            spec_fingerprint=request.fingerprint,
            generation=request.generation,
        )
