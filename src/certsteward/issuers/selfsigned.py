"""Self-signed issuer: every certificate is signed with its own key."""

import asyncio

from loguru import logger

from certsteward.domain.errors import SignDenied
from certsteward.domain.models import CertificateBundle
from certsteward.issuers.base import SigningRequest
from certsteward.issuers.keys import (
    build_subject,
    bundle_from_pem,
    certificate_to_pem,
    generate_private_key,
    private_key_to_pem,
    sign_certificate,
)


class SelfSignedIssuer:
    """Issuer without upstream dependencies; always ready."""

    async def is_ready(self) -> bool:
        return True

    async def sign(self, request: SigningRequest) -> CertificateBundle:
        return await asyncio.to_thread(self._issue, request)

    def _issue(self, request: SigningRequest) -> CertificateBundle:
        try:
            private_key = generate_private_key(request.key_algorithm, request.key_size)
        except ValueError as e:
            raise SignDenied(str(e)) from e

        subject = build_subject(request.common_name)
        certificate = sign_certificate(
            subject_key=private_key.public_key(),
            subject=subject,
            dns_names=request.dns_names,
            duration=request.duration,
            signing_key=private_key,
            issuer_name=subject,
            is_ca=request.is_ca,
        )
        cert_pem = certificate_to_pem(certificate)

        logger.info(
            "Self-signed certificate issued: "
            f"serial={format(certificate.serial_number, 'X')}"
        )

        return bundle_from_pem(
            private_key_pem=private_key_to_pem(private_key),
            certificate_pem=cert_pem,
            ca_pem=cert_pem,
            spec_fingerprint=request.fingerprint,
            generation=request.generation,
        )
