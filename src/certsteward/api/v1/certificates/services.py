"""
Certificate service.

Business logic behind the certificate endpoints: persists declared specs
and hands change events to the controller.
"""

from loguru import logger

from certsteward.api.v1.certificates.models import (
    CertificateListResponse,
    CertificateRequest,
    CertificateResponse,
)
from certsteward.controller import ControllerManager
from certsteward.domain.models import CertificateKey


class CertificateNotFoundError(LookupError):
    """Raised when a certificate is not declared."""

    def __init__(self, key: CertificateKey):
        super().__init__(f"Certificate {key} not found")
        self.key = key


class CertificateService:
    """Declared certificate operations backed by the running controller."""

    def __init__(self, controller: ControllerManager):
        self.controller = controller
        self.certificates = controller.reconciler.certificates
        self.statuses = controller.reconciler.statuses

    async def apply(
        self, key: CertificateKey, request: CertificateRequest
    ) -> tuple[CertificateResponse, bool]:
        """
        Create or update a certificate and queue a reconcile.

        Returns:
            The stored certificate and whether it was newly created
        """
        existing = await self.certificates.get_certificate(key)
        stored = await self.certificates.save_certificate(request.to_certificate(key))

        if existing is None or existing.generation != stored.generation:
            logger.info(f"Certificate {key} applied at generation {stored.generation}")
            self.controller.enqueue(key)

        status = await self.statuses.get_status(key)
        return CertificateResponse.from_domain(stored, status), existing is None

    async def get(self, key: CertificateKey) -> CertificateResponse:
        certificate = await self.certificates.get_certificate(key)
        if certificate is None:
            raise CertificateNotFoundError(key)

        status = await self.statuses.get_status(key)
        return CertificateResponse.from_domain(certificate, status)

    async def list_all(self, namespace: str | None = None) -> CertificateListResponse:
        certificates = await self.certificates.list_certificates()
        statuses = await self.statuses.list_statuses()

        items = [
            CertificateResponse.from_domain(certificate, statuses.get(certificate.key))
            for certificate in certificates
            if namespace is None or certificate.key.namespace == namespace
        ]
        return CertificateListResponse(items=items, total=len(items))

    async def delete(self, key: CertificateKey) -> None:
        """
        Delete a declared certificate and its status.

        The issued secret is left in place; the queued reconcile observes the
        deletion and stops scheduling the certificate.
        """
        if not await self.certificates.delete_certificate(key):
            raise CertificateNotFoundError(key)

        await self.statuses.delete_status(key)
        self.controller.enqueue(key)
        logger.info(f"Certificate {key} deleted")

    async def trigger(self, key: CertificateKey) -> None:
        """Queue an immediate reconcile that ignores any backoff window."""
        if await self.certificates.get_certificate(key) is None:
            raise CertificateNotFoundError(key)

        self.controller.enqueue(key, force=True)
        logger.info(f"Manual reconcile of {key} queued")
