"""Abstract interface for certificate status storage."""

from abc import ABC, abstractmethod

from certsteward.domain.models import CertificateKey, CertificateStatus


class StatusRepository(ABC):
    """Stores the status surface (conditions, validity, backoff) per certificate."""

    @abstractmethod
    async def get_status(self, key: CertificateKey) -> CertificateStatus | None:
        """
        Retrieve the status of a certificate.

        Returns:
            Status if one was written, None otherwise
        """
        pass

    @abstractmethod
    async def save_status(self, key: CertificateKey, status: CertificateStatus) -> None:
        """Replace the status of a certificate."""
        pass

    @abstractmethod
    async def delete_status(self, key: CertificateKey) -> bool:
        """
        Delete the status of a certificate.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_statuses(self) -> dict[CertificateKey, CertificateStatus]:
        """List every stored status."""
        pass
