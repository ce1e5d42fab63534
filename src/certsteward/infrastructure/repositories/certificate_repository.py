"""
Abstract interface for declared certificate storage.

The repository is the authoritative desired state: the reconciler re-reads
it on every pass and never caches it between passes.
"""

from abc import ABC, abstractmethod
from dataclasses import replace

from certsteward.domain.models import Certificate, CertificateKey


class CertificateRepository(ABC):
    """
    Abstract interface for declared certificate operations.

    ``save_certificate`` bumps the generation when the stored spec changes.
    """

    @abstractmethod
    async def get_certificate(self, key: CertificateKey) -> Certificate | None:
        """
        Retrieve a declared certificate.

        Args:
            key: Certificate identity

        Returns:
            Certificate if declared, None otherwise
        """
        pass

    @abstractmethod
    async def save_certificate(self, certificate: Certificate) -> Certificate:
        """
        Create or update a declared certificate.

        The incoming generation is ignored: a new certificate starts at 1 and
        an update that changes any field increments the stored generation.

        Args:
            certificate: Desired spec

        Returns:
            The stored certificate with its generation
        """
        pass

    @abstractmethod
    async def delete_certificate(self, key: CertificateKey) -> bool:
        """
        Delete a declared certificate.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_certificates(self) -> list[Certificate]:
        """
        List all declared certificates.

        Returns:
            Certificates sorted by key
        """
        pass


def assign_generation(
    existing: Certificate | None, incoming: Certificate
) -> Certificate:
    """
    Compute the generation of a certificate about to be stored.

    Args:
        existing: Currently stored certificate, if any
        incoming: Desired spec (its generation is ignored)

    Returns:
        ``incoming`` with generation 1 when new, the existing generation when
        nothing changed, or the existing generation + 1 otherwise
    """
    if existing is None:
        return replace(incoming, generation=1)
    if replace(incoming, generation=existing.generation) == existing:
        return existing
    return replace(incoming, generation=existing.generation + 1)
