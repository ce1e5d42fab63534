"""
Abstract interface for the secret store holding issued bundles.

Handles persistence of keypair/certificate bundles:
- Versioned reads
- Optimistic-concurrency writes
- External deletion
"""

from abc import ABC, abstractmethod

from certsteward.domain.models import CertificateBundle, CertificateKey, StoredBundle


class SecretStore(ABC):
    """
    Abstract interface for bundle storage operations.

    Every write carries the version observed by the preceding read. If the
    stored version changed in between, the write is rejected with
    ``StoreConflict`` and the caller must re-read and re-evaluate.
    """

    @abstractmethod
    async def get(self, key: CertificateKey) -> StoredBundle | None:
        """
        Retrieve the bundle stored under ``key``.

        Args:
            key: Secret identity

        Returns:
            Bundle and its version token if found, None otherwise

        Raises:
            StoreUnavailable: If the backing store cannot be read
        """
        pass

    @abstractmethod
    async def put(
        self,
        key: CertificateKey,
        bundle: CertificateBundle,
        expected_version: str | None,
    ) -> str:
        """
        Store a bundle if the current version matches ``expected_version``.

        Args:
            key: Secret identity
            bundle: Bundle to store
            expected_version: Version returned by ``get``; None means the
                secret must not exist yet

        Returns:
            New version token

        Raises:
            StoreConflict: If the stored version differs from the expected one
            StoreUnavailable: If the backing store cannot be written
        """
        pass

    @abstractmethod
    async def delete(self, key: CertificateKey) -> bool:
        """
        Delete a stored bundle. Never called by the reconciler.

        Args:
            key: Secret identity

        Returns:
            True if a bundle was deleted, False if not found
        """
        pass
