"""
In-memory secret store.

Keeps bundles in a dict guarded by an asyncio lock. Versions are a
monotonically increasing counter, so a stale ``expected_version`` is always
detected.
"""

import asyncio

from loguru import logger

from certsteward.domain.errors import StoreConflict
from certsteward.domain.models import CertificateBundle, CertificateKey, StoredBundle
from certsteward.infrastructure.repositories.secret_store import SecretStore


class InMemorySecretStore(SecretStore):
    """Process-local secret store for tests and single-process runs."""

    def __init__(self):
        self._bundles: dict[CertificateKey, StoredBundle] = {}
        self._lock = asyncio.Lock()
        self._counter = 0
        self.writes = 0

    async def get(self, key: CertificateKey) -> StoredBundle | None:
        async with self._lock:
            return self._bundles.get(key)

    async def put(
        self,
        key: CertificateKey,
        bundle: CertificateBundle,
        expected_version: str | None,
    ) -> str:
        async with self._lock:
            current = self._bundles.get(key)
            current_version = current.version if current else None
            if current_version != expected_version:
                raise StoreConflict(
                    f"Secret {key} is at version {current_version}, "
                    f"expected {expected_version}"
                )

            self._counter += 1
            version = str(self._counter)
            self._bundles[key] = StoredBundle(bundle=bundle, version=version)
            self.writes += 1

        logger.debug(f"Stored bundle {key} at version {version}")
        return version

    async def delete(self, key: CertificateKey) -> bool:
        async with self._lock:
            return self._bundles.pop(key, None) is not None
