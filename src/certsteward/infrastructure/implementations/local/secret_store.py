"""
Local file-based secret store implementation.

Stores each bundle as a JSON file together with its version counter:
    {base_dir}/
        secrets/
            {namespace}/
                {name}.json

WARNING: For development only. Private keys are stored unencrypted.
"""

import asyncio
import json
import os
from pathlib import Path

from loguru import logger

from certsteward.domain.errors import StoreConflict, StoreUnavailable
from certsteward.domain.models import CertificateBundle, CertificateKey, StoredBundle
from certsteward.infrastructure.repositories.secret_store import SecretStore
from certsteward.infrastructure.serialization import bundle_to_dict, dict_to_bundle


class LocalSecretStore(SecretStore):
    """
    File-based secret store for local development.

    The compare-and-swap is serialized by an asyncio lock, so it only holds
    within a single process.
    """

    def __init__(self, base_dir: str = "./.certsteward/secrets"):
        """
        Initialize local secret store.

        Args:
            base_dir: Base directory for secret files
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

        try:
            self.base_dir.chmod(0o700)
        except OSError as e:
            logger.warning(f"Could not set directory permissions: {e}")

        logger.info(f"Initialized LocalSecretStore at {self.base_dir}")
        logger.warning("LocalSecretStore stores private keys UNENCRYPTED")

    def _secret_path(self, key: CertificateKey) -> Path:
        return self.base_dir / key.namespace / f"{key.name}.json"

    def _read(self, key: CertificateKey) -> StoredBundle | None:
        path = self._secret_path(key)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text())
        except (OSError, ValueError) as e:
            raise StoreUnavailable(f"Could not read secret {key}: {e}") from e

        return StoredBundle(
            bundle=dict_to_bundle(data["bundle"]), version=str(data["version"])
        )

    async def get(self, key: CertificateKey) -> StoredBundle | None:
        async with self._lock:
            return self._read(key)

    async def put(
        self,
        key: CertificateKey,
        bundle: CertificateBundle,
        expected_version: str | None,
    ) -> str:
        async with self._lock:
            current = self._read(key)
            current_version = current.version if current else None
            if current_version != expected_version:
                raise StoreConflict(
                    f"Secret {key} is at version {current_version}, "
                    f"expected {expected_version}"
                )

            version = str(int(current_version or 0) + 1)
            path = self._secret_path(key)
            tmp_path = path.with_suffix(".tmp")
            payload = json.dumps(
                {"version": version, "bundle": bundle_to_dict(bundle)}, indent=2
            )
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.unlink(missing_ok=True)
                # Private key material: owner-only from the moment it exists
                fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
                with os.fdopen(fd, "w") as tmp_file:
                    tmp_file.write(payload)
                # Atomic replace so readers never see a partial bundle
                tmp_path.replace(path)
            except OSError as e:
                raise StoreUnavailable(f"Could not write secret {key}: {e}") from e

        logger.info(f"Stored secret {key} at version {version}")
        return version

    async def delete(self, key: CertificateKey) -> bool:
        async with self._lock:
            path = self._secret_path(key)
            if not path.exists():
                return False
            path.unlink()

        logger.info(f"Deleted secret {key}")
        return True
