"""
Local file-based certificate and status repositories.

Stores declared certificates and their status as JSON files:
    {base_dir}/
        certificates/
            {namespace}/
                {name}.json
        status/
            {namespace}/
                {name}.json
"""

import json
from pathlib import Path

from loguru import logger

from certsteward.domain.models import Certificate, CertificateKey, CertificateStatus
from certsteward.infrastructure.repositories.certificate_repository import (
    CertificateRepository,
    assign_generation,
)
from certsteward.infrastructure.repositories.status_repository import (
    StatusRepository,
)
from certsteward.infrastructure.serialization import (
    certificate_to_dict,
    dict_to_certificate,
    dict_to_status,
    status_to_dict,
)


def _iter_json(root: Path):
    """Yield (key, data) for every ``{namespace}/{name}.json`` under root."""
    for path in sorted(root.glob("*/*.json")):
        key = CertificateKey(namespace=path.parent.name, name=path.stem)
        yield key, json.loads(path.read_text())


class LocalCertificateRepository(CertificateRepository):
    """File-based certificate storage for local development."""

    def __init__(self, base_dir: str = "./.certsteward"):
        """
        Initialize local certificate repository.

        Args:
            base_dir: Base directory for certificate storage
        """
        self.base_dir = Path(base_dir)
        self.certs_dir = self.base_dir / "certificates"
        self.certs_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized LocalCertificateRepository at {self.base_dir}")

    def _cert_path(self, key: CertificateKey) -> Path:
        return self.certs_dir / key.namespace / f"{key.name}.json"

    async def get_certificate(self, key: CertificateKey) -> Certificate | None:
        cert_path = self._cert_path(key)

        if not cert_path.exists():
            return None

        return dict_to_certificate(json.loads(cert_path.read_text()))

    async def save_certificate(self, certificate: Certificate) -> Certificate:
        existing = await self.get_certificate(certificate.key)
        stored = assign_generation(existing, certificate)

        cert_path = self._cert_path(certificate.key)
        cert_path.parent.mkdir(parents=True, exist_ok=True)
        cert_path.write_text(json.dumps(certificate_to_dict(stored), indent=2))

        logger.info(
            f"Saved certificate {certificate.key} at generation {stored.generation}"
        )
        return stored

    async def delete_certificate(self, key: CertificateKey) -> bool:
        cert_path = self._cert_path(key)

        if not cert_path.exists():
            return False

        cert_path.unlink()
        logger.info(f"Deleted certificate {key}")
        return True

    async def list_certificates(self) -> list[Certificate]:
        return [dict_to_certificate(data) for _, data in _iter_json(self.certs_dir)]


class LocalStatusRepository(StatusRepository):
    """File-based status storage for local development."""

    def __init__(self, base_dir: str = "./.certsteward"):
        self.base_dir = Path(base_dir)
        self.status_dir = self.base_dir / "status"
        self.status_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized LocalStatusRepository at {self.base_dir}")

    def _status_path(self, key: CertificateKey) -> Path:
        return self.status_dir / key.namespace / f"{key.name}.json"

    async def get_status(self, key: CertificateKey) -> CertificateStatus | None:
        status_path = self._status_path(key)

        if not status_path.exists():
            return None

        return dict_to_status(json.loads(status_path.read_text()))

    async def save_status(self, key: CertificateKey, status: CertificateStatus) -> None:
        status_path = self._status_path(key)
        status_path.parent.mkdir(parents=True, exist_ok=True)
        status_path.write_text(json.dumps(status_to_dict(status), indent=2))

    async def delete_status(self, key: CertificateKey) -> bool:
        status_path = self._status_path(key)

        if not status_path.exists():
            return False

        status_path.unlink()
        return True

    async def list_statuses(self) -> dict[CertificateKey, CertificateStatus]:
        return {key: dict_to_status(data) for key, data in _iter_json(self.status_dir)}
