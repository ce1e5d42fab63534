"""In-memory declared certificate and status repositories."""

import asyncio
from dataclasses import replace

from certsteward.domain.models import Certificate, CertificateKey, CertificateStatus
from certsteward.infrastructure.repositories.certificate_repository import (
    CertificateRepository,
    assign_generation,
)
from certsteward.infrastructure.repositories.status_repository import (
    StatusRepository,
)


class InMemoryCertificateRepository(CertificateRepository):
    """Process-local certificate repository."""

    def __init__(self):
        self._certificates: dict[CertificateKey, Certificate] = {}
        self._lock = asyncio.Lock()

    async def get_certificate(self, key: CertificateKey) -> Certificate | None:
        async with self._lock:
            return self._certificates.get(key)

    async def save_certificate(self, certificate: Certificate) -> Certificate:
        async with self._lock:
            stored = assign_generation(
                self._certificates.get(certificate.key), certificate
            )
            self._certificates[certificate.key] = stored
            return stored

    async def delete_certificate(self, key: CertificateKey) -> bool:
        async with self._lock:
            return self._certificates.pop(key, None) is not None

    async def list_certificates(self) -> list[Certificate]:
        async with self._lock:
            return [self._certificates[key] for key in sorted(self._certificates)]


class InMemoryStatusRepository(StatusRepository):
    """Process-local status repository; counts writes for idempotence checks."""

    def __init__(self):
        self._statuses: dict[CertificateKey, CertificateStatus] = {}
        self.writes = 0

    async def get_status(self, key: CertificateKey) -> CertificateStatus | None:
        status = self._statuses.get(key)
        # Callers mutate what they read; hand out a copy
        return replace(status, conditions=list(status.conditions)) if status else None

    async def save_status(self, key: CertificateKey, status: CertificateStatus) -> None:
        self._statuses[key] = replace(status, conditions=list(status.conditions))
        self.writes += 1

    async def delete_status(self, key: CertificateKey) -> bool:
        return self._statuses.pop(key, None) is not None

    async def list_statuses(self) -> dict[CertificateKey, CertificateStatus]:
        return dict(self._statuses)
