"""Local file-based infrastructure implementations for development."""

from certsteward.infrastructure.implementations.local.certificate_repository import (
    LocalCertificateRepository,
    LocalStatusRepository,
)
from certsteward.infrastructure.implementations.local.secret_store import (
    LocalSecretStore,
)

__all__ = [
    "LocalCertificateRepository",
    "LocalSecretStore",
    "LocalStatusRepository",
]
