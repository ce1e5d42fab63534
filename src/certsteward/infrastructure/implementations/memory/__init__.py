"""In-memory infrastructure implementations for tests and single-process runs."""

from certsteward.infrastructure.implementations.memory.certificate_repository import (
    InMemoryCertificateRepository,
    InMemoryStatusRepository,
)
from certsteward.infrastructure.implementations.memory.secret_store import (
    InMemorySecretStore,
)

__all__ = [
    "InMemoryCertificateRepository",
    "InMemorySecretStore",
    "InMemoryStatusRepository",
]
