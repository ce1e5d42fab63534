"""Abstract repository interfaces for infrastructure operations."""

from certsteward.infrastructure.repositories.certificate_repository import (
    CertificateRepository,
    assign_generation,
)
from certsteward.infrastructure.repositories.secret_store import SecretStore
from certsteward.infrastructure.repositories.status_repository import (
    StatusRepository,
)

__all__ = [
    "CertificateRepository",
    "SecretStore",
    "StatusRepository",
    "assign_generation",
]
