"""AWS infrastructure implementations package."""

from certsteward.infrastructure.implementations.aws.secret_store import (
    DynamoDBSecretStore,
)

__all__ = ["DynamoDBSecretStore"]
