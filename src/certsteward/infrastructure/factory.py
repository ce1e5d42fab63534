"""
Infrastructure factory for provider selection.

Selects repository implementations based on configuration:
- memory: Process-local storage for tests and single-process runs
- local: File-based storage for development
- aws: DynamoDB (secret store only)
- azure: Key Vault (future)

Usage:
    from certsteward.infrastructure import InfrastructureFactory
    from certsteward.config import get_settings

    factory = InfrastructureFactory.from_settings(get_settings())

    secret_store = factory.get_secret_store()
    certificates = factory.get_certificate_repository()
    statuses = factory.get_status_repository()
"""

from typing import TYPE_CHECKING, Literal

from loguru import logger

from certsteward.infrastructure.repositories import (
    CertificateRepository,
    SecretStore,
    StatusRepository,
)

if TYPE_CHECKING:
    from certsteward.config import Settings

InfrastructureProvider = Literal["memory", "local", "aws", "azure"]

# Error messages
AZURE_NOT_IMPLEMENTED_ERROR = "Azure provider not yet implemented"


class InfrastructureFactory:
    """
    Factory for creating infrastructure repository instances.

    Secrets and certificate/status records are configured separately, so a
    deployment can keep key material in DynamoDB and specs on local disk.
    """

    def __init__(
        self,
        secrets_provider: InfrastructureProvider = "memory",
        certificate_db_provider: InfrastructureProvider = "memory",
        **config,
    ):
        """
        Initialize infrastructure factory.

        Args:
            secrets_provider: Provider of the secret store
            certificate_db_provider: Provider of certificate and status records
            **config: Provider-specific configuration options
                (base_dir, aws_region, dynamodb_table, auto_create_resources)
        """
        self.secrets_provider = secrets_provider
        self.certificate_db_provider = certificate_db_provider
        self.config = config

        logger.info(
            f"Initialized InfrastructureFactory with secrets={secrets_provider}, "
            f"certificate_db={certificate_db_provider}"
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "InfrastructureFactory":
        """
        Create factory from Settings object.

        Args:
            settings: Application settings from config.py

        Returns:
            InfrastructureFactory configured from settings
        """
        config = {
            "base_dir": settings.infrastructure_base_dir,
            "aws_region": settings.aws_region,
            "dynamodb_table": settings.aws_dynamodb_table,
            "auto_create_resources": settings.auto_create_resources,
        }

        return cls(
            secrets_provider=settings.secrets_provider,
            certificate_db_provider=settings.certificate_db_provider,
            **config,
        )

    def get_secret_store(self) -> SecretStore:
        """
        Get secret store for configured provider.

        Returns:
            SecretStore implementation

        Raises:
            ValueError: If provider is not supported
        """
        if self.secrets_provider == "memory":
            from certsteward.infrastructure.implementations.memory import (
                InMemorySecretStore,
            )

            return InMemorySecretStore()

        elif self.secrets_provider == "local":
            from certsteward.infrastructure.implementations.local import (
                LocalSecretStore,
            )

            base_dir = self.config.get("base_dir", "./.certsteward")
            return LocalSecretStore(base_dir=f"{base_dir}/secrets")

        elif self.secrets_provider == "aws":
            from certsteward.infrastructure.implementations.aws import (
                DynamoDBSecretStore,
            )

            return DynamoDBSecretStore(
                table_name=self.config.get("dynamodb_table", "certsteward-secrets"),
                region_name=self.config.get("aws_region", "us-east-1"),
                auto_create_table=self.config.get("auto_create_resources", False),
            )

        elif self.secrets_provider == "azure":
            raise NotImplementedError(AZURE_NOT_IMPLEMENTED_ERROR)

        else:
            raise ValueError(f"Unsupported provider: {self.secrets_provider}")

    def get_certificate_repository(self) -> CertificateRepository:
        """
        Get certificate repository for configured provider.

        Returns:
            CertificateRepository implementation

        Raises:
            ValueError: If provider is not supported
        """
        if self.certificate_db_provider == "memory":
            from certsteward.infrastructure.implementations.memory import (
                InMemoryCertificateRepository,
            )

            return InMemoryCertificateRepository()

        elif self.certificate_db_provider == "local":
            from certsteward.infrastructure.implementations.local import (
                LocalCertificateRepository,
            )

            return LocalCertificateRepository(
                base_dir=self.config.get("base_dir", "./.certsteward")
            )

        elif self.certificate_db_provider == "azure":
            raise NotImplementedError(AZURE_NOT_IMPLEMENTED_ERROR)

        else:
            raise ValueError(f"Unsupported provider: {self.certificate_db_provider}")

    def get_status_repository(self) -> StatusRepository:
        """
        Get status repository for configured provider.

        Returns:
            StatusRepository implementation

        Raises:
            ValueError: If provider is not supported
        """
        if self.certificate_db_provider == "memory":
            from certsteward.infrastructure.implementations.memory import (
                InMemoryStatusRepository,
            )

            return InMemoryStatusRepository()

        elif self.certificate_db_provider == "local":
            from certsteward.infrastructure.implementations.local import (
                LocalStatusRepository,
            )

            return LocalStatusRepository(
                base_dir=self.config.get("base_dir", "./.certsteward")
            )

        elif self.certificate_db_provider == "azure":
            raise NotImplementedError(AZURE_NOT_IMPLEMENTED_ERROR)

        else:
            raise ValueError(f"Unsupported provider: {self.certificate_db_provider}")
