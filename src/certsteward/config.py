"""
Controller configuration and environment variables.

This module unifies configuration using pydantic-settings.
Variables can come from:
1. .env file
2. System environment variables (have priority)
3. Default values

Naming convention:
- In Python code: snake_case (backoff_cap_seconds)
- In .env or ENV vars: UPPER_CASE (BACKOFF_CAP_SECONDS)
- Pydantic automatically converts between both
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified controller configuration.

    All variables can be defined in:
    - .env file: VARIABLE_NAME=value
    - Environment variables: export VARIABLE_NAME=value

    Example:
        # In .env or as environment variable:
        SECRETS_PROVIDER=local
        WORKERS=8
        LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allows using uppercase or lowercase
        extra="ignore",  # Ignores extra variables in .env
    )

    # ============================================================================
    # PROJECT SETTINGS
    # ============================================================================
    project_name: str = Field(default="certsteward", description="Project name")
    project_description: str = Field(
        default="Certificate lifecycle controller",
        description="Project description",
    )

    # ============================================================================
    # SERVER SETTINGS
    # ============================================================================
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    enable_docs: bool = Field(
        default=False, description="Enable API documentation (Swagger/ReDoc)"
    )

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | key={extra[reconcile_key]} | {name}:{function}:{line} - {message}",  # noqa: E501
        description="Log format",
    )
    log_json: bool = Field(
        default=False, description="Emit logs as one JSON document per line"
    )
    logger_enqueue: bool = Field(
        default=False, description="Enqueue logs using multiprocessing"
    )

    # ============================================================================
    # INFRASTRUCTURE SETTINGS
    # ============================================================================
    secrets_provider: str = Field(
        default="memory",
        description="Secret store provider (memory, local, aws)",
    )
    certificate_db_provider: str = Field(
        default="memory",
        description="Certificate and status repository provider (memory, local)",
    )
    infrastructure_base_dir: str = Field(
        default="./.certsteward",
        description="Base directory for local infrastructure storage",
    )

    # AWS Infrastructure Configuration
    aws_region: str = Field(default="eu-west-1", description="AWS region")
    aws_dynamodb_table: str = Field(
        default="certsteward-secrets",
        description="DynamoDB table name for certificate bundles",
    )
    auto_create_resources: bool = Field(
        default=False,
        description="Auto-create AWS resources (DynamoDB table) if missing",
    )

    # ============================================================================
    # DURATION POLICY SETTINGS
    # ============================================================================
    default_duration_hours: float = Field(
        default=90 * 24, description="Certificate duration when none is requested"
    )
    minimum_duration_hours: float = Field(
        default=1.0, description="Shortest accepted certificate duration"
    )
    minimum_renew_before_minutes: float = Field(
        default=30.0, description="Floor applied to the defaulted renewBefore"
    )
    renew_before_divisor: int = Field(
        default=3, description="Default renewBefore is duration divided by this"
    )
    minimum_margin_minutes: float = Field(
        default=5.0,
        description="Minimum gap between renewBefore and the certificate duration",
    )

    # ============================================================================
    # RETRY / BACKOFF SETTINGS
    # ============================================================================
    backoff_base_seconds: float = Field(
        default=5.0, description="First interval of the exponential backoff"
    )
    backoff_cap_seconds: float = Field(
        default=600.0, description="Upper bound for every backoff interval"
    )
    pending_interval_seconds: float = Field(
        default=10.0, description="Fixed retry interval while a signing is pending"
    )
    denied_interval_seconds: float = Field(
        default=3600.0, description="Retry interval after the issuer denied a request"
    )
    issuer_not_ready_interval_seconds: float = Field(
        default=30.0, description="First retry interval while the issuer is not ready"
    )
    backend_timeout_seconds: float = Field(
        default=30.0, description="Deadline for a single issuer backend call"
    )
    max_conflict_retries: int = Field(
        default=3, description="Immediate re-read attempts after a store conflict"
    )

    # ============================================================================
    # ISSUER SETTINGS
    # ============================================================================
    selfsigned_issuer_name: str | None = Field(
        default="selfsigned",
        description="ClusterIssuer name of the built-in self-signed issuer",
    )
    ca_issuer_name: str | None = Field(
        default=None, description="ClusterIssuer name of the CA issuer"
    )
    ca_secret: str | None = Field(
        default=None,
        description="Secret holding the CA keypair, as namespace/name",
    )
    vault_issuer_name: str | None = Field(
        default=None, description="ClusterIssuer name of the Vault PKI issuer"
    )
    vault_address: str | None = Field(default=None, description="Vault address")
    vault_token: str | None = Field(default=None, description="Vault token")
    vault_role: str | None = Field(default=None, description="Vault PKI role")
    vault_mount: str = Field(default="pki", description="Vault PKI mount path")
    vault_namespace: str | None = Field(
        default=None, description="Vault Enterprise namespace"
    )

    # ============================================================================
    # CONTROLLER SETTINGS
    # ============================================================================
    workers: int = Field(default=4, description="Concurrent reconcile workers")
    start_controller: bool = Field(
        default=True, description="Start the reconcile workers with the application"
    )
    resync_on_start: bool = Field(
        default=True, description="Enqueue every declared certificate at startup"
    )

    # ============================================================================
    # HELPER METHODS
    # ============================================================================

    def get_default_duration(self) -> timedelta:
        """
        Get the duration applied to certificates that request none.

        Returns:
            timedelta: Default certificate duration.
        """
        return timedelta(hours=self.default_duration_hours)

    def get_backend_timeout(self) -> timedelta:
        """
        Get the deadline for a single issuer backend call.

        Returns:
            timedelta: Backend call timeout.
        """
        return timedelta(seconds=self.backend_timeout_seconds)


# ============================================================================
# SINGLETON PATTERN - Global settings instance
# ============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get controller settings (LRU cached).

    This function is cached, so the .env file is only read once.
    To refresh the configuration, clear the cache:
        get_settings.cache_clear()

    Usage:
        from certsteward.config import get_settings
        settings = get_settings()
        print(settings.workers)

    Returns:
        Settings: Controller configuration instance.
    """
    return Settings()


# Create global instance for use outside FastAPI
settings = get_settings()
