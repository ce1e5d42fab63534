"""
AWS DynamoDB implementation of the secret store using PynamoDB ORM.

Each bundle is one item keyed by ``namespace/name``. The item carries a
PynamoDB ``VersionAttribute``, so every save is a conditional write and a
stale version surfaces as ``StoreConflict``.
"""

try:
    from pynamodb.attributes import JSONAttribute, UnicodeAttribute, VersionAttribute
    from pynamodb.exceptions import DeleteError, PutError, PynamoDBException
    from pynamodb.models import Model

    PYNAMODB_AVAILABLE = True
except ImportError:
    PYNAMODB_AVAILABLE = False

from certsteward.core.logging import logger
from certsteward.domain.errors import StoreConflict, StoreUnavailable
from certsteward.domain.models import CertificateBundle, CertificateKey, StoredBundle
from certsteward.infrastructure.repositories.secret_store import SecretStore
from certsteward.infrastructure.serialization import bundle_to_dict, dict_to_bundle

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

if PYNAMODB_AVAILABLE:

    class SecretModel(Model):
        """PynamoDB model for certificate bundles.

        DynamoDB Table Schema:
        - Partition Key: secret_key (string, ``namespace/name``)
        - Attributes: bundle (JSON), version (number)

        Note: table_name and region are configured in DynamoDBSecretStore.__init__
        """

        class Meta:
            table_name = None
            region = None

        secret_key = UnicodeAttribute(hash_key=True)
        bundle = JSONAttribute()
        version = VersionAttribute()


class DynamoDBSecretStore(SecretStore):
    """AWS DynamoDB implementation of SecretStore using PynamoDB.

    Environment Variables:
    - AWS_REGION: AWS region
    - AWS_ACCESS_KEY_ID: AWS access key (optional if using IAM role)
    - AWS_SECRET_ACCESS_KEY: AWS secret key (optional if using IAM role)
    """

    def __init__(
        self,
        table_name: str = "certsteward-secrets",
        region_name: str = "us-east-1",
        auto_create_table: bool = False,
    ):
        """Initialize PynamoDB model.

        Args:
            table_name: DynamoDB table name (from settings.aws_dynamodb_table)
            region_name: AWS region (from settings.aws_region)
            auto_create_table: If True, create table if it doesn't exist
        """
        if not PYNAMODB_AVAILABLE:
            raise ImportError(
                "pynamodb is required for AWS implementations. "
                "Install with: pip install 'certsteward[aws]'"
            )

        if not table_name:
            raise ValueError("table_name cannot be empty")
        if not region_name:
            raise ValueError("region_name cannot be empty")

        SecretModel.Meta.table_name = table_name
        SecretModel.Meta.region = region_name

        self.table_name = table_name
        self.region_name = region_name

        if auto_create_table:
            self._ensure_table_exists()

        logger.info(
            f"Initialized DynamoDBSecretStore with table={table_name}, "
            f"region={region_name}"
        )

    def _ensure_table_exists(self) -> None:
        """Create DynamoDB table if it doesn't exist."""
        if SecretModel.exists():
            logger.debug(f"Table {self.table_name} already exists")
            return

        logger.info(f"Creating DynamoDB table: {self.table_name}")
        SecretModel.create_table(
            read_capacity_units=5,
            write_capacity_units=5,
            wait=True,
        )
        logger.info(f"Table {self.table_name} created successfully")

    async def get(self, key: CertificateKey) -> StoredBundle | None:
        try:
            item = SecretModel.get(hash_key=str(key), consistent_read=True)
        except SecretModel.DoesNotExist:
            return None
        except PynamoDBException as e:
            logger.error(f"Failed to read secret {key}: {e}")
            raise StoreUnavailable(f"Could not read secret {key}: {e}") from e

        return StoredBundle(
            bundle=dict_to_bundle(item.bundle), version=str(item.version)
        )

    async def put(
        self,
        key: CertificateKey,
        bundle: CertificateBundle,
        expected_version: str | None,
    ) -> str:
        item = SecretModel(secret_key=str(key), bundle=bundle_to_dict(bundle))
        # save() conditions on the current version (or on absence when None)
        item.version = int(expected_version) if expected_version is not None else None

        try:
            item.save()
        except PutError as e:
            if e.cause_response_code == CONDITIONAL_CHECK_FAILED:
                raise StoreConflict(
                    f"Secret {key} changed since version {expected_version}"
                ) from e
            logger.error(f"Failed to store secret {key}: {e}")
            raise StoreUnavailable(f"Could not store secret {key}: {e}") from e
        except PynamoDBException as e:
            logger.error(f"Failed to store secret {key}: {e}")
            raise StoreUnavailable(f"Could not store secret {key}: {e}") from e

        logger.debug(f"Stored secret {key} at version {item.version}")
        return str(item.version)

    async def delete(self, key: CertificateKey) -> bool:
        try:
            item = SecretModel.get(hash_key=str(key))
            item.delete()
        except SecretModel.DoesNotExist:
            return False
        except (DeleteError, PynamoDBException) as e:
            logger.error(f"Failed to delete secret {key}: {e}")
            raise StoreUnavailable(f"Could not delete secret {key}: {e}") from e

        logger.info(f"Deleted secret {key}")
        return True
