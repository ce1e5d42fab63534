"""Global pytest configuration and fixtures for all tests."""

import os
from datetime import UTC, datetime, timedelta

import pytest

from certsteward.controller import Reconciler
from certsteward.domain.models import (
    Certificate,
    CertificateKey,
    IssuerKind,
    IssuerRef,
    KeyAlgorithm,
)
from certsteward.infrastructure.implementations.memory import (
    InMemoryCertificateRepository,
    InMemorySecretStore,
    InMemoryStatusRepository,
)
from certsteward.issuers import InMemoryIssuer, IssuerRegistry

TEST_ISSUER = IssuerRef(name="test-issuer", kind=IssuerKind.CLUSTER_ISSUER)


@pytest.fixture(scope="session", autouse=True)
def set_test_env_vars():
    """
    Set environment variables for testing.

    Keeps every test on in-memory infrastructure and out of AWS/Vault.
    """
    original_env = {}

    test_env_vars = {
        "ENABLE_DOCS": "false",
        "SECRETS_PROVIDER": "memory",
        "CERTIFICATE_DB_PROVIDER": "memory",
        "AWS_REGION": "us-east-1",
        "VAULT_ISSUER_NAME": "",
        "CA_ISSUER_NAME": "",
    }

    for key, value in test_env_vars.items():
        original_env[key] = os.environ.get(key)
        os.environ[key] = value

    yield

    for key, original_value in original_env.items():
        if original_value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original_value


class FakeClock:
    """Controllable clock for the reconciler."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_certificate(
    name: str = "web",
    namespace: str = "default",
    **overrides,
) -> Certificate:
    """Build a certificate with cheap ECDSA keys unless overridden."""
    fields = {
        "key": CertificateKey(namespace=namespace, name=name),
        "secret_name": f"{name}-tls",
        "issuer_ref": TEST_ISSUER,
        "key_algorithm": KeyAlgorithm.ECDSA,
        "dns_names": (f"{name}.example.com",),
    }
    fields.update(overrides)
    return Certificate(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def issuer():
    return InMemoryIssuer()


@pytest.fixture
def registry(issuer):
    registry = IssuerRegistry()
    registry.register(TEST_ISSUER, issuer)
    return registry


@pytest.fixture
def certificates():
    return InMemoryCertificateRepository()


@pytest.fixture
def secrets():
    return InMemorySecretStore()


@pytest.fixture
def statuses():
    return InMemoryStatusRepository()


@pytest.fixture
def reconciler(certificates, secrets, statuses, registry, clock):
    """Reconciler over in-memory stores with a fake clock."""
    return Reconciler(
        certificates=certificates,
        secrets=secrets,
        statuses=statuses,
        issuers=registry,
        backend_timeout=timedelta(seconds=2),
        clock=clock,
    )


@pytest.fixture
def make_cert():
    """Factory for declared certificates (see ``make_certificate``)."""
    return make_certificate


@pytest.fixture
def issuer_ref():
    return TEST_ISSUER
