"""Tests for the self-signed, CA and in-memory issuers and the registry."""

import asyncio
import time
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from certsteward.domain.errors import (
    IssuerNotFound,
    SignDenied,
    SignTransient,
)
from certsteward.domain.models import (
    CertificateKey,
    IssuerKind,
    IssuerRef,
    KeyAlgorithm,
)
from certsteward.infrastructure.implementations.memory import InMemorySecretStore
from certsteward.issuers import (
    CAIssuer,
    InMemoryIssuer,
    IssuerBackend,
    IssuerRegistry,
    SelfSignedIssuer,
    SigningRequest,
)
from certsteward.issuers.keys import generate_private_key

CA_KEY = CertificateKey(namespace="certsteward", name="root-ca")


def make_request(**overrides) -> SigningRequest:
    fields = {
        "common_name": "web.example.com",
        "dns_names": ("web.example.com", "www.example.com"),
        "key_algorithm": KeyAlgorithm.ECDSA,
        "key_size": 256,
        "duration": timedelta(days=35),
        "fingerprint": "fp-1",
        "generation": 3,
    }
    fields.update(overrides)
    return SigningRequest(**fields)


def load(pem: str) -> x509.Certificate:
    return x509.load_pem_x509_certificate(pem.encode())


@pytest_asyncio.fixture
async def ca_store():
    """Secret store holding an RSA root CA keypair."""
    store = InMemorySecretStore()
    ca_bundle = await SelfSignedIssuer().sign(
        make_request(
            common_name="Test Root CA",
            dns_names=(),
            key_algorithm=KeyAlgorithm.RSA,
            key_size=2048,
            duration=timedelta(days=365),
            is_ca=True,
        )
    )
    await store.put(CA_KEY, ca_bundle, None)
    return store


class TestSelfSignedIssuer:
    @pytest.mark.asyncio
    async def test_signs_with_requested_parameters(self):
        bundle = await SelfSignedIssuer().sign(make_request())

        certificate = load(bundle.certificate_pem)
        san = certificate.extensions.get_extension_for_class(
            x509.SubjectAlternativeName
        ).value
        assert san.get_values_for_type(x509.DNSName) == [
            "web.example.com",
            "www.example.com",
        ]
        assert certificate.issuer == certificate.subject
        assert isinstance(certificate.public_key(), ec.EllipticCurvePublicKey)
        assert bundle.ca_pem == bundle.certificate_pem
        assert bundle.spec_fingerprint == "fp-1"
        assert bundle.generation == 3

    @pytest.mark.asyncio
    async def test_validity_window_comes_from_the_certificate(self):
        bundle = await SelfSignedIssuer().sign(make_request())

        certificate = load(bundle.certificate_pem)
        assert bundle.not_before == certificate.not_valid_before_utc
        assert bundle.not_after == certificate.not_valid_after_utc
        assert bundle.not_after - bundle.not_before == timedelta(days=35)

    @pytest.mark.asyncio
    async def test_unsupported_key_size_is_denied(self):
        with pytest.raises(SignDenied):
            await SelfSignedIssuer().sign(make_request(key_size=1024))

    @pytest.mark.asyncio
    async def test_is_always_ready(self):
        assert await SelfSignedIssuer().is_ready()

    @pytest.mark.asyncio
    async def test_bundle_repr_hides_key_material(self):
        bundle = await SelfSignedIssuer().sign(make_request())

        assert "PRIVATE" not in repr(bundle)
        assert "CERTIFICATE" not in repr(bundle)


class TestCAIssuer:
    @pytest.mark.asyncio
    async def test_not_ready_without_keypair(self):
        issuer = CAIssuer(InMemorySecretStore(), CA_KEY)

        assert not await issuer.is_ready()
        with pytest.raises(SignTransient):
            await issuer.sign(make_request())

    @pytest.mark.asyncio
    async def test_not_ready_when_keypair_is_not_a_ca(self):
        store = InMemorySecretStore()
        leaf = await SelfSignedIssuer().sign(make_request())
        await store.put(CA_KEY, leaf, None)

        assert not await CAIssuer(store, CA_KEY).is_ready()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "algorithm,key_size,key_type",
        [
            (KeyAlgorithm.RSA, 2048, rsa.RSAPublicKey),
            (KeyAlgorithm.ECDSA, 521, ec.EllipticCurvePublicKey),
        ],
    )
    async def test_issues_leaves_signed_by_the_ca(
        self, ca_store, algorithm, key_size, key_type
    ):
        issuer = CAIssuer(ca_store, CA_KEY)
        ca_bundle = (await ca_store.get(CA_KEY)).bundle

        assert await issuer.is_ready()
        bundle = await issuer.sign(
            make_request(key_algorithm=algorithm, key_size=key_size)
        )

        leaf = load(bundle.certificate_pem)
        ca_cert = load(ca_bundle.certificate_pem)
        assert leaf.issuer == ca_cert.subject
        leaf.verify_directly_issued_by(ca_cert)
        assert isinstance(leaf.public_key(), key_type)
        if key_type is ec.EllipticCurvePublicKey:
            assert leaf.public_key().curve.name == "secp521r1"
        assert bundle.ca_pem == ca_bundle.certificate_pem
        assert bundle.not_after - bundle.not_before == timedelta(days=35)

    @pytest.mark.asyncio
    async def test_leaf_never_outlives_the_ca(self, ca_store):
        issuer = CAIssuer(ca_store, CA_KEY)
        ca_bundle = (await ca_store.get(CA_KEY)).bundle

        bundle = await issuer.sign(make_request(duration=timedelta(days=1000)))

        assert bundle.not_after == ca_bundle.not_after


def slow_key_generation(mocker, module: str, seconds: float = 0.3):
    """Make key generation in ``module`` take ``seconds`` of blocking work."""

    def generate(algorithm, size):
        time.sleep(seconds)
        return generate_private_key(algorithm, size)

    return mocker.patch(
        f"certsteward.issuers.{module}.generate_private_key", side_effect=generate
    )


async def ticks_while(awaitable):
    """Await ``awaitable`` and count how often a 10 ms ticker ran meanwhile."""
    ticks = 0

    async def ticker():
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    task = asyncio.create_task(ticker())
    try:
        result = await awaitable
    finally:
        task.cancel()
    return result, ticks


class TestSigningKeepsEventLoopResponsive:
    @pytest.mark.asyncio
    async def test_self_signed(self, mocker):
        slow_key_generation(mocker, "selfsigned")

        bundle, ticks = await ticks_while(
            SelfSignedIssuer().sign(
                make_request(key_algorithm=KeyAlgorithm.RSA, key_size=4096)
            )
        )

        assert isinstance(
            load(bundle.certificate_pem).public_key(), rsa.RSAPublicKey
        )
        assert ticks >= 10

    @pytest.mark.asyncio
    async def test_ca(self, ca_store, mocker):
        slow_key_generation(mocker, "ca")

        bundle, ticks = await ticks_while(
            CAIssuer(ca_store, CA_KEY).sign(make_request())
        )

        assert bundle.not_after > bundle.not_before
        assert ticks >= 10


class TestInMemoryIssuer:
    @pytest.mark.asyncio
    async def test_scripted_failures_then_success(self):
        issuer = InMemoryIssuer()
        issuer.fail_next(SignTransient("boom"), SignDenied("no"))

        with pytest.raises(SignTransient):
            await issuer.sign(make_request())
        with pytest.raises(SignDenied):
            await issuer.sign(make_request())
        bundle = await issuer.sign(make_request())

        assert issuer.sign_calls == 3
        assert bundle.spec_fingerprint == "fp-1"

    @pytest.mark.asyncio
    async def test_duration_override(self):
        issuer = InMemoryIssuer(duration_override=timedelta(hours=2))

        bundle = await issuer.sign(make_request())

        assert bundle.not_after - bundle.not_before == timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_readiness_is_configurable(self):
        issuer = InMemoryIssuer(ready=False)

        assert not await issuer.is_ready()
        assert issuer.ready_checks == 1


class TestIssuerRegistry:
    def test_cluster_issuer_resolves_from_any_namespace(self):
        registry = IssuerRegistry()
        ref = IssuerRef("shared", IssuerKind.CLUSTER_ISSUER)
        backend = SelfSignedIssuer()
        registry.register(ref, backend)

        assert registry.resolve(ref, "team-a") is backend
        assert registry.resolve(ref, "team-b") is backend

    def test_namespaced_issuer_is_scoped(self):
        registry = IssuerRegistry()
        ref = IssuerRef("local", IssuerKind.ISSUER)
        registry.register(ref, SelfSignedIssuer(), namespace="team-a")

        assert registry.resolve(ref, "team-a") is not None
        with pytest.raises(IssuerNotFound):
            registry.resolve(ref, "team-b")

    def test_unknown_issuer(self):
        with pytest.raises(IssuerNotFound) as exc_info:
            IssuerRegistry().resolve(IssuerRef("missing"), "default")

        assert exc_info.value.reason == "IssuerNotFound"

    def test_namespaced_issuer_requires_namespace(self):
        with pytest.raises(ValueError):
            IssuerRegistry().register(IssuerRef("local"), SelfSignedIssuer())

    def test_rejects_objects_without_the_issuer_contract(self):
        with pytest.raises(TypeError):
            IssuerRegistry().register(
                IssuerRef("bad", IssuerKind.CLUSTER_ISSUER), object()
            )

    def test_unregister(self):
        registry = IssuerRegistry()
        ref = IssuerRef("shared", IssuerKind.CLUSTER_ISSUER)
        registry.register(ref, SelfSignedIssuer())

        assert registry.unregister(ref)
        assert not registry.unregister(ref)
        with pytest.raises(IssuerNotFound):
            registry.resolve(ref, "default")

    def test_backends_satisfy_the_protocol(self):
        assert isinstance(SelfSignedIssuer(), IssuerBackend)
        assert isinstance(InMemoryIssuer(), IssuerBackend)
        assert isinstance(CAIssuer(InMemorySecretStore(), CA_KEY), IssuerBackend)

    def test_from_settings_registers_enabled_issuers(self, mocker):
        settings = mocker.Mock(
            selfsigned_issuer_name="selfsigned",
            ca_issuer_name="root",
            ca_secret="certsteward/root-ca",
            vault_issuer_name="vault",
            vault_address="https://vault.test:8200",
            vault_token="s.token",
            vault_role="web",
            vault_mount="pki",
            vault_namespace=None,
            backend_timeout_seconds=5.0,
        )

        registry = IssuerRegistry.from_settings(settings, InMemorySecretStore())

        ca = registry.resolve(IssuerRef("root", IssuerKind.CLUSTER_ISSUER), "any")
        assert isinstance(ca, CAIssuer)
        assert ca.keypair_key == CA_KEY
        vault = registry.resolve(IssuerRef("vault", IssuerKind.CLUSTER_ISSUER), "any")
        assert vault.sign_url == "https://vault.test:8200/v1/pki/sign/web"
        assert isinstance(
            registry.resolve(IssuerRef("selfsigned", IssuerKind.CLUSTER_ISSUER), "x"),
            SelfSignedIssuer,
        )

    def test_from_settings_requires_ca_secret(self, mocker):
        settings = mocker.Mock(
            selfsigned_issuer_name=None,
            ca_issuer_name="root",
            ca_secret=None,
            vault_issuer_name=None,
        )

        with pytest.raises(ValueError, match="ca_secret"):
            IssuerRegistry.from_settings(settings, InMemorySecretStore())


@pytest.mark.asyncio
async def test_expired_ca_is_not_ready(ca_store, mocker):
    """A CA whose certificate has expired is not ready."""
    later = datetime.now(UTC) + timedelta(days=400)
    mock_datetime = mocker.patch("certsteward.issuers.ca.datetime")
    mock_datetime.now.return_value = later

    assert not await CAIssuer(ca_store, CA_KEY).is_ready()
