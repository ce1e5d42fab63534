"""Tests for the Vault PKI issuer (HTTP mocked with respx)."""

import asyncio
import json
import time
from dataclasses import replace
from datetime import timedelta

import httpx
import pytest
from cryptography import x509

from certsteward.domain.errors import SignDenied, SignTransient
from certsteward.domain.models import KeyAlgorithm
from certsteward.issuers import SigningRequest, VaultIssuer
from certsteward.issuers.keys import (
    build_subject,
    certificate_to_pem,
    generate_private_key,
    sign_certificate,
)

VAULT = "https://vault.test:8200"
SIGN_URL = f"{VAULT}/v1/pki/sign/web"
HEALTH_URL = f"{VAULT}/v1/sys/health"


@pytest.fixture
def vault():
    return VaultIssuer(address=VAULT + "/", token="s.secret", role="web", timeout=2.0)


@pytest.fixture
def signed_pem():
    """A certificate PEM as Vault would return it."""
    key = generate_private_key(KeyAlgorithm.ECDSA, 256)
    certificate = sign_certificate(
        subject_key=key.public_key(),
        subject=build_subject("web.example.com"),
        dns_names=("web.example.com",),
        duration=timedelta(days=30),
        signing_key=key,
        issuer_name=build_subject("Vault Test CA"),
    )
    return certificate_to_pem(certificate)


@pytest.fixture
def request_():
    return SigningRequest(
        common_name=None,
        dns_names=("web.example.com", "api.example.com"),
        key_algorithm=KeyAlgorithm.ECDSA,
        key_size=256,
        duration=timedelta(days=30),
        fingerprint="fp-vault",
        generation=2,
    )


class TestVaultIssuerReadiness:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,expected", [(200, True), (429, True), (503, False)])
    async def test_health_status(self, respx_mock, vault, code, expected):
        respx_mock.get(HEALTH_URL).mock(return_value=httpx.Response(code))

        assert await vault.is_ready() is expected

    @pytest.mark.asyncio
    async def test_unreachable_vault_is_not_ready(self, respx_mock, vault):
        respx_mock.get(HEALTH_URL).mock(side_effect=httpx.ConnectError("refused"))

        assert not await vault.is_ready()


class TestVaultIssuerSign:
    @pytest.mark.asyncio
    async def test_sends_csr_and_parses_response(
        self, respx_mock, vault, signed_pem, request_
    ):
        route = respx_mock.post(SIGN_URL).mock(
            return_value=httpx.Response(
                200,
                json={"data": {"certificate": signed_pem, "issuing_ca": signed_pem}},
            )
        )

        bundle = await vault.sign(request_)

        sent = route.calls.last.request
        assert sent.headers["X-Vault-Token"] == "s.secret"
        payload = json.loads(sent.content)
        assert payload["common_name"] == "web.example.com"
        assert payload["alt_names"] == "web.example.com,api.example.com"
        assert payload["ttl"] == f"{30 * 86400}s"
        csr = x509.load_pem_x509_csr(payload["csr"].encode())
        assert csr.is_signature_valid

        certificate = x509.load_pem_x509_certificate(signed_pem.encode())
        assert bundle.not_after == certificate.not_valid_after_utc
        assert bundle.ca_pem.strip() == signed_pem.strip()
        assert bundle.spec_fingerprint == "fp-vault"
        assert bundle.generation == 2
        assert "PRIVATE KEY" in bundle.private_key_pem

    @pytest.mark.asyncio
    async def test_namespace_header(self, respx_mock, signed_pem, request_):
        vault = VaultIssuer(
            address=VAULT, token="t", role="web", namespace="team-a"
        )
        route = respx_mock.post(SIGN_URL).mock(
            return_value=httpx.Response(
                200, json={"data": {"certificate": signed_pem, "ca_chain": []}}
            )
        )

        await vault.sign(request_)

        assert route.calls.last.request.headers["X-Vault-Namespace"] == "team-a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [400, 403, 404])
    async def test_refusals_are_denied(self, respx_mock, vault, request_, code):
        respx_mock.post(SIGN_URL).mock(
            return_value=httpx.Response(code, json={"errors": ["role forbids name"]})
        )

        with pytest.raises(SignDenied, match="role forbids name"):
            await vault.sign(request_)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [429, 500, 503])
    async def test_server_errors_are_transient(
        self, respx_mock, vault, request_, code
    ):
        respx_mock.post(SIGN_URL).mock(
            return_value=httpx.Response(code, text="busy")
        )

        with pytest.raises(SignTransient):
            await vault.sign(request_)

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, respx_mock, vault, request_):
        respx_mock.post(SIGN_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(SignTransient, match="timed out"):
            await vault.sign(request_)

    @pytest.mark.asyncio
    async def test_malformed_response_is_transient(self, respx_mock, vault, request_):
        respx_mock.post(SIGN_URL).mock(
            return_value=httpx.Response(200, json={"x": 1})
        )

        with pytest.raises(SignTransient):
            await vault.sign(request_)

    @pytest.mark.asyncio
    async def test_requires_a_name(self, vault, request_):
        with pytest.raises(SignDenied):
            await vault.sign(replace(request_, dns_names=()))


@pytest.mark.asyncio
async def test_key_generation_runs_off_the_event_loop(
    respx_mock, vault, signed_pem, request_, mocker
):
    def slow_generate(algorithm, size):
        time.sleep(0.3)
        return generate_private_key(algorithm, size)

    mocker.patch(
        "certsteward.issuers.vault.generate_private_key", side_effect=slow_generate
    )
    respx_mock.post(SIGN_URL).mock(
        return_value=httpx.Response(200, json={"data": {"certificate": signed_pem}})
    )
    ticks = 0

    async def ticker():
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    task = asyncio.create_task(ticker())
    try:
        bundle = await vault.sign(request_)
    finally:
        task.cancel()

    assert bundle.spec_fingerprint == "fp-vault"
    assert ticks >= 10
