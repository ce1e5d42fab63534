"""
HashiCorp Vault PKI issuer.

Generates the private key locally and sends only a CSR to the
``/v1/{mount}/sign/{role}`` endpoint of a Vault PKI secrets engine.
"""

import asyncio

import httpx
from loguru import logger

from certsteward.domain.errors import SignDenied, SignTransient
from certsteward.domain.models import CertificateBundle
from certsteward.issuers.base import SigningRequest
from certsteward.issuers.keys import (
    build_csr,
    bundle_from_pem,
    generate_private_key,
    private_key_to_pem,
)

# Vault health endpoint: 200 active, 429 unsealed standby
_READY_HEALTH_CODES = {200, 429}
_DENIED_CODES = {400, 403, 404}


class VaultIssuer:
    """
    Issuer backed by a Vault PKI role.

    Args:
        address: Vault server URL (e.g. https://vault.example.com:8200)
        token: Vault token with update capability on the sign path
        role: PKI role name
        mount: PKI secrets engine mount path
        namespace: Optional Vault Enterprise namespace
        timeout: HTTP timeout in seconds
        client: Optional pre-configured httpx client (shared connection pool)
    """

    def __init__(
        self,
        address: str,
        token: str,
        role: str,
        mount: str = "pki",
        namespace: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.address = address.rstrip("/")
        self.role = role
        self.mount = mount.strip("/")
        self.timeout = timeout
        self._client = client

        self.headers = {"X-Vault-Token": token}
        if namespace:
            self.headers["X-Vault-Namespace"] = namespace

    @property
    def sign_url(self) -> str:
        return f"{self.address}/v1/{self.mount}/sign/{self.role}"

    @property
    def health_url(self) -> str:
        return f"{self.address}/v1/sys/health"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(
                method, url, headers=self.headers, timeout=self.timeout, **kwargs
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, headers=self.headers, **kwargs)

    async def is_ready(self) -> bool:
        try:
            response = await self._request("GET", self.health_url)
        except httpx.HTTPError as e:
            logger.warning(f"Vault health check failed: {e}")
            return False

        ready = response.status_code in _READY_HEALTH_CODES
        if not ready:
            logger.warning(f"Vault not ready: health status {response.status_code}")
        return ready

    async def sign(self, request: SigningRequest) -> CertificateBundle:
        common_name = request.common_name or (
            request.dns_names[0] if request.dns_names else None
        )
        if not common_name:
            raise SignDenied("Vault requires a common name or at least one DNS name")

        try:
            private_key = await asyncio.to_thread(
                generate_private_key, request.key_algorithm, request.key_size
            )
        except ValueError as e:
            raise SignDenied(str(e)) from e
        csr = await asyncio.to_thread(
            build_csr, private_key, request.common_name, request.dns_names
        )

        payload = {
            "csr": csr,
            "common_name": common_name,
            "alt_names": ",".join(request.dns_names),
            "ttl": f"{int(request.duration.total_seconds())}s",
            "format": "pem",
        }

        try:
            response = await self._request("POST", self.sign_url, json=payload)
        except httpx.TimeoutException as e:
            raise SignTransient(f"Vault sign request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise SignTransient(f"Vault sign request failed: {e}") from e

        if response.status_code in _DENIED_CODES:
            raise SignDenied(
                f"Vault denied signing ({response.status_code}): "
                f"{self._error_message(response)}"
            )
        if response.status_code >= 400:
            raise SignTransient(
                f"Vault sign failed ({response.status_code}): "
                f"{self._error_message(response)}"
            )

        try:
            data = response.json()["data"]
            certificate_pem = data["certificate"]
            ca_chain = data.get("ca_chain") or [data.get("issuing_ca", "")]
        except (ValueError, KeyError, TypeError) as e:
            raise SignTransient(f"Unexpected Vault sign response: {e}") from e

        ca_pem = "\n".join(pem.strip() for pem in ca_chain if pem) + "\n"

        logger.info(f"Vault signed certificate via {self.mount}/sign/{self.role}")

        try:
            return bundle_from_pem(
                private_key_pem=private_key_to_pem(private_key),
                certificate_pem=certificate_pem,
                ca_pem=ca_pem,
                spec_fingerprint=request.fingerprint,
                generation=request.generation,
            )
        except ValueError as e:
            raise SignTransient(f"Vault returned an unparsable certificate: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            errors = response.json().get("errors") or []
        except ValueError:
            return response.text
        return "; ".join(str(error) for error in errors) or response.text
