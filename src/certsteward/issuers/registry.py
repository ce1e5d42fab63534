"""
Issuer registry.

Resolves an ``IssuerRef`` to the concrete backend at reconcile time.
Namespaced issuers (kind ``Issuer``) are registered per namespace,
cluster issuers once for all namespaces.
"""

from typing import TYPE_CHECKING

from loguru import logger

from certsteward.domain.errors import IssuerNotFound
from certsteward.domain.models import CertificateKey, IssuerKind, IssuerRef
from certsteward.issuers.base import IssuerBackend
from certsteward.issuers.ca import CAIssuer
from certsteward.issuers.selfsigned import SelfSignedIssuer
from certsteward.issuers.vault import VaultIssuer

if TYPE_CHECKING:
    from certsteward.config import Settings
    from certsteward.infrastructure.repositories import SecretStore


class IssuerRegistry:
    """Maps issuer references to backend instances."""

    def __init__(self):
        self._issuers: dict[tuple[str, str | None, str], IssuerBackend] = {}

    @staticmethod
    def _key(ref: IssuerRef, namespace: str | None) -> tuple[str, str | None, str]:
        scope = None if ref.kind == IssuerKind.CLUSTER_ISSUER else namespace
        return (ref.kind.value, scope, ref.name)

    def register(
        self, ref: IssuerRef, backend: IssuerBackend, namespace: str | None = None
    ) -> None:
        """
        Register a backend.

        Args:
            ref: Issuer reference certificates will use
            backend: Backend implementing the issuer contract
            namespace: Namespace of an ``Issuer`` (ignored for ClusterIssuer)

        Raises:
            TypeError: If backend does not implement ``is_ready``/``sign``
            ValueError: If a namespaced issuer is registered without namespace
        """
        if not isinstance(backend, IssuerBackend):
            raise TypeError(f"{type(backend).__name__} is not an issuer backend")
        if ref.kind == IssuerKind.ISSUER and not namespace:
            raise ValueError(f"Issuer {ref.name!r} requires a namespace")

        self._issuers[self._key(ref, namespace)] = backend
        logger.info(
            f"Registered issuer {ref} ({type(backend).__name__})"
            + (f" in namespace {namespace}" if ref.kind == IssuerKind.ISSUER else "")
        )

    def unregister(self, ref: IssuerRef, namespace: str | None = None) -> bool:
        return self._issuers.pop(self._key(ref, namespace), None) is not None

    def resolve(self, ref: IssuerRef, namespace: str) -> IssuerBackend:
        """
        Resolve a reference made from a certificate in ``namespace``.

        Raises:
            IssuerNotFound: If no backend is registered for the reference
        """
        backend = self._issuers.get(self._key(ref, namespace))
        if backend is None:
            raise IssuerNotFound(f"Referenced {ref} not found in {namespace!r}")
        return backend

    @classmethod
    def from_settings(
        cls, settings: "Settings", secret_store: "SecretStore"
    ) -> "IssuerRegistry":
        """
        Build a registry with the cluster issuers enabled in settings.

        Args:
            settings: Controller settings
            secret_store: Store holding the CA keypair

        Raises:
            ValueError: If an enabled issuer is missing required settings
        """
        registry = cls()

        if settings.selfsigned_issuer_name:
            registry.register(
                IssuerRef(settings.selfsigned_issuer_name, IssuerKind.CLUSTER_ISSUER),
                SelfSignedIssuer(),
            )

        if settings.ca_issuer_name:
            if not settings.ca_secret:
                raise ValueError("ca_secret is required when ca_issuer_name is set")
            registry.register(
                IssuerRef(settings.ca_issuer_name, IssuerKind.CLUSTER_ISSUER),
                CAIssuer(secret_store, CertificateKey.parse(settings.ca_secret)),
            )

        if settings.vault_issuer_name:
            if not (settings.vault_address and settings.vault_token):
                raise ValueError(
                    "vault_address and vault_token are required "
                    "when vault_issuer_name is set"
                )
            registry.register(
                IssuerRef(settings.vault_issuer_name, IssuerKind.CLUSTER_ISSUER),
                VaultIssuer(
                    address=settings.vault_address,
                    token=settings.vault_token,
                    role=settings.vault_role or settings.vault_issuer_name,
                    mount=settings.vault_mount,
                    namespace=settings.vault_namespace,
                    timeout=settings.backend_timeout_seconds,
                ),
            )

        return registry
