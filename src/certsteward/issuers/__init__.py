"""
Issuer backends.

Variants differ only in how ``sign`` is fulfilled:
- SelfSignedIssuer: signs with the certificate's own key
- CAIssuer: signs with a CA keypair from the secret store
- VaultIssuer: sends a CSR to a Vault PKI role
- InMemoryIssuer: scripted outcomes for tests
"""

from certsteward.issuers.base import IssuerBackend, SigningRequest
from certsteward.issuers.ca import CAIssuer
from certsteward.issuers.memory import InMemoryIssuer
from certsteward.issuers.registry import IssuerRegistry
from certsteward.issuers.selfsigned import SelfSignedIssuer
from certsteward.issuers.vault import VaultIssuer

__all__ = [
    "CAIssuer",
    "InMemoryIssuer",
    "IssuerBackend",
    "IssuerRegistry",
    "SelfSignedIssuer",
    "SigningRequest",
    "VaultIssuer",
]
