"""
certsteward - certificate lifecycle controller.

Reconciles declared certificates against pluggable issuer backends and
keeps the issued keypair bundles in a secret store.
"""

__version__ = "0.1.0"
