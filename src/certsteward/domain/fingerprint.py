"""Deterministic fingerprint of the certificate fields that require reissuance."""

import hashlib
import json

from certsteward.domain.models import Certificate


def spec_fingerprint(certificate: Certificate) -> str:
    """
    Hash the parts of a certificate spec that end up in the issued bundle.

    Identity, generation and renewBefore are excluded: changing them does not
    change what the issuer would produce. DNS names are order-insensitive.

    Args:
        certificate: Declared certificate

    Returns:
        Hex-encoded SHA-256 digest
    """
    payload = {
        "secret_name": certificate.secret_name,
        "issuer": [certificate.issuer_ref.kind.value, certificate.issuer_ref.name],
        "duration": (
            certificate.duration.total_seconds() if certificate.duration else None
        ),
        "key_algorithm": certificate.key_algorithm.value,
        "key_size": certificate.effective_key_size,
        "common_name": certificate.common_name,
        "dns_names": sorted(set(certificate.dns_names)),
        "is_ca": certificate.is_ca,
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode()).hexdigest()
