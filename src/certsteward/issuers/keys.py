"""
Key material helpers shared by the issuer backends.

Generates private keys per algorithm, builds CSRs and X.509 certificates,
and parses validity windows out of issued certificates.
"""

import secrets
from datetime import UTC, datetime, timedelta

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.types import (
    CertificateIssuerPrivateKeyTypes,
    CertificatePublicKeyTypes,
)
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from certsteward.domain.models import CertificateBundle, KeyAlgorithm

_ECDSA_CURVES = {
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}


def generate_private_key(
    algorithm: KeyAlgorithm, key_size: int
) -> CertificateIssuerPrivateKeyTypes:
    """
    Generate a private key.

    Args:
        algorithm: RSA or ECDSA
        key_size: RSA modulus size or ECDSA curve size in bits

    Returns:
        New private key

    Raises:
        ValueError: If the key size is not supported for the algorithm
    """
    if key_size not in algorithm.valid_key_sizes():
        raise ValueError(
            f"Unsupported {algorithm.value} key size {key_size}, "
            f"expected one of {algorithm.valid_key_sizes()}"
        )

    if algorithm is KeyAlgorithm.RSA:
        return rsa.generate_private_key(public_exponent=65537, key_size=key_size)

    return ec.generate_private_key(_ECDSA_CURVES[key_size]())


def private_key_to_pem(private_key: CertificateIssuerPrivateKeyTypes) -> str:
    """Encode a private key as unencrypted PKCS#8 PEM."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def load_private_key(pem: str) -> CertificateIssuerPrivateKeyTypes:
    """Load an unencrypted PEM private key."""
    private_key = serialization.load_pem_private_key(pem.encode(), password=None)
    if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise TypeError("Private key must be an RSA or ECDSA key")
    return private_key


def certificate_to_pem(certificate: x509.Certificate) -> str:
    return certificate.public_bytes(encoding=serialization.Encoding.PEM).decode()


def build_subject(common_name: str | None) -> x509.Name:
    attributes = []
    if common_name:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    return x509.Name(attributes)


def build_csr(
    private_key: CertificateIssuerPrivateKeyTypes,
    common_name: str | None,
    dns_names: tuple[str, ...],
) -> str:
    """
    Build a PEM-encoded Certificate Signing Request.

    Args:
        private_key: Key the CSR is signed with
        common_name: Optional subject common name
        dns_names: Subject alternative DNS names

    Returns:
        PEM-encoded CSR
    """
    builder = x509.CertificateSigningRequestBuilder().subject_name(
        build_subject(common_name)
    )
    if dns_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in dns_names]),
            critical=False,
        )
    csr = builder.sign(private_key, hashes.SHA256())
    return csr.public_bytes(serialization.Encoding.PEM).decode()


def sign_certificate(
    subject_key: CertificatePublicKeyTypes,
    subject: x509.Name,
    dns_names: tuple[str, ...],
    duration: timedelta,
    signing_key: CertificateIssuerPrivateKeyTypes,
    issuer_name: x509.Name,
    is_ca: bool = False,
    not_after_limit: datetime | None = None,
) -> x509.Certificate:
    """
    Build and sign an X.509 certificate.

    Args:
        subject_key: Public key of the certificate subject
        subject: Subject distinguished name
        dns_names: Subject alternative DNS names
        duration: Requested validity duration
        signing_key: Private key of the issuer
        issuer_name: Distinguished name of the issuer
        is_ca: Mark the certificate as a CA
        not_after_limit: Upper bound for not-after (the issuer's own expiry)

    Returns:
        Signed certificate
    """
    now = datetime.now(UTC)
    not_before = now
    not_after = now + duration
    if not_after_limit is not None and not_after > not_after_limit:
        not_after = not_after_limit

    # Generate serial number (128-bit, positive)
    serial = secrets.randbits(127) + 1

    cert_builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer_name)
        .public_key(subject_key)
        .serial_number(serial)
        .not_valid_before(not_before)
        .not_valid_after(not_after)
    )

    cert_builder = cert_builder.add_extension(
        x509.BasicConstraints(ca=is_ca, path_length=None), critical=True
    )

    cert_builder = cert_builder.add_extension(
        x509.KeyUsage(
            digital_signature=True,
            key_encipherment=not is_ca,
            content_commitment=False,
            data_encipherment=False,
            key_agreement=False,
            key_cert_sign=is_ca,
            crl_sign=is_ca,
            encipher_only=False,
            decipher_only=False,
        ),
        critical=True,
    )

    if not is_ca:
        cert_builder = cert_builder.add_extension(
            x509.ExtendedKeyUsage(
                [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]
            ),
            critical=False,
        )

    if dns_names:
        cert_builder = cert_builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in dns_names]),
            critical=False,
        )

    cert_builder = cert_builder.add_extension(
        x509.SubjectKeyIdentifier.from_public_key(subject_key), critical=False
    )

    cert_builder = cert_builder.add_extension(
        x509.AuthorityKeyIdentifier.from_issuer_public_key(signing_key.public_key()),
        critical=False,
    )

    return cert_builder.sign(private_key=signing_key, algorithm=hashes.SHA256())


def bundle_from_pem(
    private_key_pem: str,
    certificate_pem: str,
    ca_pem: str | None = None,
    spec_fingerprint: str = "",
    generation: int = 0,
) -> CertificateBundle:
    """
    Build a bundle whose validity window is read from the certificate itself.

    Raises:
        ValueError: If the certificate cannot be parsed
    """
    certificate = x509.load_pem_x509_certificate(certificate_pem.encode())
    return CertificateBundle(
        private_key_pem=private_key_pem,
        certificate_pem=certificate_pem,
        ca_pem=ca_pem,
        not_before=certificate.not_valid_before_utc,
        not_after=certificate.not_valid_after_utc,
        spec_fingerprint=spec_fingerprint,
        generation=generation,
    )
