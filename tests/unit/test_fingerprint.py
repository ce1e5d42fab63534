"""Tests for the spec fingerprint."""

from dataclasses import replace
from datetime import timedelta

from certsteward.domain.fingerprint import spec_fingerprint
from certsteward.domain.models import IssuerKind, IssuerRef, KeyAlgorithm


def test_fingerprint_is_deterministic(make_cert):
    assert spec_fingerprint(make_cert()) == spec_fingerprint(make_cert())


def test_dns_name_order_does_not_matter(make_cert):
    a = make_cert(dns_names=("a.example.com", "b.example.com"))
    b = make_cert(dns_names=("b.example.com", "a.example.com"))

    assert spec_fingerprint(a) == spec_fingerprint(b)


def test_generation_and_renew_before_are_ignored(make_cert):
    certificate = make_cert()

    changed = replace(certificate, generation=7, renew_before=timedelta(days=2))

    assert spec_fingerprint(changed) == spec_fingerprint(certificate)


def test_default_key_size_matches_explicit_default(make_cert):
    implicit = make_cert(key_algorithm=KeyAlgorithm.ECDSA, key_size=None)
    explicit = make_cert(key_algorithm=KeyAlgorithm.ECDSA, key_size=256)

    assert spec_fingerprint(implicit) == spec_fingerprint(explicit)


def test_issued_fields_change_the_fingerprint(make_cert):
    base = make_cert()
    variants = [
        replace(base, secret_name="other-tls"),
        replace(base, issuer_ref=IssuerRef("other", IssuerKind.CLUSTER_ISSUER)),
        replace(base, duration=timedelta(days=35)),
        replace(base, key_algorithm=KeyAlgorithm.RSA),
        replace(base, key_size=384),
        replace(base, common_name="web"),
        replace(base, dns_names=("other.example.com",)),
        replace(base, is_ca=True),
    ]

    fingerprints = {spec_fingerprint(v) for v in variants}

    assert spec_fingerprint(base) not in fingerprints
    assert len(fingerprints) == len(variants)
