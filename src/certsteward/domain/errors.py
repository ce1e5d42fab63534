"""
Error taxonomy of the certificate lifecycle controller.

Every error carries a ``reason`` code that is copied verbatim into the
status conditions. None of them is fatal: the reconciler converts each one
into a condition and a retry interval.
"""


class CertificateControllerError(Exception):
    """Base class for all controller errors."""

    reason: str = "InternalError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidDurationConfig(CertificateControllerError):
    """Requested duration/renewBefore cannot be honored. Fixed by a spec edit."""

    reason = "InvalidDurationConfig"


class IssuerNotReady(CertificateControllerError):
    """The issuer backend reported that it cannot sign yet."""

    reason = "IssuerNotReady"


class IssuerNotFound(IssuerNotReady):
    """No backend is registered for the referenced issuer."""

    reason = "IssuerNotFound"


class SignError(CertificateControllerError):
    """Base class for errors returned by ``IssuerBackend.sign``."""

    reason = "SignError"


class SignPending(SignError):
    """Signing is in progress upstream (e.g. an ACME challenge)."""

    reason = "SignPending"


class SignDenied(SignError):
    """The issuer refused the request."""

    reason = "SignDenied"


class SignTransient(SignError):
    """Temporary issuer failure, including timeouts."""

    reason = "SignTransient"


class StoreError(CertificateControllerError):
    """Base class for secret store errors."""

    reason = "StoreError"


class StoreConflict(StoreError):
    """The stored version changed since it was read."""

    reason = "StoreConflict"


class StoreUnavailable(StoreError):
    """The secret store could not be reached or failed."""

    reason = "StoreUnavailable"
