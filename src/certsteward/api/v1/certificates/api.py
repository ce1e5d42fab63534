"""
Certificate API endpoints.

Declares certificates, exposes their status surface and lets operators
trigger a reconcile. Writes only persist the desired state and queue the
certificate; issuance happens asynchronously in the controller.
"""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, Response, status
from loguru import logger

from certsteward.api.v1.certificates.models import (
    NAME_PATTERN,
    CertificateListResponse,
    CertificateRequest,
    CertificateResponse,
    ReconcileResponse,
)
from certsteward.api.v1.certificates.services import (
    CertificateNotFoundError,
    CertificateService,
)
from certsteward.di import ControllerDep
from certsteward.domain.models import CertificateKey

router = APIRouter()

NamespacePath = Annotated[
    str, Path(pattern=NAME_PATTERN, max_length=63, description="Namespace")
]
NamePath = Annotated[
    str, Path(pattern=NAME_PATTERN, max_length=253, description="Certificate name")
]


def _not_found(e: CertificateNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "",
    response_model=CertificateListResponse,
    summary="List certificates",
)
async def list_certificates(
    controller: ControllerDep,
    namespace: Annotated[str | None, Query(pattern=NAME_PATTERN)] = None,
) -> CertificateListResponse:
    """
    List declared certificates with their status.

    Args:
        controller: Running controller (injected)
        namespace: Only return certificates of this namespace

    Returns:
        Certificates sorted by namespace and name
    """
    return await CertificateService(controller).list_all(namespace)


@router.get(
    "/{namespace}/{name}",
    response_model=CertificateResponse,
    summary="Get a certificate",
)
async def get_certificate(
    namespace: NamespacePath,
    name: NamePath,
    controller: ControllerDep,
) -> CertificateResponse:
    """
    Get a declared certificate with its conditions and validity window.

    Raises:
        HTTPException: 404 if the certificate is not declared
    """
    try:
        return await CertificateService(controller).get(CertificateKey(namespace, name))
    except CertificateNotFoundError as e:
        raise _not_found(e)


@router.put(
    "/{namespace}/{name}",
    response_model=CertificateResponse,
    summary="Create or update a certificate",
    description="""
    Declare the desired state of a certificate.

    The spec is stored and the certificate is queued for reconciliation.
    Issuance is asynchronous: poll the certificate until its `Ready`
    condition is `True`.

    A change to any field that ends up in the issued certificate (issuer,
    duration, key, subject, DNS names) triggers a reissue. Changing only
    `renew_before` reschedules the renewal.
    """,
)
async def put_certificate(
    namespace: NamespacePath,
    name: NamePath,
    request: CertificateRequest,
    controller: ControllerDep,
    response: Response,
) -> CertificateResponse:
    """
    Create or update a certificate.

    Returns:
        The stored certificate (201 when created, 200 when updated)
    """
    key = CertificateKey(namespace, name)
    certificate, created = await CertificateService(controller).apply(key, request)

    if created:
        response.status_code = status.HTTP_201_CREATED
    logger.debug(f"PUT {key} (created={created})")
    return certificate


@router.delete(
    "/{namespace}/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a certificate",
)
async def delete_certificate(
    namespace: NamespacePath,
    name: NamePath,
    controller: ControllerDep,
) -> Response:
    """
    Delete a declared certificate. The issued secret is kept.

    Raises:
        HTTPException: 404 if the certificate is not declared
    """
    try:
        await CertificateService(controller).delete(CertificateKey(namespace, name))
    except CertificateNotFoundError as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{namespace}/{name}/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger a reconcile",
)
async def trigger_reconcile(
    namespace: NamespacePath,
    name: NamePath,
    controller: ControllerDep,
) -> ReconcileResponse:
    """
    Queue an immediate reconcile, skipping any active backoff window.

    Raises:
        HTTPException: 404 if the certificate is not declared
    """
    try:
        await CertificateService(controller).trigger(CertificateKey(namespace, name))
    except CertificateNotFoundError as e:
        raise _not_found(e)
    return ReconcileResponse(namespace=namespace, name=name)
