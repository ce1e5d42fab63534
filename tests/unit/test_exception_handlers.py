"""
Unit tests for exception handlers.

Tests error response formatting and status code mapping.
"""

import json
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError

from certsteward.domain.errors import (
    CertificateControllerError,
    SignDenied,
    StoreUnavailable,
)
from certsteward.exception_handlers import (
    PROBLEM_JSON,
    controller_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)


@pytest.fixture
def request_():
    request = MagicMock(spec=Request)
    request.url.path = "/api/v1/certificates/default/web"
    request.method = "PUT"
    return request


def body(response) -> dict:
    return json.loads(response.body)


@pytest.mark.asyncio
async def test_http_exception_handler_404(request_):
    """Test HTTP exception handler produces a problem document."""
    response = await http_exception_handler(
        request_, HTTPException(status_code=404, detail="Certificate not found")
    )

    assert response.status_code == 404
    assert response.media_type == PROBLEM_JSON
    problem = body(response)
    assert problem["status"] == 404
    assert problem["detail"] == "Certificate not found"
    assert problem["instance"] == "/api/v1/certificates/default/web"
    assert problem["type"].endswith("#section-15.5.5")


@pytest.mark.asyncio
async def test_http_exception_handler_503(request_):
    """Test 5xx HTTP exceptions keep their status."""
    response = await http_exception_handler(
        request_, HTTPException(status_code=503, detail="Controller is not initialized")
    )

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_store_errors_map_to_503(request_):
    """Test secret store failures ask the client to retry."""
    response = await controller_exception_handler(
        request_, StoreUnavailable("DynamoDB throttled")
    )

    assert response.status_code == 503
    problem = body(response)
    assert problem["reason"] == "StoreUnavailable"
    assert problem["detail"] == "DynamoDB throttled"


@pytest.mark.asyncio
async def test_other_controller_errors_map_to_500(request_):
    """Test non-store controller errors are server errors with a reason."""
    response = await controller_exception_handler(request_, SignDenied())

    assert response.status_code == 500
    problem = body(response)
    assert problem["reason"] == "SignDenied"
    assert problem["detail"] == "SignDenied"


@pytest.mark.asyncio
async def test_general_exception_handler_hides_details(request_):
    """Test unexpected errors do not leak their message."""
    response = await general_exception_handler(request_, RuntimeError("secret path"))

    assert response.status_code == 500
    problem = body(response)
    assert "secret path" not in problem["detail"]
    assert "reason" not in problem


@pytest.mark.asyncio
async def test_validation_exception_handler(request_):
    """Test validation errors are listed field by field."""
    exc = RequestValidationError(
        [
            {
                "type": "missing",
                "loc": ("body", "secret_name"),
                "msg": "Field required",
                "input": {},
            },
            {
                "type": "value_error",
                "loc": ("body", "dns_names", 0),
                "msg": "Value error, invalid DNS name",
                "input": "bad..name",
                "ctx": {"error": ValueError("invalid DNS name")},
            },
        ]
    )

    response = await validation_exception_handler(request_, exc)

    assert response.status_code == 422
    problem = body(response)
    assert problem["detail"].endswith("(2 errors).")
    first, second = problem["errors"]
    assert first["loc"] == ["body", "secret_name"]
    assert second["loc"] == ["body", "dns_names", "0"]
    assert second["ctx"] == {"error": "invalid DNS name"}


def test_controller_error_defaults():
    """Test the base controller error reports InternalError."""
    error = CertificateControllerError("boom")

    assert error.reason == "InternalError"
    assert error.message == "boom"
