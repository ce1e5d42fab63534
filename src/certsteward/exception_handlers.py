"""Global exception handlers for standardized error responses.

Implements RFC 7807 Problem Details for HTTP APIs.
Provides consistent error formatting across all endpoints.
"""

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from certsteward.core.logging import logger
from certsteward.domain.errors import CertificateControllerError, StoreError
from certsteward.models.errors import ProblemDetail, ValidationErrorDetail

PROBLEM_JSON = "application/problem+json"


def _problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(mode="json", exclude_none=True),
        media_type=PROBLEM_JSON,
    )


async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:  # noqa: ASYNC100
    """Handle HTTPException with RFC 7807 ProblemDetail response.

    Args:
        request: The FastAPI request object.
        exc: The HTTPException that was raised.

    Returns:
        JSONResponse with ProblemDetail body.
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"HTTPException: {exc.status_code} - {exc.detail} ({request.url.path})")

    return _problem_response(
        ProblemDetail(
            title="An error occurred",
            status=exc.status_code,
            detail=str(exc.detail),
            instance=str(request.url.path),
        )
    )


async def controller_exception_handler(
    request: Request, exc: CertificateControllerError
) -> JSONResponse:  # noqa: ASYNC100
    """Handle controller errors raised while serving a request.

    Store errors map to 503 so clients retry; anything else is a 500.

    Args:
        request: The FastAPI request object.
        exc: The controller error that was raised.

    Returns:
        JSONResponse with ProblemDetail body carrying the reason code.
    """
    status_code = 503 if isinstance(exc, StoreError) else 500
    logger.error(f"{exc.reason}: {exc.message} ({request.url.path})")

    return _problem_response(
        ProblemDetail(
            title="Service Unavailable" if status_code == 503 else "Controller Error",
            status=status_code,
            detail=exc.message or exc.reason,
            instance=str(request.url.path),
            reason=exc.reason,
        )
    )


async def general_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:  # noqa: ASYNC100
    """Handle unexpected exceptions with 500 Internal Server Error.

    Args:
        request: The FastAPI request object.
        exc: The exception that was raised.

    Returns:
        JSONResponse with ProblemDetail body.
    """
    logger.exception(
        f"Unexpected error: {type(exc).__name__} "
        f"({request.method} {request.url.path})"
    )

    return _problem_response(
        ProblemDetail(
            title="Internal Server Error",
            status=500,
            detail="An unexpected error occurred. Please try again later.",
            instance=str(request.url.path),
        )
    )


async def validation_exception_handler(  # noqa: ASYNC100
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle validation errors with detailed field-level information.

    Args:
        request: The FastAPI request object.
        exc: The RequestValidationError from Pydantic validation.

    Returns:
        JSONResponse with ProblemDetail body including validation errors.
    """
    logger.warning(
        f"Validation error: {len(exc.errors())} errors ({request.url.path})"
    )

    errors = [
        ValidationErrorDetail(
            type=error["type"],
            loc=tuple(str(loc) for loc in error["loc"]),
            msg=error["msg"],
            input=error.get("input"),
            ctx=(
                {k: str(v) for k, v in error.get("ctx", {}).items()}
                if error.get("ctx")
                else None
            ),
        )
        for error in exc.errors()
    ]

    return _problem_response(
        ProblemDetail(
            title="Validation Error",
            status=422,
            detail=f"One or more validation errors occurred ({len(errors)} errors).",
            instance=str(request.url.path),
            errors=errors,
        )
    )
