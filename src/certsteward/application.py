"""
FastAPI application factory.

Creates and configures the FastAPI application with routers and
exception handlers.
"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from certsteward import __version__
from certsteward.config import get_settings
from certsteward.controller import ControllerManager
from certsteward.core.logging import logger
from certsteward.domain.errors import CertificateControllerError
from certsteward.exception_handlers import (
    controller_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from certsteward.lifespan import lifespan
from certsteward.routes import register_routes


def create_app(controller: ControllerManager | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        controller: Controller to serve; built from settings at startup
            when omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    # Must be set BEFORE creating FastAPI instance
    docs_url = "/docs" if settings.enable_docs else None
    redoc_url = "/redoc" if settings.enable_docs else None
    openapi_url = "/openapi.json" if settings.enable_docs else None

    app = FastAPI(
        title=settings.project_name,
        description=settings.project_description,
        version=__version__,
        lifespan=lifespan,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
    )
    app.state.controller = controller

    # Register exception handlers (RFC 7807 Problem Details)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(CertificateControllerError, controller_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    register_routes(app)

    logger.info(f" FastAPI application created (v{__version__})")
    return app
