"""
Routes registration for the FastAPI application.

Centralizes all router registrations for clean application setup.
"""

from fastapi import FastAPI

from certsteward.api.v1.certificates.router import router as certificates_router
from certsteward.api.v1.health.router import router as health_router


def register_routes(app: FastAPI) -> None:
    """
    Register all application routers.

    Args:
        app: FastAPI application instance
    """
    # Health check endpoints (no prefix)
    app.include_router(health_router)

    # Certificate endpoints (versioned API)
    app.include_router(certificates_router)
