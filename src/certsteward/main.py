"""
Main FastAPI application entry point.

This module creates the FastAPI application using the application factory
pattern for clean separation of concerns.
"""

from certsteward.application import create_app
from certsteward.config import get_settings
from certsteward.core.logging import intercept_standard_logging

# Intercept logs from uvicorn and other libraries
intercept_standard_logging()

# Create FastAPI application using factory
app = create_app()


def run() -> None:
    """Run the controller with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "certsteward.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )


if __name__ == "__main__":
    run()
