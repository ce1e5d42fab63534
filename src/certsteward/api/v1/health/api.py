"""
Health check endpoints.

Provides health check endpoints for monitoring service status.
"""

from fastapi import APIRouter

from certsteward import __version__
from certsteward.api.v1.health.models import HealthResponse
from certsteward.di import ControllerDep

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(controller: ControllerDep) -> HealthResponse:
    """
    Health check endpoint.

    Returns:
        Service status, version and work queue depth
    """
    running = controller.running
    return HealthResponse(
        status="ok" if running else "degraded",
        version=__version__,
        controller_running=running,
        queued=len(controller.queue),
        message="Service is healthy" if running else "Controller is not running",
    )
