"""
Dependency injection container for certsteward.

This module provides centralized dependency injection using FastAPI's Depends
with typing.Annotated for clean type hints throughout the application.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from certsteward.config import Settings, get_settings
from certsteward.controller import ControllerManager

# ============================================================================
# Settings Dependencies
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings)]
"""Injected Settings instance (cached via lru_cache)."""


# ============================================================================
# Controller Dependencies
# ============================================================================


def get_controller(request: Request) -> ControllerManager:
    """
    Get the controller created by the application lifespan.

    Args:
        request: Current request

    Returns:
        The application's ControllerManager

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Controller is not initialized",
        )
    return controller


ControllerDep = Annotated[ControllerManager, Depends(get_controller)]
"""Injected ControllerManager instance."""
