"""
Application lifecycle management.

Builds the controller on startup, starts its workers and stops them on
shutdown.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from certsteward.config import get_settings
from certsteward.controller import ControllerManager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    A controller already placed on ``app.state`` (e.g. by tests) is used
    as-is; otherwise one is built from settings.

    Args:
        app: FastAPI application instance
    """
    settings = get_settings()
    logger.info(" Starting certsteward...")
    logger.info(f"Application version: {app.version}")

    controller: ControllerManager | None = getattr(app.state, "controller", None)
    if controller is None:
        controller = ControllerManager.from_settings(settings)
        app.state.controller = controller

    if settings.start_controller:
        await controller.start()
    else:
        logger.warning("Controller workers disabled (START_CONTROLLER=false)")

    yield

    logger.info(" Shutting down certsteward...")
    await controller.stop()
