"""Health check response models."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok", description="Service status")
    version: str = Field(..., description="Controller version")
    controller_running: bool = Field(
        ..., description="Whether the reconcile workers are running"
    )
    queued: int = Field(0, description="Certificates waiting for a reconcile")
    message: str | None = Field(None, description="Optional status message")
