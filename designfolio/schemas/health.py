"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class DependencyHealth(BaseModel):
    status: Literal["healthy", "unhealthy"]
    message: str
    error: str | None = None


class HealthResponse(BaseModel):
    """Response body for the health check endpoints."""

    status: Literal["healthy", "unhealthy"] = Field(default="healthy", description="Service status")
    timestamp: str = Field(description="ISO-8601 time of the check")
    uptime: float = Field(description="Seconds since the process started")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    version: str
    responseTime: str | None = None
    dependencies: dict[str, DependencyHealth] | None = Field(
        default=None,
        description="Per-dependency status when the connection check is performed",
    )
