"""Base API response schemas."""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall health status", examples=["healthy"])
    timestamp: str = Field(..., description="Check timestamp (ISO 8601)")
    uptime: float = Field(..., description="Seconds since application startup")
    environment: str = Field(..., description="Environment name")
    services: dict[str, bool] = Field(
        ..., description="Optional engine availability (axe, lighthouse, gemini)"
    )
    browser_pool: dict[str, Any] = Field(..., description="Browser pool occupancy")
    reports_in_memory: int = Field(..., description="Reports currently stored")


class RootResponse(BaseModel):
    """Root endpoint response."""

    message: str = Field(..., description="Welcome message")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    status: str = Field("running", description="Service status")
    documentation: str = Field("/docs", description="Interactive API documentation path")


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error message")
    error_code: str | None = Field(None, description="Machine-readable error code")
    field: str | None = Field(
        None, description="Field that caused the error (for validation errors)"
    )
