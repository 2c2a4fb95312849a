"""API index schemas for API v1."""

from pydantic import BaseModel, Field


class ApiIndexResponse(BaseModel):
    """Machine-readable list of the public endpoints."""

    name: str = Field(..., description="Application name")
    version: str = Field(..., description="Application version")
    endpoints: dict[str, str] = Field(
        ..., description="Endpoint summaries keyed by 'METHOD /path'"
    )
    timestamp: str = Field(..., description="ISO 8601 generation time")
