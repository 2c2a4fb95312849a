"""Report storage schemas for API v1."""

from pydantic import BaseModel, ConfigDict, Field


class StoreReportRequest(BaseModel):
    """A client report. Any fields are kept; ``url`` is required."""

    model_config = ConfigDict(extra="allow")

    url: str | None = Field(None, description="URL the report was produced for")


class StoreReportResponse(BaseModel):
    """Identifier of a stored report."""

    id: str = Field(..., description="Opaque report id")
    timestamp: int = Field(..., description="Storage time in ms since epoch")
