"""Suggestion schemas for API v1."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from auditor.utils import validate_scan_url

MAX_MESSAGE_LENGTH = 1000


class SuggestionRequest(BaseModel):
    """Request body for a remediation suggestion.

    Either ``url`` or ``message`` must be present.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = Field(None, description="Scanned URL")
    scan_result: dict[str, Any] | None = Field(
        None, alias="scanResult", description="Scan result to base suggestions on"
    )
    message: str | None = Field(None, description="Free-form question")

    @model_validator(mode="after")
    def validate_inputs(self) -> "SuggestionRequest":
        """Require a URL or a message and bound the message length."""
        if not self.url and not self.message:
            raise ValueError("Either URL or message is required")
        if self.url:
            error = validate_scan_url(self.url)
            if error:
                raise ValueError(error)
        if self.message and len(self.message) > MAX_MESSAGE_LENGTH:
            raise ValueError(
                f"Message must be a string with maximum {MAX_MESSAGE_LENGTH} characters"
            )
        return self


class SuggestionResponse(BaseModel):
    """Generated suggestion."""

    model_config = ConfigDict(populate_by_name=True)

    suggestion: str
    url: str | None = None
    timestamp: int = Field(..., description="Generation time in ms since epoch")
    processing_time: int = Field(..., alias="processingTime", description="Duration in ms")
    model: str = Field(..., description="Model that produced the suggestion")
