"""Scan and website-check schemas for API v1.

Bodies are typed here; field semantics (URL scheme, audit names, colour
format, action count) are checked by the scan service so that every caller
gets the same rules.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from auditor.api.schemas import WebsiteCheckStatus


class ScanRequest(BaseModel):
    """Request body for a full scan.

    Example:
        {
            "url": "https://example.com",
            "audits": ["accessibility", "brand-color-contrast"],
            "brandColors": ["#0055ff"],
            "dynamicActions": [{"type": "click", "selector": "#menu"}]
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = Field(None, description="Target URL (http or https)")
    audits: list[str] = Field(
        default_factory=lambda: ["accessibility"],
        description="Audit kinds to run",
    )
    brand_colors: list[str] = Field(
        default_factory=list,
        alias="brandColors",
        description="Brand colours as #rgb or #rrggbb",
    )
    dynamic_actions: list[Any] = Field(
        default_factory=list,
        alias="dynamicActions",
        description="Scripted interactions; each is validated when it runs",
    )


class CheckWebsiteRequest(BaseModel):
    """Request body for the quick website check."""

    url: str | None = Field(None, description="Target URL (http or https)")


class WebsiteCheckDetails(BaseModel):
    """Page facts gathered by the quick check."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    has_content: bool = Field(..., alias="hasContent")
    has_error: bool = Field(..., alias="hasError")
    content_preview: str = Field(..., alias="contentPreview")
    has_images: bool = Field(..., alias="hasImages")
    has_links: bool = Field(..., alias="hasLinks")


class CheckWebsiteResponse(BaseModel):
    """Quick check outcome. Load failures carry ``error`` instead of ``details``."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    status: WebsiteCheckStatus
    accessible: bool
    load_time: int | None = Field(None, alias="loadTime", description="Load time in ms")
    details: WebsiteCheckDetails | None = None
    error: str | None = None
    recommendation: str
    timestamp: str = Field(..., description="Check timestamp (ISO 8601)")
