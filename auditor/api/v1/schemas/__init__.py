"""API v1 schemas."""

from auditor.api.v1.schemas.index import ApiIndexResponse
from auditor.api.v1.schemas.reports import StoreReportRequest, StoreReportResponse
from auditor.api.v1.schemas.scan import (
    CheckWebsiteRequest,
    CheckWebsiteResponse,
    ScanRequest,
    WebsiteCheckDetails,
)
from auditor.api.v1.schemas.suggestions import SuggestionRequest, SuggestionResponse

__all__ = [
    "ApiIndexResponse",
    "CheckWebsiteRequest",
    "CheckWebsiteResponse",
    "ScanRequest",
    "StoreReportRequest",
    "StoreReportResponse",
    "SuggestionRequest",
    "SuggestionResponse",
    "WebsiteCheckDetails",
]
