"""Common API schemas."""

from auditor.api.schemas.base import ErrorResponse, HealthResponse, RootResponse
from auditor.api.schemas.enums import ErrorCode, WebsiteCheckStatus

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "HealthResponse",
    "RootResponse",
    "WebsiteCheckStatus",
]
