"""Common API enums."""

from enum import Enum


class WebsiteCheckStatus(str, Enum):
    """Outcome of the quick website check."""

    HEALTHY = "healthy"
    ERROR = "error"
    MINIMAL_CONTENT = "minimal_content"
    SLOW = "slow"
    NOT_FOUND = "not_found"
    UNREACHABLE = "unreachable"


class ErrorCode(str, Enum):
    """Machine-readable error codes carried in error responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    REPORT_NOT_FOUND = "REPORT_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
