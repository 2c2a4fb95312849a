"""Domain exceptions for the scan engine.

The API layer translates these into HTTP responses in one place
(``auditor.api.v1.decorators.handle_service_errors``).
"""

from __future__ import annotations

from enum import Enum

__all__ = [
    "AuditError",
    "NavigationError",
    "NavigationErrorKind",
    "PoolExhausted",
    "ReportNotFound",
    "ScanValidationError",
    "SuggestionError",
    "SuggestionErrorKind",
]


class ScanValidationError(ValueError):
    """Raised when a request is malformed. Never retried."""


class PoolExhausted(Exception):
    """Raised when the browser pool is at its concurrency ceiling.

    Callers should retry with backoff; this is not fatal to the process.
    """

    def __init__(self, max_sessions: int):
        """Initialize pool exhausted error.

        Args:
            max_sessions: Configured concurrency ceiling
        """
        super().__init__(f"Maximum concurrent browsers reached ({max_sessions})")
        self.max_sessions = max_sessions


class NavigationErrorKind(str, Enum):
    """Classification of a failed page load.

    This is the single source of truth for the HTTP status and the
    user-facing message of a navigation failure.
    """

    TIMEOUT = "timeout"
    DNS_NOT_FOUND = "dns-not-found"
    CONNECTION_REFUSED = "connection-refused"
    TLS_ERROR = "tls-error"
    REDIRECT_LOOP = "redirect-loop"
    OTHER = "other"

    @property
    def status_code(self) -> int:
        return _NAVIGATION_STATUS[self]

    @property
    def user_message(self) -> str:
        return _NAVIGATION_MESSAGES[self]


_NAVIGATION_STATUS = {
    NavigationErrorKind.TIMEOUT: 408,
    NavigationErrorKind.DNS_NOT_FOUND: 404,
    NavigationErrorKind.CONNECTION_REFUSED: 503,
    NavigationErrorKind.TLS_ERROR: 500,
    NavigationErrorKind.REDIRECT_LOOP: 500,
    NavigationErrorKind.OTHER: 500,
}

_NAVIGATION_MESSAGES = {
    NavigationErrorKind.TIMEOUT: "Website took too long to respond. Please try again.",
    NavigationErrorKind.DNS_NOT_FOUND: "Website not found. Please check the URL.",
    NavigationErrorKind.CONNECTION_REFUSED: (
        "Website is not accessible. It may be down or blocking automated requests."
    ),
    NavigationErrorKind.TLS_ERROR: "SSL certificate error. The website may have security issues.",
    NavigationErrorKind.REDIRECT_LOOP: (
        "Too many redirects when accessing the website. Its configuration may have issues."
    ),
    NavigationErrorKind.OTHER: "Failed to load the website.",
}


class NavigationError(Exception):
    """Raised when every load strategy failed for a URL."""

    def __init__(self, kind: NavigationErrorKind, message: str, url: str | None = None):
        """Initialize navigation error.

        Args:
            kind: Classified failure kind
            message: Underlying failure message
            url: URL that failed to load
        """
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.url = url


class AuditError(Exception):
    """Raised by an individual audit. Always embedded in the result, never surfaced."""

    def __init__(self, kind: str, message: str):
        """Initialize audit error.

        Args:
            kind: Audit kind that failed
            message: Failure description
        """
        super().__init__(message)
        self.kind = kind
        self.message = message


class ReportNotFound(LookupError):
    """Raised when a report id is unknown or expired."""

    def __init__(self, report_id: str):
        super().__init__(f"Report with id {report_id} not found or expired")
        self.report_id = report_id


class SuggestionErrorKind(str, Enum):
    """Classification of suggestion service failures."""

    UNAVAILABLE = "unavailable"
    CONFIGURATION = "configuration"
    QUOTA = "quota"
    MODEL = "model"
    TIMEOUT = "timeout"
    SAFETY = "safety"
    OTHER = "other"

    @property
    def status_code(self) -> int:
        return {
            SuggestionErrorKind.UNAVAILABLE: 500,
            SuggestionErrorKind.CONFIGURATION: 500,
            SuggestionErrorKind.QUOTA: 503,
            SuggestionErrorKind.MODEL: 503,
            SuggestionErrorKind.TIMEOUT: 408,
            SuggestionErrorKind.SAFETY: 400,
            SuggestionErrorKind.OTHER: 500,
        }[self]

    @property
    def user_message(self) -> str:
        return {
            SuggestionErrorKind.UNAVAILABLE: "AI service is currently unavailable",
            SuggestionErrorKind.CONFIGURATION: (
                "AI service configuration error. Please contact support."
            ),
            SuggestionErrorKind.QUOTA: (
                "AI service is temporarily unavailable due to high demand. "
                "Please try again later."
            ),
            SuggestionErrorKind.MODEL: (
                "AI service model is temporarily unavailable. Please try again later."
            ),
            SuggestionErrorKind.TIMEOUT: "AI service took too long to respond. Please try again.",
            SuggestionErrorKind.SAFETY: (
                "Request was blocked by content safety filters. Please rephrase your question."
            ),
            SuggestionErrorKind.OTHER: "Failed to generate AI suggestion",
        }[self]


class SuggestionError(Exception):
    """Raised when the suggestion generator fails."""

    def __init__(self, kind: SuggestionErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message
