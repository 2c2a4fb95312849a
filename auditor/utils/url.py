"""URL validation utilities for scan targets."""

from urllib.parse import urlparse

ALLOWED_SCHEMES = {"http", "https"}


def validate_scan_url(url: object) -> str | None:
    """Validate that a value is an absolute http(s) URL.

    Args:
        url: Candidate value from a request body

    Returns:
        None if valid, otherwise an error message

    Examples:
        >>> validate_scan_url("https://example.com")
        >>> validate_scan_url("ftp://example.com")
        'URL must use HTTP or HTTPS protocol'
    """
    if not url or not isinstance(url, str):
        return "URL is required and must be a string"

    try:
        parsed = urlparse(url)
    except ValueError:
        return "Invalid URL format"

    if not parsed.scheme or not parsed.netloc:
        return "Invalid URL format"

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return "URL must use HTTP or HTTPS protocol"

    return None
