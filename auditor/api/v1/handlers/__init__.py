"""API v1 handlers."""

from .reports import get_report_handler, store_report_handler
from .scan import check_website_handler, scan_handler
from .suggestions import suggestion_handler

__all__ = [
    "check_website_handler",
    "get_report_handler",
    "scan_handler",
    "store_report_handler",
    "suggestion_handler",
]
