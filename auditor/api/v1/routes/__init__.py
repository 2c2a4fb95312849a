"""API v1 routes."""

from .index import api_index
from .reports import router as reports_router
from .scan import router as scan_router
from .suggestions import router as suggestions_router

__all__ = ["api_index", "reports_router", "scan_router", "suggestions_router"]
