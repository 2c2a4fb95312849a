"""Services package."""

from .audit_pipeline import AuditPipeline
from .browser_pool import BrowserPool, Session
from .navigation import LoadStrategy, NavigationController, PageHandle
from .page_health import PageHealthInspector, PageStatus
from .rate_limiter import SlidingWindowRateLimiter
from .report_store import ReportStore, StoredReport
from .scan_service import ScanService, validate_scan_inputs
from .suggestion import SuggestionClient

__all__ = [
    "AuditPipeline",
    "BrowserPool",
    "LoadStrategy",
    "NavigationController",
    "PageHandle",
    "PageHealthInspector",
    "PageStatus",
    "ReportStore",
    "ScanService",
    "Session",
    "SlidingWindowRateLimiter",
    "StoredReport",
    "SuggestionClient",
    "validate_scan_inputs",
]
