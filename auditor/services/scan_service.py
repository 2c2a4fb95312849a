"""Scan orchestration.

Glues the pool, navigation, page health and audit pipeline into the two
browser-backed operations the API exposes: a full scan and a quick website
check. The session is always released, including on timeout.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from auditor.core.exceptions import (
    NavigationError,
    NavigationErrorKind,
    PoolExhausted,
    ScanValidationError,
)
from auditor.core.logging import get_logger
from auditor.core.metrics import active_scans, scan_duration_seconds, scans_total
from auditor.services.audit_pipeline import AuditPipeline
from auditor.services.audits import AuditKind, AuditOptions
from auditor.services.browser_pool import BrowserPool
from auditor.services.navigation import NavigationController
from auditor.services.page_health import PageHealthInspector, PageStatus
from auditor.utils import is_hex_color, validate_scan_url
from config import Settings

logger = get_logger(__name__)

__all__ = ["ScanService", "validate_scan_inputs"]

DEFAULT_AUDITS = [AuditKind.ACCESSIBILITY.value]
VALID_AUDITS = {kind.value for kind in AuditKind}

CHECK_RECOMMENDATIONS = {
    "error": (
        "Website has backend issues. Fix server/database problems before running "
        "accessibility scan."
    ),
    "healthy": "Website is accessible and ready for accessibility scanning.",
    "minimal_content": "Website loads but has minimal content. Scan results may be limited.",
}
UNREACHABLE_RECOMMENDATION = (
    "Check the URL and ensure the website is online before scanning."
)

# Quick check outcome per navigation failure kind
_CHECK_FAILURES = {
    NavigationErrorKind.TIMEOUT: ("slow", "Website is too slow to respond"),
    NavigationErrorKind.DNS_NOT_FOUND: ("not_found", "Website domain not found"),
}
_CHECK_UNREACHABLE = ("unreachable", "Website could not be reached")


def validate_scan_inputs(
    url: object,
    audits: Sequence[str],
    brand_colors: Sequence[str],
    dynamic_actions: Sequence[Any],
    max_dynamic_actions: int = 10,
) -> None:
    """Validate a scan request before any resource is acquired.

    Individual dynamic actions are validated later, per action, by the
    dynamic-content audit.

    Raises:
        ScanValidationError: On the first invalid field.
    """
    error = validate_scan_url(url)
    if error:
        raise ScanValidationError(error)

    invalid_audits = [audit for audit in audits if audit not in VALID_AUDITS]
    if invalid_audits:
        raise ScanValidationError(f"Invalid audit types: {', '.join(map(str, invalid_audits))}")

    invalid_colors = [color for color in brand_colors if not is_hex_color(color)]
    if invalid_colors:
        raise ScanValidationError(f"Invalid hex colors: {', '.join(map(str, invalid_colors))}")

    if len(dynamic_actions) > max_dynamic_actions:
        raise ScanValidationError(
            f"Too many dynamic actions. Maximum {max_dynamic_actions} allowed."
        )


def _now_ms() -> int:
    return int(time.time() * 1000)


class ScanService:
    """Runs scans and quick checks against the browser pool."""

    def __init__(
        self,
        settings: Settings,
        pool: BrowserPool,
        navigator: NavigationController,
        pipeline: AuditPipeline,
        inspector: PageHealthInspector | None = None,
        check_inspector: PageHealthInspector | None = None,
    ):
        """Initialize scan service.

        Args:
            settings: Application settings
            pool: Browser pool sessions are drawn from
            navigator: Page loader
            pipeline: Audit pipeline
            inspector: Page health inspector for full scans
            check_inspector: Page health inspector for the quick check
        """
        self.settings = settings
        self.pool = pool
        self.navigator = navigator
        self.pipeline = pipeline
        self.inspector = inspector or PageHealthInspector()
        self.check_inspector = check_inspector or PageHealthInspector(
            min_content_length=50, preview_length=150
        )
        self.scan_timeout = settings.scan_timeout
        self.max_dynamic_actions = settings.audit_max_dynamic_actions

    async def scan(
        self,
        url: str,
        audits: Sequence[str] | None = None,
        brand_colors: Sequence[str] | None = None,
        dynamic_actions: Sequence[Any] | None = None,
    ) -> dict[str, Any]:
        """Load ``url`` and run the requested audits against it.

        Returns:
            Scan result with one entry per attempted audit kind.

        Raises:
            ScanValidationError: If the request is malformed.
            PoolExhausted: If no browser session is available.
            NavigationError: If the page could not be loaded or the scan timed out.
        """
        audits = list(audits) if audits is not None else list(DEFAULT_AUDITS)
        brand_colors = list(brand_colors or [])
        dynamic_actions = list(dynamic_actions or [])
        validate_scan_inputs(
            url, audits, brand_colors, dynamic_actions, self.max_dynamic_actions
        )

        started = time.monotonic()
        result: dict[str, Any] = {
            "url": url,
            "timestamp": _now_ms(),
            "auditsRequested": audits,
        }
        logger.info("scan_starting", url=url, audits=audits)

        outcome = "error"
        active_scans.inc()
        try:
            async with asyncio.timeout(self.scan_timeout):
                async with self.pool.session() as session:
                    handle = await self.navigator.load(session, url)
                    try:
                        status = await self.inspector.inspect(handle.page)
                        options = AuditOptions(
                            url=url,
                            brand_colors=brand_colors,
                            dynamic_actions=dynamic_actions,
                            page_has_error=status.has_error,
                            debug_port=session.debug_port,
                        )
                        audit_results = await self.pipeline.run(handle.page, audits, options)
                    finally:
                        await self.navigator.close(handle)
            outcome = "success"
        except TimeoutError as e:
            outcome = "timeout"
            logger.error("scan_timeout", url=url, timeout=self.scan_timeout)
            raise NavigationError(
                NavigationErrorKind.TIMEOUT,
                f"Scan exceeded {self.scan_timeout} seconds",
                url=url,
            ) from e
        except PoolExhausted:
            outcome = "busy"
            raise
        except NavigationError as e:
            outcome = e.kind.value
            raise
        finally:
            active_scans.dec()
            scans_total.labels(outcome=outcome).inc()
            scan_duration_seconds.observe(time.monotonic() - started)

        result["websiteStatus"] = status.to_website_status()
        result.update(audit_results)
        result["scanDuration"] = int((time.monotonic() - started) * 1000)

        logger.info(
            "scan_completed",
            url=url,
            duration_ms=result["scanDuration"],
            audits_returned=list(audit_results),
            page_has_error=status.has_error,
        )
        return result

    async def check_website(self, url: str) -> dict[str, Any]:
        """Single-pass load and health check, without any audit.

        Load failures are reported in the body rather than raised.

        Raises:
            ScanValidationError: If the URL is invalid.
            PoolExhausted: If no browser session is available.
        """
        error = validate_scan_url(url)
        if error:
            raise ScanValidationError(error)

        logger.info("website_check_starting", url=url)
        try:
            async with self.pool.session() as session:
                handle = await self.navigator.probe(session, url)
                try:
                    status = await self.check_inspector.inspect(handle.page)
                finally:
                    await self.navigator.close(handle)
        except NavigationError as e:
            check_status, message = _CHECK_FAILURES.get(e.kind, _CHECK_UNREACHABLE)
            logger.warning(
                "website_check_failed", url=url, status=check_status, kind=e.kind.value
            )
            return self._check_failure(url, check_status, message)

        # Page loaded but could not be read (tab crashed or browser closed)
        if not status.loaded:
            check_status, message = _CHECK_UNREACHABLE
            logger.warning("website_check_unreadable", url=url)
            return self._check_failure(url, check_status, message)

        check_status = self._check_status(status)
        logger.info(
            "website_check_completed",
            url=url,
            status=check_status,
            load_time_ms=handle.load_time_ms,
        )
        return {
            "url": url,
            "status": check_status,
            "accessible": not status.has_error,
            "loadTime": handle.load_time_ms,
            "details": {
                "title": status.title or "No title",
                "hasContent": status.has_content,
                "hasError": status.has_error,
                "contentPreview": status.preview,
                "hasImages": status.has_images,
                "hasLinks": status.has_links,
            },
            "recommendation": CHECK_RECOMMENDATIONS[check_status],
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @staticmethod
    def _check_failure(url: str, check_status: str, message: str) -> dict[str, Any]:
        return {
            "url": url,
            "status": check_status,
            "accessible": False,
            "error": message,
            "recommendation": UNREACHABLE_RECOMMENDATION,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @staticmethod
    def _check_status(status: PageStatus) -> str:
        if status.has_error:
            return "error"
        if status.has_content:
            return "healthy"
        return "minimal_content"
