"""Page health inspection.

Heuristically decides whether a loaded page is a genuine page or a backend
error surface (500 pages, database errors, ...). The verdict is metadata:
a flagged page is still audited.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from playwright.async_api import Page

from auditor.core.logging import get_logger
from auditor.core.metrics import error_pages_detected_total

logger = get_logger(__name__)

__all__ = ["DEFAULT_ERROR_INDICATORS", "PageHealthInspector", "PageStatus"]

DEFAULT_ERROR_INDICATORS: tuple[str, ...] = (
    "error",
    "exception",
    "mysql",
    "database",
    "connection failed",
    "internal server error",
    "500",
    "404",
    "not found",
    "application error",
    "could not connect",
    "database error",
)

BACKEND_ERROR_TYPE = "Website appears to have backend/database issues"

_PAGE_SNAPSHOT_JS = """() => {
    const body = document.body ? document.body.innerText.trim() : '';
    return {
        title: document.title || '',
        text: body,
        hasImages: document.images.length > 0,
        hasLinks: document.links.length > 0,
    };
}"""


@dataclass
class PageStatus:
    """Health verdict for a loaded page."""

    loaded: bool
    title: str = ""
    content_length: int = 0
    has_content: bool = False
    has_error: bool = False
    error_type: str | None = None
    preview: str = ""
    has_images: bool = False
    has_links: bool = False

    @property
    def note(self) -> str:
        if not self.loaded:
            return "Accessibility scan attempted despite load issues"
        if self.has_error:
            return (
                "Website has backend issues, but accessibility scan was performed "
                "on available content"
            )
        return "Website loaded successfully"

    def to_website_status(self) -> dict[str, Any]:
        """Render as the ``websiteStatus`` block of a scan result."""
        if not self.loaded:
            return {
                "loaded": False,
                "hasError": False,
                "error": "Could not verify page load state",
                "note": self.note,
            }
        return {
            "loaded": True,
            "title": self.title,
            "contentLength": self.content_length,
            "hasError": self.has_error,
            "errorType": self.error_type,
            "note": self.note,
        }


class PageHealthInspector:
    """Flags pages whose title or visible text contains a failure indicator.

    The indicator list is data; swap it to change the heuristic.
    """

    def __init__(
        self,
        indicators: Iterable[str] = DEFAULT_ERROR_INDICATORS,
        min_content_length: int = 10,
        preview_length: int = 200,
    ):
        self.indicators = tuple(i.lower() for i in indicators)
        self.min_content_length = min_content_length
        self.preview_length = preview_length

    def matches_error(self, title: str, text: str) -> bool:
        """Case-insensitive substring match against the indicator list."""
        haystacks = (title.lower(), text.lower())
        return any(indicator in hay for indicator in self.indicators for hay in haystacks)

    def evaluate(self, title: str, text: str) -> PageStatus:
        """Build a status from already-extracted title and visible text."""
        has_error = self.matches_error(title, text)
        return PageStatus(
            loaded=True,
            title=title,
            content_length=len(text),
            has_content=len(text) > self.min_content_length,
            has_error=has_error,
            error_type=BACKEND_ERROR_TYPE if has_error else None,
            preview=text[: self.preview_length],
        )

    async def inspect(self, page: Page) -> PageStatus:
        """Inspect a loaded page. Never raises: failures yield ``loaded=False``."""
        try:
            snapshot = await page.evaluate(_PAGE_SNAPSHOT_JS)
        except Exception as e:
            logger.warning("page_inspection_failed", error=str(e))
            return PageStatus(loaded=False)

        status = self.evaluate(snapshot.get("title") or "", snapshot.get("text") or "")
        status.has_images = bool(snapshot.get("hasImages"))
        status.has_links = bool(snapshot.get("hasLinks"))

        if status.has_error:
            error_pages_detected_total.inc()
            logger.warning(
                "page_backend_error_detected",
                title=status.title,
                preview=status.preview,
            )
        elif not status.has_content:
            logger.warning("page_minimal_content", content_length=status.content_length)
        else:
            logger.info(
                "page_inspected",
                title=status.title,
                content_length=status.content_length,
            )
        return status
