"""Structural accessibility audit backed by axe-core.

axe-core is a browser bundle: it is read from disk once at startup,
injected into the page and invoked there.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from playwright.async_api import Page

from auditor.core.exceptions import AuditError
from auditor.core.logging import get_logger
from auditor.services.audits.base import AuditKind, AuditOptions, BaseAudit

logger = get_logger(__name__)

__all__ = ["WCAG_RULESET_TAGS", "AccessibilityAudit", "AxeEngine"]

WCAG_RULESET_TAGS = ["wcag2a", "wcag2aa", "wcag21a", "wcag21aa"]

_AXE_PRESENT_JS = "() => typeof window.axe !== 'undefined'"
_AXE_RUN_JS = "async (options) => await window.axe.run(document, options)"

ERROR_PAGE_NOTE = (
    "Accessibility audit performed on error page content. "
    "Results may not represent the actual website functionality."
)
ERROR_PAGE_RECOMMENDATION = (
    "Fix the website backend issues first, then re-run accessibility scan on the working website."
)


class AxeEngine:
    """Injects and runs axe-core inside a page."""

    def __init__(self, source: str | None):
        self.source = source

    @classmethod
    def from_path(cls, path: str | Path) -> AxeEngine:
        """Load the axe-core bundle from disk.

        A missing bundle leaves the engine unavailable rather than failing startup.
        """
        try:
            source = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.error("axe_core_load_failed", path=str(path), error=str(e))
            return cls(None)

        logger.info("axe_core_loaded", path=str(path), size=len(source))
        return cls(source)

    @property
    def available(self) -> bool:
        return bool(self.source)

    async def run(self, page: Page) -> dict[str, Any]:
        """Evaluate the WCAG ruleset against the page, keeping violations only.

        Raises:
            AuditError: If axe-core is not loaded.
        """
        if not self.source:
            raise AuditError(AuditKind.ACCESSIBILITY.value, "axe-core is not available")

        # Navigation triggered by an action can drop a previous injection
        if not await page.evaluate(_AXE_PRESENT_JS):
            await page.add_script_tag(content=self.source)

        result = await page.evaluate(
            _AXE_RUN_JS,
            {
                "runOnly": {"type": "tag", "values": WCAG_RULESET_TAGS},
                "resultTypes": ["violations"],
            },
        )
        return {"violations": list((result or {}).get("violations") or [])}


class AccessibilityAudit(BaseAudit):
    """WCAG 2.0/2.1 A and AA rule evaluation of the loaded page."""

    kind = AuditKind.ACCESSIBILITY

    def __init__(self, engine: AxeEngine):
        self.engine = engine

    async def run(self, page: Page, options: AuditOptions) -> dict[str, Any]:
        payload = await self.engine.run(page)
        if options.page_has_error:
            payload["note"] = ERROR_PAGE_NOTE
            payload["recommendation"] = ERROR_PAGE_RECOMMENDATION

        logger.info(
            "accessibility_audit_completed",
            url=options.url,
            violations=len(payload["violations"]),
            error_page=options.page_has_error,
        )
        return payload
