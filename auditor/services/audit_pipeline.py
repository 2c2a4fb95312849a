"""Audit pipeline.

Runs the requested audits against one loaded page. In-page audits run
strictly in order because they share the page; a failure in one audit is
recorded against that audit and never stops the others. The Lighthouse
categories are served by a single external run through the session's
debugging port, optionally alongside the in-page audits.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterable, Sequence
from typing import Any

from playwright.async_api import Page

from auditor.core.logging import get_logger
from auditor.core.metrics import audit_duration_seconds, audits_total
from auditor.services.audits import (
    IN_PAGE_ORDER,
    LIGHTHOUSE_KINDS,
    AccessibilityAudit,
    AuditKind,
    AuditOptions,
    AuditRun,
    AxeEngine,
    BaseAudit,
    BrandColorAudit,
    DynamicContentAudit,
    LighthouseRunner,
)
from config import Settings

logger = get_logger(__name__)

__all__ = ["AuditPipeline"]

MISSING_CATEGORY_ERROR = "Category missing from Lighthouse report"


def _dedupe(kinds: Iterable[AuditKind | str]) -> list[AuditKind]:
    ordered: dict[AuditKind, None] = {}
    for kind in kinds:
        ordered.setdefault(AuditKind(kind), None)
    return list(ordered)


class AuditPipeline:
    """Executes requested audits with per-audit failure isolation.

    Usage:
        pipeline = AuditPipeline.from_settings(settings, axe, lighthouse)
        results = await pipeline.run(page, ["accessibility", "seo"], options)
    """

    def __init__(
        self,
        axe: AxeEngine,
        lighthouse: LighthouseRunner,
        action_timeout: float = 5.0,
        action_settle_delay: float = 1.0,
        external_concurrently: bool = False,
    ):
        """Initialize audit pipeline.

        Args:
            axe: Loaded axe-core engine
            lighthouse: Lighthouse runner (may be unavailable)
            action_timeout: Timeout in seconds for one dynamic action
            action_settle_delay: Seconds to wait after each dynamic action
            external_concurrently: Run Lighthouse alongside the in-page audits
        """
        self.axe = axe
        self.lighthouse = lighthouse
        self.external_concurrently = external_concurrently
        self.audits: dict[AuditKind, BaseAudit] = {
            AuditKind.ACCESSIBILITY: AccessibilityAudit(axe),
            AuditKind.DYNAMIC_CONTENT: DynamicContentAudit(
                axe, action_timeout=action_timeout, settle_delay=action_settle_delay
            ),
            AuditKind.BRAND_COLOR_CONTRAST: BrandColorAudit(),
        }

    @classmethod
    def from_settings(
        cls, settings: Settings, axe: AxeEngine, lighthouse: LighthouseRunner
    ) -> AuditPipeline:
        return cls(
            axe,
            lighthouse,
            action_timeout=settings.audit_action_timeout,
            action_settle_delay=settings.audit_action_settle_delay,
            external_concurrently=settings.audit_external_concurrently,
        )

    def capabilities(self) -> dict[str, bool]:
        """Audit engines available to this process."""
        return {"axe": self.axe.available, "lighthouse": self.lighthouse.available}

    async def execute(
        self, page: Page, kinds: Iterable[AuditKind | str], options: AuditOptions
    ) -> list[AuditRun]:
        """Run the requested audits and return every run in request order.

        Every returned run is in a terminal state.
        """
        runs = {kind: AuditRun(kind) for kind in _dedupe(kinds)}
        external = [runs[kind] for kind in runs if kind in LIGHTHOUSE_KINDS]
        port = options.debug_port

        if external:
            reason = self._external_skip_reason(options)
            if reason is not None:
                for run in external:
                    self._skip(run, reason)
                external = []

        external_task: asyncio.Task[None] | None = None
        if external and port is not None and self.external_concurrently:
            external_task = asyncio.create_task(self._run_external(external, options, port))

        try:
            for kind in IN_PAGE_ORDER:
                if kind in runs:
                    await self._run_in_page(self.audits[kind], runs[kind], page, options)

            if external_task is not None:
                await external_task
            elif external and port is not None:
                await self._run_external(external, options, port)
        finally:
            if external_task is not None and not external_task.done():
                external_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await external_task

        return list(runs.values())

    async def run(
        self, page: Page, kinds: Iterable[AuditKind | str], options: AuditOptions
    ) -> dict[str, Any]:
        """Run the requested audits and return payloads keyed by audit kind.

        Skipped audits have no entry; failed audits map to ``{"error": ...}``.
        """
        results: dict[str, Any] = {}
        for run in await self.execute(page, kinds, options):
            entry = run.result_entry()
            if entry is not None:
                results[run.kind.value] = entry
        return results

    def _external_skip_reason(self, options: AuditOptions) -> str | None:
        if not self.lighthouse.available:
            return "lighthouse not available"
        if options.debug_port is None:
            return "no remote debugging port"
        return None

    async def _run_in_page(
        self, audit: BaseAudit, run: AuditRun, page: Page, options: AuditOptions
    ) -> None:
        reason = audit.should_skip(options)
        if reason is not None:
            self._skip(run, reason)
            return

        run.start()
        logger.info("audit_started", kind=run.kind.value, url=options.url)
        try:
            payload = await audit.run(page, options)
        except Exception as e:
            logger.error(
                "audit_failed",
                kind=run.kind.value,
                url=options.url,
                error=str(e),
                error_type=type(e).__name__,
            )
            run.fail(str(e))
        else:
            run.succeed(payload)
        self._record(run)

    async def _run_external(
        self, runs: Sequence[AuditRun], options: AuditOptions, port: int
    ) -> None:
        for run in runs:
            run.start()
        kinds = [run.kind for run in runs]
        logger.info("audit_started", kind="lighthouse", url=options.url, categories=len(kinds))
        try:
            payloads = await self.lighthouse.run(options.url, port, kinds)
        except Exception as e:
            logger.error(
                "audit_failed",
                kind="lighthouse",
                url=options.url,
                error=str(e),
                error_type=type(e).__name__,
            )
            for run in runs:
                run.fail(str(e), score=None)
                self._record(run)
            return

        for run in runs:
            payload = payloads.get(run.kind)
            if payload is None:
                run.fail(MISSING_CATEGORY_ERROR, score=None)
            else:
                run.succeed(payload)
            self._record(run)

    def _skip(self, run: AuditRun, reason: str) -> None:
        run.skip(reason)
        logger.info("audit_skipped", kind=run.kind.value, reason=reason)
        self._record(run)

    def _record(self, run: AuditRun) -> None:
        audits_total.labels(kind=run.kind.value, state=run.state.value).inc()
        if run.duration is not None:
            audit_duration_seconds.labels(kind=run.kind.value).observe(run.duration)
