"""Unit tests for the audit pipeline."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from auditor.core.exceptions import AuditError
from auditor.services.audit_pipeline import MISSING_CATEGORY_ERROR, AuditPipeline
from auditor.services.audits import (
    AuditKind,
    AuditOptions,
    AuditState,
    AxeEngine,
    BaseAudit,
    LighthouseRunner,
)

URL = "https://example.com"


class RecordingAudit(BaseAudit):
    """Audit double that records its call order."""

    def __init__(self, kind: AuditKind, calls: list[AuditKind], error: Exception | None = None):
        self.kind = kind
        self.calls = calls
        self.error = error

    async def run(self, page, options) -> dict[str, Any]:
        self.calls.append(self.kind)
        if self.error is not None:
            raise self.error
        return {"ran": self.kind.value}


@pytest.fixture
def lighthouse():
    """Create an available Lighthouse runner with a mocked run."""
    runner = LighthouseRunner("/usr/bin/lighthouse")
    runner.run = AsyncMock(
        side_effect=lambda url, port, kinds: {kind: {"score": 0.9, "issues": []} for kind in kinds}
    )
    return runner


def make_pipeline(lighthouse=None, **kwargs) -> AuditPipeline:
    return AuditPipeline(
        AxeEngine("window.axe = {};"),
        lighthouse or LighthouseRunner(None),
        action_settle_delay=0,
        **kwargs,
    )


def install_recorders(pipeline: AuditPipeline, calls: list[AuditKind], failing=()):
    for kind in list(pipeline.audits):
        error = RuntimeError(f"{kind.value} exploded") if kind in failing else None
        pipeline.audits[kind] = RecordingAudit(kind, calls, error)


class TestAuditPipelineInPage:
    """Tests for in-page audit ordering and isolation."""

    async def test_in_page_audits_run_in_fixed_order(self, page_factory):
        """Test in-page audits run sequentially regardless of request order."""
        pipeline = make_pipeline()
        calls: list[AuditKind] = []
        install_recorders(pipeline, calls)
        options = AuditOptions(url=URL, brand_colors=["#000"], dynamic_actions=[{}])

        runs = await pipeline.execute(
            page_factory(),
            ["brand-color-contrast", "accessibility", "dynamic-content"],
            options,
        )

        assert calls == [
            AuditKind.ACCESSIBILITY,
            AuditKind.DYNAMIC_CONTENT,
            AuditKind.BRAND_COLOR_CONTRAST,
        ]
        assert [run.kind for run in runs] == [
            AuditKind.BRAND_COLOR_CONTRAST,
            AuditKind.ACCESSIBILITY,
            AuditKind.DYNAMIC_CONTENT,
        ]
        assert all(run.state is AuditState.SUCCEEDED for run in runs)

    async def test_failure_is_isolated(self, page_factory):
        """Test one failing audit does not stop the others."""
        pipeline = make_pipeline()
        calls: list[AuditKind] = []
        install_recorders(pipeline, calls, failing={AuditKind.ACCESSIBILITY})
        options = AuditOptions(url=URL, brand_colors=["#000"])

        results = await pipeline.run(
            page_factory(), ["accessibility", "brand-color-contrast"], options
        )

        assert results == {
            "accessibility": {"error": "accessibility exploded"},
            "brand-color-contrast": {"ran": "brand-color-contrast"},
        }

    async def test_duplicates_run_once(self, page_factory):
        """Test a kind requested twice runs once."""
        pipeline = make_pipeline()
        calls: list[AuditKind] = []
        install_recorders(pipeline, calls)

        runs = await pipeline.execute(
            page_factory(), ["accessibility", "accessibility"], AuditOptions(url=URL)
        )

        assert len(runs) == 1
        assert calls == [AuditKind.ACCESSIBILITY]

    async def test_skipped_audits_have_no_entry(self, page_factory):
        """Test audits without inputs are skipped and omitted from the result."""
        pipeline = make_pipeline()

        results = await pipeline.run(
            page_factory(),
            ["accessibility", "dynamic-content", "brand-color-contrast"],
            AuditOptions(url=URL),
        )

        assert results == {"accessibility": {"violations": []}}

    async def test_every_run_is_terminal(self, page_factory):
        """Test execute never returns a pending or running audit."""
        pipeline = make_pipeline()

        runs = await pipeline.execute(
            page_factory(),
            ["accessibility", "dynamic-content", "seo"],
            AuditOptions(url=URL, debug_port=9222),
        )

        assert all(run.terminal for run in runs)


class TestAuditPipelineLighthouse:
    """Tests for the external Lighthouse categories."""

    async def test_unavailable_lighthouse_is_skipped(self, page_factory):
        """Test Lighthouse categories have no entry when the CLI is missing."""
        pipeline = make_pipeline()

        runs = await pipeline.execute(
            page_factory(), ["performance", "seo"], AuditOptions(url=URL, debug_port=9222)
        )

        assert [run.state for run in runs] == [AuditState.SKIPPED, AuditState.SKIPPED]
        assert runs[0].skip_reason == "lighthouse not available"

    async def test_missing_debug_port_is_skipped(self, page_factory, lighthouse):
        """Test Lighthouse is skipped when the session exposes no port."""
        pipeline = make_pipeline(lighthouse)

        results = await pipeline.run(page_factory(), ["seo"], AuditOptions(url=URL))

        assert results == {}
        lighthouse.run.assert_not_awaited()

    async def test_single_run_serves_all_categories(self, page_factory, lighthouse):
        """Test one Lighthouse invocation covers every requested category."""
        pipeline = make_pipeline(lighthouse)

        results = await pipeline.run(
            page_factory(),
            ["accessibility", "performance", "seo"],
            AuditOptions(url=URL, debug_port=9222),
        )

        lighthouse.run.assert_awaited_once_with(
            URL, 9222, [AuditKind.PERFORMANCE, AuditKind.SEO]
        )
        assert results["performance"] == {"score": 0.9, "issues": []}
        assert results["accessibility"] == {"violations": []}

    async def test_lighthouse_failure_marks_each_category(self, page_factory, lighthouse):
        """Test a failed run records an error with a null score per category."""
        lighthouse.run.side_effect = AuditError("lighthouse", "Lighthouse timed out after 90 seconds")
        pipeline = make_pipeline(lighthouse)

        results = await pipeline.run(
            page_factory(),
            ["accessibility", "seo", "pwa"],
            AuditOptions(url=URL, debug_port=9222),
        )

        assert results["seo"] == {"error": "Lighthouse timed out after 90 seconds", "score": None}
        assert results["pwa"] == {"error": "Lighthouse timed out after 90 seconds", "score": None}
        assert results["accessibility"] == {"violations": []}

    async def test_category_missing_from_report(self, page_factory, lighthouse):
        """Test a category absent from the report fails on its own."""
        lighthouse.run.side_effect = None
        lighthouse.run.return_value = {AuditKind.SEO: {"score": 1.0, "issues": []}}
        pipeline = make_pipeline(lighthouse)

        results = await pipeline.run(
            page_factory(), ["seo", "pwa"], AuditOptions(url=URL, debug_port=9222)
        )

        assert results["seo"]["score"] == 1.0
        assert results["pwa"] == {"error": MISSING_CATEGORY_ERROR, "score": None}

    async def test_concurrent_external_run(self, page_factory):
        """Test Lighthouse may overlap the in-page audits."""
        started = asyncio.Event()
        runner = LighthouseRunner("/usr/bin/lighthouse")

        async def slow_run(url, port, kinds):
            started.set()
            await asyncio.sleep(0)
            return {kind: {"score": 0.5, "issues": []} for kind in kinds}

        runner.run = AsyncMock(side_effect=slow_run)
        pipeline = make_pipeline(runner, external_concurrently=True)
        overlap = MagicMock()

        class WaitingAudit(BaseAudit):
            kind = AuditKind.ACCESSIBILITY

            async def run(self, page, options):
                await asyncio.wait_for(started.wait(), timeout=1)
                overlap()
                return {"violations": []}

        pipeline.audits[AuditKind.ACCESSIBILITY] = WaitingAudit()

        results = await pipeline.run(
            page_factory(),
            ["accessibility", "seo"],
            AuditOptions(url=URL, debug_port=9222),
        )

        overlap.assert_called_once()
        assert results["seo"]["score"] == 0.5


class TestCapabilities:
    """Tests for capability reporting."""

    def test_capabilities(self, lighthouse):
        """Test the pipeline reports which engines it can use."""
        assert make_pipeline(lighthouse).capabilities() == {"axe": True, "lighthouse": True}
        assert AuditPipeline(AxeEngine(None), LighthouseRunner(None)).capabilities() == {
            "axe": False,
            "lighthouse": False,
        }
