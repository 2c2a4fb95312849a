"""Unit tests for the individual audits."""

from unittest.mock import AsyncMock

import pytest

from auditor.core.exceptions import AuditError
from auditor.services.audits import (
    AccessibilityAudit,
    AuditKind,
    AuditOptions,
    AuditRun,
    AuditState,
    AxeEngine,
    BrandColorAudit,
    DynamicContentAudit,
    InvalidAuditTransition,
    analyze_brand_colors,
)
from auditor.services.audits.accessibility import WCAG_RULESET_TAGS

VIOLATION = {"id": "image-alt", "impact": "critical", "nodes": [{"target": ["img"]}]}


@pytest.fixture
def axe():
    """Create an axe engine with an inline bundle."""
    return AxeEngine("window.axe = {};")


class TestAuditRun:
    """Tests for the per-audit state machine."""

    def test_success_path(self):
        """Test pending → running → succeeded."""
        run = AuditRun(AuditKind.ACCESSIBILITY)
        run.start()
        run.succeed({"violations": []})

        assert run.state is AuditState.SUCCEEDED
        assert run.terminal
        assert run.duration is not None
        assert run.result_entry() == {"violations": []}

    def test_failure_entry(self):
        """Test a failed audit reports its error with extra fields."""
        run = AuditRun(AuditKind.SEO)
        run.start()
        run.fail("boom", score=None)

        assert run.result_entry() == {"error": "boom", "score": None}

    def test_skip_has_no_entry(self):
        """Test a skipped audit contributes nothing."""
        run = AuditRun(AuditKind.DYNAMIC_CONTENT)
        run.skip("no dynamic actions requested")

        assert run.terminal
        assert run.result_entry() is None
        assert run.duration is None

    @pytest.mark.parametrize(
        "moves",
        [
            ["succeed"],
            ["start", "skip"],
            ["start", "succeed", "fail"],
            ["skip", "start"],
        ],
    )
    def test_forbidden_transitions(self, moves):
        """Test edges outside the state machine raise."""
        run = AuditRun(AuditKind.ACCESSIBILITY)
        actions = {
            "start": run.start,
            "succeed": lambda: run.succeed({}),
            "fail": lambda: run.fail("x"),
            "skip": lambda: run.skip("x"),
        }

        with pytest.raises(InvalidAuditTransition):
            for move in moves:
                actions[move]()


class TestAxeEngine:
    """Tests for axe-core injection."""

    def test_missing_bundle(self, tmp_path):
        """Test a missing bundle leaves the engine unavailable."""
        engine = AxeEngine.from_path(tmp_path / "axe.min.js")

        assert not engine.available

    def test_load_bundle(self, tmp_path):
        """Test the bundle is read from disk."""
        path = tmp_path / "axe.min.js"
        path.write_text("window.axe = {};", encoding="utf-8")

        assert AxeEngine.from_path(path).available

    async def test_injects_when_absent(self, axe, page_factory):
        """Test axe is injected only when the page lacks it."""
        page = page_factory()

        async def evaluate(script, arg=None):
            if "typeof window.axe" in script:
                return False
            return {"violations": [VIOLATION], "passes": []}

        page.evaluate = AsyncMock(side_effect=evaluate)

        result = await axe.run(page)

        page.add_script_tag.assert_awaited_once_with(content="window.axe = {};")
        assert result == {"violations": [VIOLATION]}
        options = page.evaluate.call_args.args[1]
        assert options["runOnly"]["values"] == WCAG_RULESET_TAGS

    async def test_unavailable_engine_raises(self, page_factory):
        """Test running without a bundle is an audit error."""
        with pytest.raises(AuditError, match="axe-core is not available"):
            await AxeEngine(None).run(page_factory())


class TestAccessibilityAudit:
    """Tests for the accessibility audit."""

    async def test_zero_violations(self, axe, page_factory):
        """Test a clean page yields an empty violation list."""
        audit = AccessibilityAudit(axe)

        payload = await audit.run(page_factory(), AuditOptions(url="https://example.com"))

        assert payload == {"violations": []}

    async def test_error_page_note(self, axe, page_factory):
        """Test results on an error page carry a note and recommendation."""
        audit = AccessibilityAudit(axe)
        options = AuditOptions(url="https://example.com", page_has_error=True)

        payload = await audit.run(page_factory(violations=[VIOLATION]), options)

        assert payload["violations"] == [VIOLATION]
        assert "error page" in payload["note"]
        assert "recommendation" in payload


class TestDynamicContentAudit:
    """Tests for scripted interactions."""

    def test_skips_without_actions(self, axe):
        """Test the audit has nothing to do without actions."""
        audit = DynamicContentAudit(axe, settle_delay=0)

        assert audit.should_skip(AuditOptions()) == "no dynamic actions requested"

    async def test_each_action_is_isolated(self, axe, page_factory):
        """Test a bad selector and a malformed action do not stop the others."""
        page = page_factory(violations=[VIOLATION])
        page.click.side_effect = Exception("waiting for selector \"#missing\" failed")
        actions = [
            {"type": "click", "selector": "#missing"},
            {"type": "swipe", "selector": "#menu"},
            {"type": "focus", "selector": "#search"},
            {"type": "type", "selector": "input[name=q]", "value": "shoes"},
            {"type": "type", "selector": "input[name=q]"},
            {"type": "hover", "selector": "nav a"},
        ]
        audit = DynamicContentAudit(axe, action_timeout=2, settle_delay=0)

        payload = await audit.run(page, AuditOptions(dynamic_actions=actions))

        entries = payload["actions"]
        assert len(entries) == 6
        assert [entry["action"] for entry in entries] == actions
        assert "#missing" in entries[0]["error"]
        assert entries[1]["error"].startswith("Invalid action")
        assert entries[2]["result"] == {"violations": [VIOLATION]}
        assert entries[3]["result"] == {"violations": [VIOLATION]}
        assert "Type action requires a value" in entries[4]["error"]
        assert "result" in entries[5]

        page.focus.assert_awaited_once_with("#search", timeout=2000)
        page.type.assert_awaited_once_with("input[name=q]", "shoes", timeout=2000)
        page.hover.assert_awaited_once_with("nav a", timeout=2000)


class TestBrandColorAnalysis:
    """Tests for brand colour contrast and usage analysis."""

    def test_low_contrast_text(self):
        """Test a light brand colour on white fails the text threshold."""
        samples = [
            {
                "tag": "p",
                "classes": ["lead"],
                "color": "rgb(255, 204, 0)",
                "background": "rgb(255, 255, 255)",
                "interactive": False,
            }
        ]

        issues = analyze_brand_colors(samples, ["#FC0"])

        assert len(issues) == 1
        issue = issues[0]
        assert issue["type"] == "contrast"
        assert issue["element"] == "p.lead"
        assert issue["required"] == 4.5
        assert issue["contrast"] < 4.5
        assert issue["color"] == "#ffcc00"

    def test_interactive_threshold_is_lower(self):
        """Test interactive elements only need 3:1."""
        samples = [
            {
                "tag": "button",
                "id": "buy",
                "color": "rgb(255, 255, 255)",
                "background": "rgb(0, 136, 0)",
                "interactive": True,
            }
        ]

        assert analyze_brand_colors(samples, ["#008800"]) == []

    def test_mixed_usage(self):
        """Test a brand colour on both interactive and static elements is flagged."""
        samples = [
            {"tag": "a", "color": "rgb(0, 0, 0)", "background": "rgb(255, 255, 255)", "interactive": True},
            {"tag": "h1", "color": "rgb(0, 0, 0)", "background": "rgb(255, 255, 255)", "interactive": False},
        ]

        issues = analyze_brand_colors(samples, ["#000000"])

        assert [issue["type"] for issue in issues] == ["usage"]
        assert issues[0]["brand"] == "#000000"

    def test_unrelated_and_unparseable_samples(self):
        """Test samples without a brand colour or readable colours are ignored."""
        samples = [
            {"tag": "p", "color": "rgb(1, 2, 3)", "background": "rgb(255, 255, 255)"},
            {"tag": "p", "color": None, "background": "rgb(0, 0, 0)"},
        ]

        assert analyze_brand_colors(samples, ["#000000"]) == []

    async def test_audit_collects_samples(self, page_factory):
        """Test the audit evaluates samples in the page and reports normalized brands."""
        samples = [
            {"tag": "span", "color": "rgb(255, 204, 0)", "background": "rgb(255, 255, 255)", "interactive": False}
        ]
        page = page_factory(samples=samples)
        audit = BrandColorAudit()

        payload = await audit.run(page, AuditOptions(brand_colors=["#FC0", "#ffcc00"]))

        assert payload["brandColors"] == ["#ffcc00"]
        assert payload["elementsChecked"] == 1
        assert payload["issues"][0]["type"] == "contrast"

    def test_audit_skips_without_colors(self):
        """Test the audit has nothing to do without brand colours."""
        assert BrandColorAudit().should_skip(AuditOptions()) == "no brand colors requested"
