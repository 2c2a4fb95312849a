"""Unit tests for the suggestion client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from auditor.core.exceptions import SuggestionError, SuggestionErrorKind
from auditor.services.suggestion import (
    GENERATION_CONFIG,
    SuggestionClient,
    build_prompt,
    classify_api_error,
    condense_scan_result,
    extract_text,
)

URL = "https://example.com"
MODELS = ["gemini-2.0-flash", "gemini-1.5-flash"]


def gemini_reply(text: str, finish_reason: str = "STOP") -> SimpleNamespace:
    return SimpleNamespace(
        prompt_feedback=SimpleNamespace(block_reason=0),
        candidates=[
            SimpleNamespace(
                finish_reason=SimpleNamespace(name=finish_reason),
                content=SimpleNamespace(parts=[SimpleNamespace(text=text)]),
            )
        ],
    )


def make_client(generate, models=MODELS, timeout: float = 30.0) -> SuggestionClient:
    """Build a client whose models answer through ``generate(model_name, prompt)``."""

    def factory(name: str) -> MagicMock:
        model = MagicMock()
        model.generate_content_async = AsyncMock(
            side_effect=lambda prompt: generate(name, prompt)
        )
        return model

    return SuggestionClient(
        api_key="test-key", models=models, timeout=timeout, model_factory=factory
    )


class TestPrompt:
    """Tests for prompt construction."""

    def test_question_prompt(self):
        """Test a question is quoted and the scan is offered as context."""
        prompt = build_prompt(URL, {"url": URL}, "How do I fix alt text?")

        assert '"How do I fix alt text?"' in prompt
        assert f'Context from recent website scan of "{URL}"' in prompt

    def test_error_site_prompt(self):
        """Test scans of error pages ask about backend issues first."""
        scan = {"websiteStatus": {"hasError": True, "errorType": "Database down"}}

        prompt = build_prompt(URL, scan, None)

        assert "Issue: Database down" in prompt
        assert "**Primary Issue:**" in prompt

    def test_default_prompt(self):
        """Test a plain scan asks for quick fixes."""
        prompt = build_prompt(URL, {"accessibility": {"violations": []}}, None)

        assert "**Quick Fixes:**" in prompt
        assert "Scan results:" in prompt

    def test_large_scan_is_condensed(self):
        """Test oversized scans keep only the first ten violations."""
        violations = [{"id": f"rule-{i}", "help": "x" * 200} for i in range(40)]
        scan = {"url": URL, "timestamp": 1, "accessibility": {"violations": violations}}

        condensed = condense_scan_result(scan)

        assert len(condensed["accessibility"]["violations"]) == 10
        assert "40 total violations" in condensed["summary"]

    def test_small_scan_is_kept(self):
        """Test small scans pass through unchanged."""
        scan = {"url": URL, "accessibility": {"violations": []}}

        assert condense_scan_result(scan) is scan


class TestClassifyApiError:
    """Tests for Gemini failure classification."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (google_exceptions.InvalidArgument("API_KEY_INVALID"), SuggestionErrorKind.CONFIGURATION),
            (google_exceptions.PermissionDenied("denied"), SuggestionErrorKind.CONFIGURATION),
            (google_exceptions.ResourceExhausted("exhausted"), SuggestionErrorKind.QUOTA),
            (google_exceptions.InvalidArgument("Quota exceeded"), SuggestionErrorKind.QUOTA),
            (google_exceptions.NotFound("models/x is not found"), SuggestionErrorKind.MODEL),
            (google_exceptions.DeadlineExceeded("deadline"), SuggestionErrorKind.TIMEOUT),
            (google_exceptions.InvalidArgument("request blocked"), SuggestionErrorKind.SAFETY),
            (google_exceptions.InternalServerError("internal"), SuggestionErrorKind.OTHER),
        ],
    )
    def test_classification(self, error, expected):
        """Test API exceptions map to error kinds."""
        assert classify_api_error(error) is expected

    def test_kind_status_codes(self):
        """Test quota is retryable 503 and safety is a client error."""
        assert SuggestionErrorKind.QUOTA.status_code == 503
        assert SuggestionErrorKind.SAFETY.status_code == 400
        assert SuggestionErrorKind.TIMEOUT.status_code == 408


class TestExtractText:
    """Tests for reading generate_content responses."""

    def test_joins_parts(self):
        """Test text parts are concatenated and trimmed."""
        response = gemini_reply(" Add alt text. ")

        assert extract_text(response) == "Add alt text."

    def test_blocked_prompt(self):
        """Test a prompt block reason is a safety error."""
        response = SimpleNamespace(
            prompt_feedback=SimpleNamespace(block_reason=SimpleNamespace(name="SAFETY")),
            candidates=[],
        )

        with pytest.raises(SuggestionError) as exc_info:
            extract_text(response)

        assert exc_info.value.kind is SuggestionErrorKind.SAFETY
        assert "SAFETY" in exc_info.value.message

    def test_blocked_answer(self):
        """Test an answer stopped by the safety filter is a safety error."""
        with pytest.raises(SuggestionError) as exc_info:
            extract_text(gemini_reply("", finish_reason="SAFETY"))

        assert exc_info.value.kind is SuggestionErrorKind.SAFETY

    def test_no_candidates(self):
        """Test an answer without candidates is an error."""
        response = SimpleNamespace(prompt_feedback=SimpleNamespace(block_reason=0), candidates=[])

        with pytest.raises(SuggestionError) as exc_info:
            extract_text(response)

        assert exc_info.value.kind is SuggestionErrorKind.OTHER


class TestSuggestionClient:
    """Tests for SuggestionClient."""

    async def test_unconfigured_client(self):
        """Test a missing API key makes the service unavailable."""
        client = SuggestionClient(api_key=None, models=MODELS)

        assert not client.available
        with pytest.raises(SuggestionError) as exc_info:
            await client.suggest(url=URL)

        assert exc_info.value.kind is SuggestionErrorKind.UNAVAILABLE

    async def test_successful_suggestion(self):
        """Test the first model's answer is returned with timing."""
        calls = []

        def generate(name, prompt):
            calls.append((name, prompt))
            return gemini_reply("**Quick Fixes:**\n- Add alt text")

        result = await make_client(generate).suggest(url=URL, scan_result={"url": URL})

        assert result["suggestion"].startswith("**Quick Fixes:**")
        assert result["model"] == "gemini-2.0-flash"
        assert result["url"] == URL
        assert isinstance(result["processingTime"], int)
        assert calls[0][0] == "gemini-2.0-flash"
        assert "**Quick Fixes:**" in calls[0][1]

    async def test_models_are_built_once(self):
        """Test a model object is reused across requests."""
        built = []

        def factory(name):
            built.append(name)
            model = MagicMock()
            model.generate_content_async = AsyncMock(return_value=gemini_reply("ok"))
            return model

        client = SuggestionClient(api_key="k", models=MODELS, model_factory=factory)
        await client.suggest(url=URL)
        await client.suggest(url=URL)

        assert built == ["gemini-2.0-flash"]

    async def test_default_models_use_sdk(self):
        """Test the default factory configures the SDK with the key and generation settings."""
        with patch("auditor.services.suggestion.genai") as genai:
            genai.GenerativeModel.return_value.generate_content_async = AsyncMock(
                return_value=gemini_reply("Use labels.")
            )
            client = SuggestionClient(api_key="test-key", models=MODELS)

            result = await client.suggest(message="How do I label inputs?")

        assert result["suggestion"] == "Use labels."
        genai.configure.assert_called_once_with(api_key="test-key")
        args, kwargs = genai.GenerativeModel.call_args
        assert args == ("gemini-2.0-flash",)
        assert kwargs["generation_config"] == GENERATION_CONFIG
        assert kwargs["generation_config"]["max_output_tokens"] == 1024

    async def test_falls_back_on_model_error(self):
        """Test an unavailable model moves on to the next one."""

        def generate(name, prompt):
            if name == "gemini-2.0-flash":
                raise google_exceptions.NotFound("model not found")
            return gemini_reply("Use semantic headings.")

        result = await make_client(generate).suggest(message="What are headings for?")

        assert result["model"] == "gemini-1.5-flash"
        assert result["suggestion"] == "Use semantic headings."

    async def test_every_model_unavailable(self):
        """Test the last model error is raised when all models fail."""

        def generate(name, prompt):
            raise google_exceptions.NotFound(f"{name} not found")

        with pytest.raises(SuggestionError) as exc_info:
            await make_client(generate).suggest(url=URL)

        assert exc_info.value.kind is SuggestionErrorKind.MODEL
        assert "gemini-1.5-flash" in exc_info.value.message

    async def test_quota_does_not_fall_back(self):
        """Test a quota error is raised immediately."""
        calls = []

        def generate(name, prompt):
            calls.append(name)
            raise google_exceptions.ResourceExhausted("RESOURCE_EXHAUSTED")

        with pytest.raises(SuggestionError) as exc_info:
            await make_client(generate).suggest(url=URL)

        assert exc_info.value.kind is SuggestionErrorKind.QUOTA
        assert calls == ["gemini-2.0-flash"]

    async def test_safety_block(self):
        """Test a blocked prompt is a safety error."""

        def generate(name, prompt):
            return SimpleNamespace(
                prompt_feedback=SimpleNamespace(block_reason=SimpleNamespace(name="SAFETY")),
                candidates=[],
            )

        with pytest.raises(SuggestionError) as exc_info:
            await make_client(generate).suggest(message="...")

        assert exc_info.value.kind is SuggestionErrorKind.SAFETY

    async def test_timeout(self):
        """Test a slow model is classified as timeout."""

        async def hang(prompt):
            await asyncio.sleep(10)

        def factory(name):
            model = MagicMock()
            model.generate_content_async = AsyncMock(side_effect=hang)
            return model

        client = SuggestionClient(api_key="k", models=MODELS, timeout=0.01, model_factory=factory)

        with pytest.raises(SuggestionError) as exc_info:
            await client.suggest(url=URL)

        assert exc_info.value.kind is SuggestionErrorKind.TIMEOUT

    async def test_empty_answer(self):
        """Test an answer without text is an error."""

        def generate(name, prompt):
            return gemini_reply("   ")

        with pytest.raises(SuggestionError) as exc_info:
            await make_client(generate).suggest(url=URL)

        assert exc_info.value.kind is SuggestionErrorKind.OTHER
