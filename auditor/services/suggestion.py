"""Natural-language remediation suggestions from Google Gemini.

The generator is an external service reached through the Gemini SDK; this
module builds the prompt from an optional scan result and question, tries the
configured models in order of preference and classifies failures.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import BlockedPromptException, StopCandidateException

from auditor.core.exceptions import SuggestionError, SuggestionErrorKind
from auditor.core.logging import get_logger
from auditor.core.metrics import suggestions_total
from config import Settings

logger = get_logger(__name__)

__all__ = [
    "SuggestionClient",
    "build_prompt",
    "classify_api_error",
    "condense_scan_result",
    "extract_text",
]

MAX_SCAN_RESULT_CHARS = 5000
MAX_TRUNCATED_VIOLATIONS = 10

GENERATION_CONFIG = {
    "temperature": 0.7,
    "top_k": 40,
    "top_p": 0.95,
    "max_output_tokens": 1024,
}

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


def condense_scan_result(scan_result: dict[str, Any] | None) -> dict[str, Any] | None:
    """Shrink a large scan result to its first accessibility violations."""
    if not scan_result:
        return None
    if len(json.dumps(scan_result, default=str)) <= MAX_SCAN_RESULT_CHARS:
        return scan_result

    violations = (scan_result.get("accessibility") or {}).get("violations") or []
    return {
        "url": scan_result.get("url"),
        "timestamp": scan_result.get("timestamp"),
        "accessibility": {"violations": violations[:MAX_TRUNCATED_VIOLATIONS]},
        "summary": (
            f"Scan data truncated due to size. {len(violations)} total violations found."
        ),
    }


def build_prompt(
    url: str | None, scan_result: dict[str, Any] | None, message: str | None
) -> str:
    """Pick and fill the prompt template for a question or an automatic review."""
    context = json.dumps(scan_result, indent=2, default=str) if scan_result else ""

    if message:
        scan_context = (
            f'Context from recent website scan of "{url}": {context}' if scan_result else ""
        )
        return (
            "You are a friendly accessibility expert assistant. Answer this question about "
            f'web accessibility in a conversational, helpful way: "{message}"\n\n'
            f"{scan_context}\n\n"
            "Guidelines for your response:\n"
            "- Keep it under 150 words\n"
            "- Be practical and actionable\n"
            "- Use easy-to-understand language\n"
            "- Maintain a friendly, encouraging tone\n"
            "- Focus on solutions, not just problems\n"
            "- If scan data is available, reference specific findings when relevant"
        )

    website_status = (scan_result or {}).get("websiteStatus") or {}
    if website_status.get("hasError"):
        issue = website_status.get("errorType") or "Backend/database connection problems"
        return (
            "You are a helpful web accessibility and technical assistant. The website scan "
            "shows that this website has backend/database issues (the site is showing error "
            "pages instead of normal content).\n\n"
            f"Website: {url}\n"
            f"Issue: {issue}\n\n"
            "Please provide advice in this format:\n"
            "**Primary Issue:** [Explain the backend problem]\n"
            "**Technical Fixes:**\n"
            "- [Database/server issue resolution]\n"
            "- [Infrastructure recommendations]\n\n"
            "**Accessibility Note:** [Brief note about accessibility scanning error pages]\n\n"
            "Requirements:\n"
            "- Keep under 200 words total\n"
            "- Focus on the backend/infrastructure issues first\n"
            "- Mention that accessibility should be tested after fixing the primary issues\n"
            "- Be helpful and professional"
        )

    scan_block = f"Scan results: {context}" if scan_result else ""
    return (
        "You are a helpful accessibility assistant. Analyze this website scan and provide "
        "3-4 quick, actionable tips to improve accessibility.\n\n"
        f"Website: {url}\n"
        f"{scan_block}\n\n"
        "Format your response exactly like this:\n"
        "**Quick Fixes:**\n"
        "- [Specific, actionable item based on scan results]\n"
        "- [Specific, actionable item based on scan results]\n"
        "- [Specific, actionable item based on scan results]\n\n"
        "**Why it matters:** [Brief, encouraging explanation of accessibility impact]\n\n"
        "Requirements:\n"
        "- Keep total response under 200 words\n"
        "- Be specific to the actual issues found\n"
        "- Provide practical implementation steps\n"
        "- Use encouraging, supportive language\n"
        "- Focus on the most impactful improvements first"
    )


def classify_api_error(error: Exception) -> SuggestionErrorKind:
    """Map a failed generate_content call onto a suggestion error kind."""
    text = str(error).lower()
    if (
        isinstance(error, (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied))
        or "api_key_invalid" in text
        or "api key not valid" in text
    ):
        return SuggestionErrorKind.CONFIGURATION
    if (
        isinstance(error, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests))
        or "quota" in text
    ):
        return SuggestionErrorKind.QUOTA
    if isinstance(error, google_exceptions.NotFound):
        return SuggestionErrorKind.MODEL
    if isinstance(error, google_exceptions.DeadlineExceeded):
        return SuggestionErrorKind.TIMEOUT
    if "safety" in text or "blocked" in text:
        return SuggestionErrorKind.SAFETY
    return SuggestionErrorKind.OTHER


def extract_text(response: Any) -> str:
    """Pull the answer text out of a generate_content response.

    Raises:
        SuggestionError: If the prompt or the answer was blocked, or no text came back.
    """
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None)
    if block_reason:
        reason = getattr(block_reason, "name", block_reason)
        raise SuggestionError(SuggestionErrorKind.SAFETY, f"Prompt blocked: {reason}")

    candidates = list(getattr(response, "candidates", None) or [])
    if not candidates:
        raise SuggestionError(SuggestionErrorKind.OTHER, "Empty response from AI service")

    finish_reason = candidates[0].finish_reason
    if getattr(finish_reason, "name", finish_reason) == "SAFETY":
        raise SuggestionError(SuggestionErrorKind.SAFETY, "Response blocked by SAFETY filter")

    parts = candidates[0].content.parts
    text = "".join(getattr(part, "text", "") for part in parts).strip()
    if not text:
        raise SuggestionError(SuggestionErrorKind.OTHER, "Empty response from AI service")
    return text


class SuggestionClient:
    """Client for the external suggestion generator."""

    def __init__(
        self,
        api_key: str | None,
        models: list[str],
        timeout: float = 30.0,
        model_factory: Callable[[str], Any] | None = None,
    ):
        """Initialize suggestion client.

        Args:
            api_key: Gemini API key; the client is unavailable without one
            models: Model names tried in order of preference
            timeout: Per-model request timeout in seconds
            model_factory: Builds a model from its name (defaults to genai.GenerativeModel)
        """
        self.api_key = api_key
        self.models = list(models)
        self.timeout = timeout
        self._model_factory = model_factory or self._create_model
        self._models: dict[str, Any] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> SuggestionClient:
        return cls(
            api_key=settings.gemini_api_key,
            models=settings.gemini_models,
            timeout=settings.gemini_timeout,
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key) and bool(self.models)

    async def suggest(
        self,
        url: str | None = None,
        scan_result: dict[str, Any] | None = None,
        message: str | None = None,
    ) -> dict[str, Any]:
        """Generate a suggestion.

        Raises:
            SuggestionError: If the service is unconfigured or every model fails.
        """
        started = time.monotonic()
        if not self.available:
            suggestions_total.labels(outcome=SuggestionErrorKind.UNAVAILABLE.value).inc()
            raise SuggestionError(
                SuggestionErrorKind.UNAVAILABLE, "Gemini API key is not configured"
            )

        prompt = build_prompt(url, condense_scan_result(scan_result), message)
        logger.info("suggestion_requested", url=url, has_message=bool(message))

        try:
            model, suggestion = await self._generate_with_fallback(prompt)
        except SuggestionError as e:
            suggestions_total.labels(outcome=e.kind.value).inc()
            logger.error(
                "suggestion_failed",
                url=url,
                kind=e.kind.value,
                error=e.message,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            raise

        duration_ms = int((time.monotonic() - started) * 1000)
        suggestions_total.labels(outcome="success").inc()
        logger.info(
            "suggestion_generated",
            url=url,
            model=model,
            duration_ms=duration_ms,
            length=len(suggestion),
        )
        return {
            "suggestion": suggestion,
            "url": url,
            "timestamp": int(time.time() * 1000),
            "processingTime": duration_ms,
            "model": model,
        }

    async def _generate_with_fallback(self, prompt: str) -> tuple[str, str]:
        last_error: SuggestionError | None = None
        for model in self.models:
            try:
                return model, await self._generate(model, prompt)
            except SuggestionError as e:
                if e.kind is not SuggestionErrorKind.MODEL:
                    raise
                logger.warning("suggestion_model_unavailable", model=model, error=e.message)
                last_error = e

        raise last_error or SuggestionError(SuggestionErrorKind.MODEL, "No model configured")

    async def _generate(self, model_name: str, prompt: str) -> str:
        model = self._get_model(model_name)
        try:
            async with asyncio.timeout(self.timeout):
                response = await model.generate_content_async(prompt)
        except TimeoutError as e:
            raise SuggestionError(
                SuggestionErrorKind.TIMEOUT, f"AI request timeout after {self.timeout}s"
            ) from e
        except (BlockedPromptException, StopCandidateException) as e:
            raise SuggestionError(SuggestionErrorKind.SAFETY, str(e)[:300]) from e
        except google_exceptions.GoogleAPIError as e:
            raise SuggestionError(classify_api_error(e), str(e)[:300]) from e

        return extract_text(response)

    def _get_model(self, model_name: str) -> Any:
        model = self._models.get(model_name)
        if model is None:
            model = self._model_factory(model_name)
            self._models[model_name] = model
        return model

    def _create_model(self, model_name: str) -> genai.GenerativeModel:
        genai.configure(api_key=self.api_key)
        return genai.GenerativeModel(
            model_name,
            generation_config=GENERATION_CONFIG,
            safety_settings=SAFETY_SETTINGS,
        )
