"""Dynamic-content accessibility audit.

Performs scripted interactions against the live page and re-evaluates
accessibility after each one. Every action is isolated: a bad selector or a
detached element is recorded against that action and the rest still run.
"""

from __future__ import annotations

import asyncio
from typing import Any

from playwright.async_api import Page
from pydantic import ValidationError

from auditor.core.logging import get_logger
from auditor.schemas import ActionKind, DynamicAction
from auditor.services.audits.accessibility import AxeEngine
from auditor.services.audits.base import AuditKind, AuditOptions, BaseAudit

logger = get_logger(__name__)

__all__ = ["DynamicContentAudit", "describe_validation_error"]


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic error into a single readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get("loc", ()) if loc != "__root__")
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "Invalid action: " + "; ".join(parts)


class DynamicContentAudit(BaseAudit):
    """Runs scripted actions and audits the page state after each."""

    kind = AuditKind.DYNAMIC_CONTENT

    def __init__(self, engine: AxeEngine, action_timeout: float = 5.0, settle_delay: float = 1.0):
        """Initialize dynamic content audit.

        Args:
            engine: axe-core engine used after each action
            action_timeout: Timeout in seconds for one interaction
            settle_delay: Seconds to wait for DOM updates after an interaction
        """
        self.engine = engine
        self.action_timeout = action_timeout
        self.settle_delay = settle_delay

    def should_skip(self, options: AuditOptions) -> str | None:
        if not options.dynamic_actions:
            return "no dynamic actions requested"
        return None

    async def run(self, page: Page, options: AuditOptions) -> dict[str, Any]:
        entries: list[dict[str, Any]] = []

        for index, raw_action in enumerate(options.dynamic_actions):
            try:
                action = DynamicAction.model_validate(raw_action)
            except ValidationError as e:
                message = describe_validation_error(e)
                logger.warning("dynamic_action_invalid", index=index, error=message)
                entries.append({"action": raw_action, "error": message})
                continue

            logger.info(
                "dynamic_action_executing",
                index=index,
                kind=action.kind.value,
                selector=action.selector,
            )
            try:
                await self._perform(page, action)
                if self.settle_delay > 0:
                    await asyncio.sleep(self.settle_delay)
                result = await self.engine.run(page)
            except Exception as e:
                logger.warning(
                    "dynamic_action_failed",
                    index=index,
                    kind=action.kind.value,
                    selector=action.selector,
                    error=str(e),
                )
                entries.append({"action": raw_action, "error": str(e)})
                continue

            entries.append({"action": raw_action, "result": result})

        failed = sum(1 for entry in entries if "error" in entry)
        logger.info(
            "dynamic_content_audit_completed",
            actions=len(entries),
            failed_actions=failed,
        )
        return {"actions": entries}

    async def _perform(self, page: Page, action: DynamicAction) -> None:
        timeout_ms = self.action_timeout * 1000
        if action.kind is ActionKind.CLICK:
            await page.click(action.selector, timeout=timeout_ms)
        elif action.kind is ActionKind.FOCUS:
            await page.focus(action.selector, timeout=timeout_ms)
        elif action.kind is ActionKind.TYPE:
            await page.type(action.selector, action.value or "", timeout=timeout_ms)
        else:
            await page.hover(action.selector, timeout=timeout_ms)
