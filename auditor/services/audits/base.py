"""Audit kinds, per-audit state tracking and the audit interface."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from playwright.async_api import Page

__all__ = [
    "IN_PAGE_ORDER",
    "LIGHTHOUSE_KINDS",
    "AuditKind",
    "AuditOptions",
    "AuditRun",
    "AuditState",
    "BaseAudit",
    "InvalidAuditTransition",
]


class AuditKind(str, Enum):
    """Recognized audit kinds."""

    ACCESSIBILITY = "accessibility"
    DYNAMIC_CONTENT = "dynamic-content"
    BRAND_COLOR_CONTRAST = "brand-color-contrast"
    PERFORMANCE = "performance"
    SEO = "seo"
    BEST_PRACTICES = "best-practices"
    PWA = "pwa"


# Audits that touch the shared page, in execution order
IN_PAGE_ORDER: tuple[AuditKind, ...] = (
    AuditKind.ACCESSIBILITY,
    AuditKind.DYNAMIC_CONTENT,
    AuditKind.BRAND_COLOR_CONTRAST,
)

# Categories served by one Lighthouse invocation
LIGHTHOUSE_KINDS: frozenset[AuditKind] = frozenset(
    {AuditKind.PERFORMANCE, AuditKind.SEO, AuditKind.BEST_PRACTICES, AuditKind.PWA}
)


class AuditState(str, Enum):
    """Lifecycle of one audit within a scan."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # not attempted; contributes no result entry


_TRANSITIONS: dict[AuditState, frozenset[AuditState]] = {
    AuditState.PENDING: frozenset({AuditState.RUNNING, AuditState.SKIPPED}),
    AuditState.RUNNING: frozenset({AuditState.SUCCEEDED, AuditState.FAILED}),
    AuditState.SUCCEEDED: frozenset(),
    AuditState.FAILED: frozenset(),
    AuditState.SKIPPED: frozenset(),
}


class InvalidAuditTransition(RuntimeError):
    """Raised when an audit is moved along an edge the state machine forbids."""


@dataclass
class AuditRun:
    """State and outcome of a single audit kind."""

    kind: AuditKind
    state: AuditState = AuditState.PENDING
    payload: dict[str, Any] | None = None
    skip_reason: str | None = None
    started_at: float | None = None
    finished_at: float | None = None

    @property
    def terminal(self) -> bool:
        return not _TRANSITIONS[self.state]

    @property
    def duration(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def _move(self, new_state: AuditState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidAuditTransition(
                f"{self.kind.value}: cannot move from {self.state.value} to {new_state.value}"
            )
        self.state = new_state

    def start(self) -> None:
        self._move(AuditState.RUNNING)
        self.started_at = time.monotonic()

    def succeed(self, payload: dict[str, Any]) -> None:
        self._move(AuditState.SUCCEEDED)
        self.finished_at = time.monotonic()
        self.payload = payload

    def fail(self, message: str, **extra: Any) -> None:
        self._move(AuditState.FAILED)
        self.finished_at = time.monotonic()
        self.payload = {"error": message, **extra}

    def skip(self, reason: str) -> None:
        self._move(AuditState.SKIPPED)
        self.skip_reason = reason

    def result_entry(self) -> dict[str, Any] | None:
        """Payload for the scan result, or None when the audit was not attempted."""
        if self.state in (AuditState.SUCCEEDED, AuditState.FAILED):
            return self.payload
        return None


@dataclass
class AuditOptions:
    """Per-scan inputs shared by the audits."""

    url: str = ""
    brand_colors: list[str] = field(default_factory=list)
    dynamic_actions: list[Any] = field(default_factory=list)
    page_has_error: bool = False
    debug_port: int | None = None


class BaseAudit(ABC):
    """An audit that evaluates the shared, already-loaded page."""

    kind: AuditKind

    def should_skip(self, options: AuditOptions) -> str | None:
        """Return a reason when the audit has nothing to evaluate."""
        return None

    @abstractmethod
    async def run(self, page: Page, options: AuditOptions) -> dict[str, Any]:
        """Run the audit and return its payload.

        Raises:
            Exception: Any failure; the pipeline records it against this audit only.
        """
        raise NotImplementedError("Subclass must implement run()")
