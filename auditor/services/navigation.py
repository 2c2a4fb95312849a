"""Navigation controller: loads a target page in a browser session.

Tries wait conditions of decreasing strictness, each with its own timeout
budget, and classifies the failure when every strategy is exhausted.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass

from playwright.async_api import BrowserContext, Page, ViewportSize
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from auditor.core.browser_config import PROBE_VIEWPORT, SCAN_EXTRA_HEADERS, SCAN_VIEWPORT
from auditor.core.exceptions import NavigationError, NavigationErrorKind
from auditor.core.logging import get_logger
from auditor.core.metrics import (
    browser_page_load_seconds,
    navigation_attempts_total,
    navigation_failures_total,
)
from auditor.services.browser_pool import Session
from config import Settings

logger = get_logger(__name__)

__all__ = [
    "LoadStrategy",
    "NavigationController",
    "PageHandle",
    "classify_failure",
    "classify_failures",
]

# Network error signals, in the order they are checked
_NETWORK_SIGNALS: tuple[tuple[tuple[str, ...], NavigationErrorKind], ...] = (
    (("ERR_NAME_NOT_RESOLVED", "NS_ERROR_UNKNOWN_HOST"), NavigationErrorKind.DNS_NOT_FOUND),
    (("ERR_CONNECTION_REFUSED", "NS_ERROR_CONNECTION_REFUSED"), NavigationErrorKind.CONNECTION_REFUSED),
    (("ERR_CERT_", "ERR_SSL_", "SSL_ERROR_"), NavigationErrorKind.TLS_ERROR),
    (("ERR_TOO_MANY_REDIRECTS", "NS_ERROR_REDIRECT_LOOP"), NavigationErrorKind.REDIRECT_LOOP),
)


@dataclass(frozen=True)
class LoadStrategy:
    """One page-load attempt: a Playwright wait condition and its budget."""

    wait_until: str
    timeout: float  # seconds


@dataclass
class PageHandle:
    """A loaded page and the browsing context that owns it."""

    page: Page
    context: BrowserContext
    url: str
    strategy: str
    load_time_ms: int
    status_code: int | None = None


def classify_failure(error: BaseException) -> NavigationErrorKind:
    """Classify a single navigation exception from its network failure signal."""
    message = str(error)
    for signals, kind in _NETWORK_SIGNALS:
        if any(signal in message for signal in signals):
            return kind
    if isinstance(error, PlaywrightTimeoutError) or "timeout" in message.lower():
        return NavigationErrorKind.TIMEOUT
    return NavigationErrorKind.OTHER


def classify_failures(errors: Sequence[BaseException]) -> NavigationErrorKind:
    """Classify the outcome of several failed attempts.

    A network-level signal from any attempt wins over a timeout, and a
    timeout wins over an unclassified failure.
    """
    kinds = [classify_failure(e) for e in errors]
    for kind in kinds:
        if kind not in (NavigationErrorKind.TIMEOUT, NavigationErrorKind.OTHER):
            return kind
    if NavigationErrorKind.TIMEOUT in kinds:
        return NavigationErrorKind.TIMEOUT
    return NavigationErrorKind.OTHER


class NavigationController:
    """Loads pages with progressively more lenient wait strategies.

    Usage:
        controller = NavigationController(settings)
        handle = await controller.load(session, "https://example.com")
        try:
            ...
        finally:
            await controller.close(handle)
    """

    def __init__(self, settings: Settings):
        """Initialize navigation controller.

        Args:
            settings: Application settings with navigation budgets.
        """
        self.settings = settings
        self.strategies: tuple[LoadStrategy, ...] = (
            LoadStrategy("networkidle", settings.navigation_networkidle_timeout),
            LoadStrategy("domcontentloaded", settings.navigation_domcontentloaded_timeout),
            LoadStrategy("load", settings.navigation_load_timeout),
        )
        self.probe_strategy = LoadStrategy("domcontentloaded", settings.navigation_probe_timeout)
        self.settle_delay = settings.navigation_settle_delay

    async def load(self, session: Session, url: str) -> PageHandle:
        """Load ``url`` for auditing.

        The first strategy that succeeds wins. Later attempts reuse the same
        browsing context and page. A successful load is followed by a fixed
        settle delay so late DOM mutations land before any audit runs.

        Raises:
            NavigationError: If every strategy failed.
        """
        handle = await self._navigate(session, url, self.strategies, SCAN_VIEWPORT)
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)
        return handle

    async def probe(self, session: Session, url: str) -> PageHandle:
        """Single-pass DOM-ready load used by the quick website check.

        Raises:
            NavigationError: If the load failed.
        """
        return await self._navigate(session, url, (self.probe_strategy,), PROBE_VIEWPORT)

    async def close(self, handle: PageHandle) -> None:
        """Close the browsing context behind a page handle (best effort)."""
        await self._close_context(handle.context)

    async def _navigate(
        self,
        session: Session,
        url: str,
        strategies: Sequence[LoadStrategy],
        viewport: ViewportSize,
    ) -> PageHandle:
        try:
            context = await session.browser.new_context(
                user_agent=self.settings.user_agent,
                viewport=viewport,
                ignore_https_errors=self.settings.navigation_ignore_https_errors,
                extra_http_headers=SCAN_EXTRA_HEADERS,
            )
        except PlaywrightError as e:
            raise self._setup_failure(url, session, e) from e
        try:
            try:
                page = await context.new_page()
            except PlaywrightError as e:
                raise self._setup_failure(url, session, e) from e
            errors: list[BaseException] = []

            for strategy in strategies:
                logger.info(
                    "navigation_attempt_starting",
                    url=url,
                    wait_until=strategy.wait_until,
                    timeout=strategy.timeout,
                    session_id=session.session_id,
                )
                started = time.monotonic()
                try:
                    response = await page.goto(
                        url,
                        wait_until=strategy.wait_until,  # type: ignore[arg-type]
                        timeout=strategy.timeout * 1000,
                    )
                except PlaywrightError as e:
                    errors.append(e)
                    navigation_attempts_total.labels(
                        strategy=strategy.wait_until, outcome="failed"
                    ).inc()
                    logger.warning(
                        "navigation_attempt_failed",
                        url=url,
                        wait_until=strategy.wait_until,
                        kind=classify_failure(e).value,
                        error=str(e),
                    )
                    continue

                elapsed = time.monotonic() - started
                navigation_attempts_total.labels(
                    strategy=strategy.wait_until, outcome="succeeded"
                ).inc()
                browser_page_load_seconds.observe(elapsed)
                logger.info(
                    "navigation_succeeded",
                    url=url,
                    wait_until=strategy.wait_until,
                    load_time_ms=int(elapsed * 1000),
                )
                return PageHandle(
                    page=page,
                    context=context,
                    url=url,
                    strategy=strategy.wait_until,
                    load_time_ms=int(elapsed * 1000),
                    status_code=response.status if response else None,
                )

            kind = classify_failures(errors)
            navigation_failures_total.labels(kind=kind.value).inc()
            message = str(errors[-1]) if errors else "no load strategy configured"
            logger.error(
                "navigation_exhausted",
                url=url,
                kind=kind.value,
                attempts=len(errors),
                error=message,
            )
            raise NavigationError(kind, message, url=url)

        except BaseException:
            await self._close_context(context)
            raise

    async def _close_context(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except Exception as e:
            logger.debug("context_close_error", error=str(e))

    @staticmethod
    def _setup_failure(url: str, session: Session, error: PlaywrightError) -> NavigationError:
        """Classify a failure to open a context or page before any load attempt."""
        kind = classify_failure(error)
        navigation_failures_total.labels(kind=kind.value).inc()
        logger.error(
            "navigation_setup_failed",
            url=url,
            session_id=session.session_id,
            kind=kind.value,
            error=str(error),
        )
        return NavigationError(kind, str(error), url=url)
