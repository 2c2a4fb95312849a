"""Browser pool for scan sessions.

Owns a bounded set of live Chromium processes, one per in-flight scan.
Acquisition never queues: at the ceiling it fails fast with PoolExhausted.
A background sweep force-closes sessions that outlive the configured
maximum lifetime, which backstops callers that never release.
"""

from __future__ import annotations

import asyncio
import contextlib
import socket
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from playwright.async_api import Browser, Playwright, async_playwright

from auditor.core.browser_config import CHROMIUM_LOW_FOOTPRINT_ARGS, remote_debugging_arg
from auditor.core.exceptions import PoolExhausted
from auditor.core.logging import get_logger
from auditor.core.metrics import (
    browser_launches_total,
    browser_pool_exhausted_total,
    browser_sessions_active,
    browser_sessions_expired_total,
)
from config import Settings

logger = get_logger(__name__)

__all__ = ["BrowserPool", "Session"]


@dataclass
class Session:
    """Exclusively owned handle to one live browser process."""

    browser: Browser
    created_at: datetime
    deadline: datetime
    debug_port: int | None = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    closed: bool = False

    def is_expired(self, now: datetime) -> bool:
        """Check whether the session has outlived its deadline."""
        return now >= self.deadline

    def age_seconds(self, now: datetime) -> float:
        return (now - self.created_at).total_seconds()


class BrowserPool:
    """Bounded pool of browser sessions.

    Features:
    - Fail-fast concurrency ceiling (no queuing, no launch when saturated)
    - One isolated low-footprint browser process per session
    - Background sweep of sessions older than the maximum lifetime
    - Idempotent release

    Usage:
        pool = BrowserPool(settings)
        await pool.initialize()
        async with pool.session() as session:
            context = await session.browser.new_context()
        await pool.shutdown()
    """

    def __init__(self, settings: Settings):
        """Initialize browser pool manager.

        Args:
            settings: Application settings with pool configuration.
        """
        self.settings = settings
        self.max_sessions = settings.browser_max_sessions
        self.max_lifetime = settings.browser_max_lifetime
        self.sweep_interval = settings.browser_sweep_interval
        self.headless = settings.browser_headless

        # Pool state
        self._playwright: Playwright | None = None
        self._sessions: dict[str, Session] = {}
        self._launching = 0
        self._lock = asyncio.Lock()
        self._initialized = False
        self._shutting_down = False
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    async def initialize(self) -> None:
        """Start Playwright and the background age sweep.

        Browsers are launched lazily on acquire, so an idle pool holds no processes.

        Raises:
            RuntimeError: If Playwright fails to start.
        """
        # Guard: already initialized
        if self._initialized:
            logger.warning("browser_pool_already_initialized")
            return

        logger.info(
            "browser_pool_initializing",
            max_sessions=self.max_sessions,
            max_lifetime=self.max_lifetime,
            sweep_interval=self.sweep_interval,
        )

        try:
            self._playwright = await async_playwright().start()
        except Exception as e:
            logger.error("browser_pool_init_error", error=str(e))
            raise RuntimeError(f"Failed to initialize browser pool: {e}") from e

        self._sweep_task = asyncio.create_task(self._sweep_loop())
        self._initialized = True
        browser_sessions_active.set(0)

        logger.info("browser_pool_initialized")

    async def acquire(self) -> Session:
        """Launch a new browser session.

        Returns:
            A session owned exclusively by the caller.

        Raises:
            RuntimeError: If pool is not initialized, shutting down, or launch fails.
            PoolExhausted: If the concurrency ceiling is reached.
        """
        # Guard: pool not initialized
        if not self._initialized:
            raise RuntimeError("Browser pool not initialized. Call initialize() first.")

        # Guard: pool shutting down
        if self._shutting_down:
            raise RuntimeError("Browser pool is shutting down")

        # Reserve a slot before launching so concurrent acquires cannot overshoot
        async with self._lock:
            if len(self._sessions) + self._launching >= self.max_sessions:
                browser_pool_exhausted_total.inc()
                logger.warning(
                    "browser_pool_exhausted",
                    active_sessions=len(self._sessions),
                    launching=self._launching,
                    max_sessions=self.max_sessions,
                )
                raise PoolExhausted(self.max_sessions)
            self._launching += 1

        browser: Browser | None = None
        try:
            debug_port = self._allocate_debug_port()
            browser = await self._launch_browser(debug_port)

            now = datetime.now(UTC)
            session = Session(
                browser=browser,
                created_at=now,
                deadline=now + timedelta(seconds=self.max_lifetime),
                debug_port=debug_port,
            )

            async with self._lock:
                self._launching -= 1
                self._sessions[session.session_id] = session
                browser_sessions_active.set(len(self._sessions))
        except BaseException:
            # No await before the decrement, so a second cancel cannot leak the slot
            self._launching -= 1
            if browser is not None:
                await asyncio.shield(self._close_unregistered(browser))
            raise

        session.browser.on("disconnected", lambda _: self._on_disconnected(session))

        logger.info(
            "browser_session_acquired",
            session_id=session.session_id,
            debug_port=debug_port,
            active_sessions=len(self._sessions),
        )
        return session

    async def release(self, session: Session) -> None:
        """Close a session and remove it from the live set.

        Idempotent: releasing an already released or swept session is a no-op.
        """
        async with self._lock:
            if self._sessions.pop(session.session_id, None) is None:
                logger.debug("browser_session_already_released", session_id=session.session_id)
                return
            session.closed = True
            browser_sessions_active.set(len(self._sessions))

        # Close must complete even if the caller was cancelled
        await asyncio.shield(self._close_browser(session))

        logger.info(
            "browser_session_released",
            session_id=session.session_id,
            active_sessions=len(self._sessions),
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Session]:
        """Acquire a session and always release it on exit.

        Example:
            async with pool.session() as session:
                page = await controller.load(session, url)
        """
        session = await self.acquire()
        try:
            yield session
        finally:
            await self.release(session)

    async def sweep_expired(self) -> int:
        """Force-close every session past its deadline.

        Returns:
            Number of sessions closed.
        """
        now = datetime.now(UTC)
        async with self._lock:
            expired = [s for s in self._sessions.values() if s.is_expired(now)]
            for session in expired:
                del self._sessions[session.session_id]
                session.closed = True
            browser_sessions_active.set(len(self._sessions))

        for session in expired:
            logger.warning(
                "browser_session_force_closed",
                session_id=session.session_id,
                age_seconds=session.age_seconds(now),
                max_lifetime=self.max_lifetime,
            )
            browser_sessions_expired_total.inc()
            await self._close_browser(session)

        return len(expired)

    async def _sweep_loop(self) -> None:
        """Background task that periodically sweeps expired sessions."""
        logger.info("browser_sweep_loop_started", interval=self.sweep_interval)

        while not self._shutting_down:
            try:
                await asyncio.sleep(self.sweep_interval)
                await self.sweep_expired()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("browser_sweep_loop_error", error=str(e))

        logger.info("browser_sweep_loop_stopped")

    def _on_disconnected(self, session: Session) -> None:
        """Drop a session whose browser process died during use."""
        if self._sessions.pop(session.session_id, None) is not None:
            session.closed = True
            browser_sessions_active.set(len(self._sessions))
            logger.error("browser_session_disconnected", session_id=session.session_id)

    async def _launch_browser(self, debug_port: int) -> Browser:
        """Launch a Chromium instance with the low-footprint profile.

        Raises:
            RuntimeError: If playwright is not initialized or browser launch fails.
        """
        # Guard: playwright not initialized
        if self._playwright is None:
            raise RuntimeError("Playwright not initialized")

        try:
            browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=[*CHROMIUM_LOW_FOOTPRINT_ARGS, remote_debugging_arg(debug_port)],
            )
        except Exception as e:
            logger.error("browser_launch_error", error=str(e))
            raise RuntimeError(f"Failed to launch chromium browser: {e}") from e

        browser_launches_total.inc()
        return browser

    @staticmethod
    def _allocate_debug_port() -> int:
        """Ask the OS for a free local TCP port for the DevTools endpoint."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            return int(sock.getsockname()[1])

    async def _close_browser(self, session: Session) -> None:
        try:
            await session.browser.close()
        except Exception as e:
            logger.debug("browser_close_error", session_id=session.session_id, error=str(e))

    async def _close_unregistered(self, browser: Browser) -> None:
        try:
            await browser.close()
        except Exception as e:
            logger.debug("browser_close_error", error=str(e))
        logger.warning("browser_launch_abandoned")

    async def shutdown(self) -> None:
        """Stop the sweep, close every live session and stop Playwright."""
        # Guard: not initialized
        if not self._initialized:
            logger.warning("browser_pool_not_initialized_for_shutdown")
            return

        # Guard: already shutting down
        if self._shutting_down:
            logger.warning("browser_pool_already_shutting_down")
            return

        logger.info("browser_pool_shutdown_starting")
        self._shutting_down = True

        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task

        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            session.closed = True
            await self._close_browser(session)

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug("playwright_stop_error", error=str(e))
            finally:
                self._playwright = None

        browser_sessions_active.set(0)
        self._initialized = False
        self._shutting_down = False

        logger.info("browser_pool_shutdown_completed", sessions_closed=len(sessions))

    def get_pool_stats(self) -> dict[str, Any]:
        """Get current pool statistics.

        Returns:
            Dict with pool statistics:
            {
                "active_sessions": int,
                "launching": int,
                "max_sessions": int,
                "initialized": bool,
                "shutting_down": bool,
            }
        """
        return {
            "active_sessions": len(self._sessions),
            "launching": self._launching,
            "max_sessions": self.max_sessions,
            "initialized": self._initialized,
            "shutting_down": self._shutting_down,
        }
