"""Sliding-window rate limiter keyed by client identity.

Each identity owns a deque of admission timestamps. Entries older than the
window are pruned on access, and a low-frequency sweep drops identities
whose windows have fully expired so the map does not grow without bound.
"""

import asyncio
import contextlib
import math
import time
from collections import deque
from collections.abc import Callable

from auditor.core.logging import get_logger
from auditor.core.metrics import rate_limit_identities, rate_limit_rejections_total
from config import Settings

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """In-memory per-identity admission gate.

    Example:
        >>> limiter = SlidingWindowRateLimiter(max_requests=50, window_seconds=900)
        >>> if not await limiter.admit("203.0.113.7"):
        ...     retry = await limiter.retry_after("203.0.113.7")
    """

    def __init__(
        self,
        max_requests: int = 50,
        window_seconds: float = 900.0,
        sweep_interval: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize sliding window rate limiter.

        Args:
            max_requests: Admissions allowed per identity within one window
            window_seconds: Window length in seconds
            sweep_interval: Seconds between idle-identity sweeps
            clock: Monotonic time source (injectable for tests)
        """
        self.max_requests = max(1, max_requests)
        self.window_seconds = window_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock

        self._windows: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

        logger.info(
            "rate_limiter_initialized",
            max_requests=self.max_requests,
            window_seconds=self.window_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SlidingWindowRateLimiter":
        return cls(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window,
            sweep_interval=settings.rate_limit_sweep_interval,
        )

    def _prune(self, window: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()

    async def admit(self, identity: str) -> bool:
        """Record and admit a request, or reject it when the window is full."""
        async with self._lock:
            now = self._clock()
            window = self._windows.setdefault(identity, deque())
            self._prune(window, now)

            if len(window) >= self.max_requests:
                rate_limit_rejections_total.inc()
                logger.warning(
                    "rate_limit_exceeded",
                    identity=identity,
                    requests_in_window=len(window),
                )
                return False

            window.append(now)
            rate_limit_identities.set(len(self._windows))
            return True

    async def retry_after(self, identity: str) -> int:
        """Seconds until the identity's oldest admission leaves the window."""
        async with self._lock:
            window = self._windows.get(identity)
            if not window:
                return 0
            now = self._clock()
            self._prune(window, now)
            if len(window) < self.max_requests:
                return 0
            return max(1, math.ceil(window[0] + self.window_seconds - now))

    async def prune_idle(self) -> int:
        """Drop identities with no admissions left in the window.

        Returns:
            Number of identities removed
        """
        async with self._lock:
            now = self._clock()
            idle = []
            for identity, window in self._windows.items():
                self._prune(window, now)
                if not window:
                    idle.append(identity)
            for identity in idle:
                del self._windows[identity]
            rate_limit_identities.set(len(self._windows))

        if idle:
            logger.debug("rate_limiter_idle_pruned", removed=len(idle))
        return len(idle)

    @property
    def tracked_identities(self) -> int:
        return len(self._windows)

    def start(self) -> None:
        """Start the background idle-identity sweep."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop the background sweep."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.prune_idle()
            except Exception as e:
                logger.error("rate_limiter_sweep_error", error=str(e))
