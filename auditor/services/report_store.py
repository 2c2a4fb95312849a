"""In-memory, time-bounded report store.

Reports live in process memory only: they are lost on restart and are not
shared between processes.
"""

import asyncio
import contextlib
import copy
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from auditor.core.exceptions import ReportNotFound
from auditor.core.logging import get_logger
from auditor.core.metrics import reports_evicted_total, reports_stored
from config import Settings

logger = get_logger(__name__)


@dataclass
class StoredReport:
    """A client-supplied report plus storage bookkeeping."""

    report_id: str
    report: dict[str, Any]
    timestamp: int  # ms since epoch
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_public(self) -> dict[str, Any]:
        """The stored report with its id; timestamp and request metadata stripped."""
        return {**copy.deepcopy(self.report), "id": self.report_id}


class ReportStore:
    """Keyed report cache with age and capacity eviction.

    Example:
        >>> store = ReportStore(max_age=86400, max_entries=1000)
        >>> report_id, timestamp = await store.put({"url": "https://example.com"})
        >>> report = await store.get(report_id)
    """

    def __init__(
        self,
        max_age: float = 86400.0,
        max_entries: int = 1000,
        sweep_interval: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize report store.

        Args:
            max_age: Seconds a report is retained
            max_entries: Maximum reports kept after a sweep
            sweep_interval: Seconds between eviction sweeps
            clock: Wall-clock time source in seconds (injectable for tests)
        """
        self.max_age = max_age
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock

        self._reports: dict[str, StoredReport] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportStore":
        return cls(
            max_age=settings.report_max_age,
            max_entries=settings.report_max_entries,
            sweep_interval=settings.report_sweep_interval,
        )

    def __len__(self) -> int:
        return len(self._reports)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_expired(self, stored: StoredReport, now_ms: int) -> bool:
        return now_ms - stored.timestamp > self.max_age * 1000

    async def put(
        self, report: dict[str, Any], metadata: dict[str, Any] | None = None
    ) -> tuple[str, int]:
        """Store a report.

        Returns:
            Tuple of (report id, timestamp in ms since epoch)
        """
        async with self._lock:
            report_id = secrets.token_urlsafe(8)
            while report_id in self._reports:
                report_id = secrets.token_urlsafe(8)

            timestamp = self._now_ms()
            self._reports[report_id] = StoredReport(
                report_id=report_id,
                report=copy.deepcopy(report),
                timestamp=timestamp,
                metadata=dict(metadata or {}),
            )
            reports_stored.set(len(self._reports))

        logger.info("report_stored", report_id=report_id, url=report.get("url"))
        return report_id, timestamp

    async def get(self, report_id: str) -> dict[str, Any]:
        """Fetch a report without its metadata.

        Raises:
            ReportNotFound: If the id is unknown or the report has expired.
        """
        async with self._lock:
            stored = self._reports.get(report_id)
            if stored is None or self._is_expired(stored, self._now_ms()):
                raise ReportNotFound(report_id)
            return stored.to_public()

    async def sweep(self) -> int:
        """Evict expired reports, then the oldest surplus above capacity.

        Returns:
            Number of reports evicted
        """
        async with self._lock:
            now_ms = self._now_ms()
            expired = [rid for rid, stored in self._reports.items() if self._is_expired(stored, now_ms)]
            for rid in expired:
                del self._reports[rid]

            surplus: list[str] = []
            overflow = len(self._reports) - self.max_entries
            if overflow > 0:
                oldest = sorted(self._reports.values(), key=lambda s: s.timestamp)
                surplus = [stored.report_id for stored in oldest[:overflow]]
                for rid in surplus:
                    del self._reports[rid]

            remaining = len(self._reports)
            reports_stored.set(remaining)

        if expired:
            reports_evicted_total.labels(reason="expired").inc(len(expired))
        if surplus:
            reports_evicted_total.labels(reason="capacity").inc(len(surplus))
        if expired or surplus:
            logger.info(
                "report_store_swept",
                expired=len(expired),
                over_capacity=len(surplus),
                remaining=remaining,
            )
        return len(expired) + len(surplus)

    def start(self) -> None:
        """Start the background eviction sweep."""
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
                await self.sweep()
            except Exception as e:
                logger.error("report_store_sweep_error", error=str(e))
