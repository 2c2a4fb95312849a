"""External performance/SEO/best-practices/PWA audit via the Lighthouse CLI.

Lighthouse attaches to the session's browser through its remote debugging
port, so it audits the same browser process the scan already owns.
Availability is detected once at startup.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from collections.abc import Iterable, Sequence
from typing import Any

from auditor.core.exceptions import AuditError
from auditor.core.logging import get_logger
from auditor.services.audits.base import LIGHTHOUSE_KINDS, AuditKind
from config import Settings

logger = get_logger(__name__)

__all__ = ["LighthouseRunner", "extract_category_payloads"]

_PERFORMANCE_METRICS = (
    "first-contentful-paint",
    "largest-contentful-paint",
    "cumulative-layout-shift",
    "total-blocking-time",
)

_STDERR_TAIL = 500


def _failed_binary_audits(audits: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        {
            "id": audit.get("id"),
            "title": audit.get("title"),
            "description": audit.get("description"),
        }
        for audit in audits.values()
        if audit.get("scoreDisplayMode") == "binary" and audit.get("score") == 0
    ]


def extract_category_payloads(
    lhr: dict[str, Any], kinds: Iterable[AuditKind]
) -> dict[AuditKind, dict[str, Any]]:
    """Map a Lighthouse result (LHR) onto per-category payloads.

    Categories absent from the report are absent from the returned mapping.
    """
    categories = lhr.get("categories") or {}
    audits = lhr.get("audits") or {}
    payloads: dict[AuditKind, dict[str, Any]] = {}

    for kind in kinds:
        category = categories.get(kind.value)
        if not category:
            continue

        score = category.get("score")
        if kind is AuditKind.PERFORMANCE:
            payloads[kind] = {
                "score": score,
                "metrics": {
                    metric: (audits.get(metric) or {}).get("numericValue")
                    for metric in _PERFORMANCE_METRICS
                },
            }
        elif kind is AuditKind.PWA:
            payloads[kind] = {
                "score": score,
                "installable": (audits.get("installable-manifest") or {}).get("score") == 1,
                "hasServiceWorker": (audits.get("service-worker") or {}).get("score") == 1,
            }
        else:
            payloads[kind] = {"score": score, "issues": _failed_binary_audits(audits)}

    return payloads


class LighthouseRunner:
    """Runs Lighthouse once per scan against a debugging port.

    Usage:
        runner = LighthouseRunner.detect(settings)
        if runner.available:
            payloads = await runner.run(url, port, [AuditKind.SEO])
    """

    def __init__(self, executable: str | None, timeout: float = 90.0):
        """Initialize Lighthouse runner.

        Args:
            executable: Resolved path of the Lighthouse CLI, or None when missing
            timeout: Timeout in seconds for one Lighthouse run
        """
        self.executable = executable
        self.timeout = timeout

    @classmethod
    def detect(cls, settings: Settings) -> LighthouseRunner:
        """Resolve the Lighthouse CLI on PATH."""
        executable = shutil.which(settings.lighthouse_path)
        if executable is None:
            logger.warning("lighthouse_not_available", path=settings.lighthouse_path)
        else:
            logger.info("lighthouse_available", executable=executable)
        return cls(executable, timeout=settings.lighthouse_timeout)

    @property
    def available(self) -> bool:
        return self.executable is not None

    def build_command(self, url: str, port: int, kinds: Sequence[AuditKind]) -> list[str]:
        if self.executable is None:
            raise AuditError("lighthouse", "Lighthouse is not available")
        return [
            self.executable,
            url,
            f"--port={port}",
            "--output=json",
            "--output-path=stdout",
            "--quiet",
            "--disable-storage-reset",
            f"--only-categories={','.join(kind.value for kind in kinds)}",
        ]

    async def run(
        self, url: str, port: int, kinds: Sequence[AuditKind]
    ) -> dict[AuditKind, dict[str, Any]]:
        """Run Lighthouse for the requested categories.

        Raises:
            AuditError: If Lighthouse is unavailable, times out, exits non-zero
                or prints unparseable output.
        """
        kinds = [kind for kind in kinds if kind in LIGHTHOUSE_KINDS]
        command = self.build_command(url, port, kinds)

        logger.info(
            "lighthouse_starting",
            url=url,
            port=port,
            categories=[kind.value for kind in kinds],
        )

        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError as e:
            raise AuditError(
                "lighthouse", f"Lighthouse timed out after {self.timeout} seconds"
            ) from e
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace")[-_STDERR_TAIL:].strip()
            raise AuditError(
                "lighthouse",
                f"Lighthouse exited with status {process.returncode}: {detail}",
            )

        try:
            lhr = json.loads(stdout)
        except ValueError as e:
            raise AuditError("lighthouse", f"Unreadable Lighthouse output: {e}") from e

        payloads = extract_category_payloads(lhr, kinds)
        logger.info(
            "lighthouse_completed",
            url=url,
            categories=[kind.value for kind in payloads],
        )
        return payloads
