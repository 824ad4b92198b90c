"""Periodic eviction of usage records from past days.

Bounds memory for long-running processes. Correctness never depends on it:
a stale record that has not been swept still reads as zero.
"""

from __future__ import annotations

import asyncio
import logging

from quota_api.services.quota_tracker import QuotaTracker

logger = logging.getLogger(__name__)


class UsageSweeper:
    """Run ``QuotaTracker.sweep`` on a fixed interval as an asyncio task."""

    def __init__(
        self,
        tracker: QuotaTracker,
        *,
        interval_seconds: float,
        max_age_days: int,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if max_age_days < 1:
            raise ValueError("max_age_days must be >= 1")

        self._tracker = tracker
        self._interval = interval_seconds
        self._max_age_days = max_age_days
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Run a single sweep cycle and log the outcome.

        Returns:
            Number of records evicted.
        """
        evicted = self._tracker.sweep(self._max_age_days)
        logger.info(
            "quota.sweep.completed",
            extra={"evicted": evicted, "max_age_days": self._max_age_days},
        )
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await asyncio.to_thread(self.run_once)
            except Exception as exc:
                logger.error(
                    "quota.sweep.failed",
                    extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
                )

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="quota-usage-sweeper")
        logger.info(
            "quota.sweep.started",
            extra={"interval_s": self._interval, "max_age_days": self._max_age_days},
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("quota.sweep.stopped")
