"""Daily request quota tracking per client identity.

The tracker answers three questions for an identity: how much of today's
quota is left, may it make another request, and record that it made one.
Checking and recording are deliberately separate steps so that rendering
the remaining budget never consumes quota. Recording never refuses: callers
that want to block over-quota requests check first.

Every operation reads the clock exactly once, and both the day bucket and
the reset time are derived from that single instant, so an operation that
runs across midnight still sees only one day.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta
from typing import Callable

from quota_api.adapters.quota.base import (
    AbstractUsageStore,
    QuotaConfig,
    RecordedUsage,
    UsageSnapshot,
)
from quota_api.core.identity import hash_identity

logger = logging.getLogger(__name__)


class QuotaTracker:
    """Meter consumptions per identity against a daily limit.

    The tracker holds no records itself; they live in the injected store,
    which gives tests a fresh state per instance and allows a shared backend
    to be substituted later.
    """

    def __init__(
        self,
        store: AbstractUsageStore,
        config: QuotaConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the tracker.

        Args:
            store: Backing store owning the usage records.
            config: Daily limit and reset timezone.
            clock: Time source returning UNIX time in seconds.
        """
        self._store = store
        self._config = config
        self._clock = clock

    @property
    def daily_limit(self) -> int:
        return self._config.daily_limit

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=self._config.timezone)

    def _next_reset(self, day: date) -> datetime:
        # Midnight of the following day in the reference timezone.
        return datetime.combine(
            day + timedelta(days=1), datetime.min.time(), tzinfo=self._config.timezone
        )

    def _remaining(self, used: int) -> int:
        return max(0, self._config.daily_limit - used)

    def get_usage(self, identity: str) -> UsageSnapshot:
        """Return today's usage for ``identity`` without consuming quota.

        An identity never seen before, or last seen on an earlier day,
        reports zero usage.

        Args:
            identity: Client identity key.

        Returns:
            UsageSnapshot with used, remaining, limit and the next reset time.
        """
        now = self._now()
        today = now.date()
        used = self._store.read(identity, today)
        return UsageSnapshot(
            used=used,
            remaining=self._remaining(used),
            limit=self._config.daily_limit,
            reset_at=self._next_reset(today),
            day_bucket=today,
            as_of=now,
        )

    def can_make_request(self, identity: str) -> bool:
        """Whether ``identity`` has quota left today. Never mutates state."""
        return self.get_usage(identity).remaining > 0

    def record_usage(self, identity: str) -> RecordedUsage:
        """Record one consumption for ``identity`` and return the new figures.

        The increment is unconditional, so ``used`` can exceed the limit;
        ``remaining`` is floored at zero.

        Args:
            identity: Client identity key.

        Returns:
            RecordedUsage reflecting the count after this consumption.
        """
        now = self._now()
        today = now.date()
        used = self._store.increment(identity, today)
        remaining = self._remaining(used)

        log_extra = {
            "identity_hash": hash_identity(identity),
            "used": used,
            "limit": self._config.daily_limit,
            "remaining": remaining,
            "day": today.isoformat(),
        }
        if used == self._config.daily_limit:
            logger.info("quota.limit_reached", extra=log_extra)
        elif used > self._config.daily_limit:
            logger.warning("quota.recorded_over_limit", extra=log_extra)
        else:
            logger.debug("quota.recorded", extra=log_extra)

        return RecordedUsage(
            used=used,
            remaining=remaining,
            limit=self._config.daily_limit,
            reset_at=self._next_reset(today),
            as_of=now,
        )

    def sweep(self, max_age_days: int) -> int:
        """Evict records from more than ``max_age_days`` days before today.

        Housekeeping only: stale records read as zero whether or not they
        have been swept.

        Returns:
            Number of records evicted.
        """
        if max_age_days < 1:
            raise ValueError("max_age_days must be >= 1")

        today = self._now().date()
        cutoff = today - timedelta(days=max_age_days)
        return self._store.evict_older_than(cutoff)
