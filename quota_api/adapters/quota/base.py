"""Usage store interfaces and quota value types.

The tracker depends on ``AbstractUsageStore`` rather than a concrete
implementation so the per-process in-memory store can later be replaced by a
shared backend (e.g., Redis or a database table keyed by identity and day)
without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo


@dataclass(frozen=True)
class QuotaConfig:
    """Process-wide quota configuration, fixed at startup.

    Attributes:
        daily_limit: Maximum consumptions per identity per day.
        timezone: Reference timezone whose midnight starts a new day.
    """

    daily_limit: int
    timezone: tzinfo = field(default=timezone.utc)

    def __post_init__(self) -> None:
        if self.daily_limit < 1:
            raise ValueError("daily_limit must be >= 1")


@dataclass(frozen=True)
class UsageSnapshot:
    """Point-in-time view of an identity's quota for the current day.

    Attributes:
        used: Consumptions recorded today (may exceed ``limit``).
        remaining: ``max(0, limit - used)``.
        limit: Configured daily limit.
        reset_at: Aware datetime of the next day boundary.
        day_bucket: The day these figures apply to.
        as_of: The instant the figures were computed at.
    """

    used: int
    remaining: int
    limit: int
    reset_at: datetime
    day_bucket: date
    as_of: datetime

    @property
    def reset_date(self) -> str:
        return self.day_bucket.isoformat()


@dataclass(frozen=True)
class RecordedUsage:
    """Quota figures immediately after a consumption was recorded."""

    used: int
    remaining: int
    limit: int
    reset_at: datetime
    as_of: datetime


class AbstractUsageStore(ABC):
    """Interface for identity -> daily usage storage.

    Implementations own every record. Records are keyed by identity and carry
    the day their count applies to; a record from an earlier day is stale and
    counts as zero.
    """

    @abstractmethod
    def read(self, identity: str, day: date) -> int:
        """Return the effective count for ``identity`` on ``day``.

        Never creates a record. Missing or stale records read as 0.
        """
        raise NotImplementedError

    @abstractmethod
    def increment(self, identity: str, day: date) -> int:
        """Atomically add one consumption for ``identity`` on ``day``.

        A missing record is created and a stale one is reset to ``day``
        before incrementing, all in one critical section.

        Returns:
            The count after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    def evict_older_than(self, cutoff: date) -> int:
        """Remove records whose day is strictly before ``cutoff``.

        Returns:
            Number of records removed.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
