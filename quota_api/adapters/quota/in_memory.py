"""In-memory daily usage store with lock striping.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: identities are spread over a fixed number of shards, each
  guarded by its own lock, so unrelated clients rarely contend and memory
  for locks stays bounded regardless of how many identities are seen.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date

from quota_api.adapters.quota.base import AbstractUsageStore


@dataclass
class _UsageRecord:
    day_bucket: date
    count: int


class _Shard:
    __slots__ = ("lock", "records")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.records: dict[str, _UsageRecord] = {}


class InMemoryUsageStore(AbstractUsageStore):
    """Usage store keeping one record per identity in process memory.

    ``count`` and ``day_bucket`` of a record are only ever changed together
    while holding the record's shard lock, and reads take the same lock, so
    no caller observes one field updated without the other.
    """

    def __init__(self, *, shards: int = 64) -> None:
        """Initialize the store.

        Args:
            shards: Number of lock stripes.

        Raises:
            ValueError: If shards is invalid.
        """
        if shards < 1:
            raise ValueError("shards must be >= 1")

        self._shards = tuple(_Shard() for _ in range(shards))

    def _shard_for(self, identity: str) -> _Shard:
        return self._shards[hash(identity) % len(self._shards)]

    @staticmethod
    def _normalize(record: _UsageRecord, day: date) -> _UsageRecord:
        """Move a stale record onto ``day`` with a zero count.

        Idempotent: a record already on ``day`` is left untouched. Callers
        must hold the shard lock.
        """
        if record.day_bucket != day:
            record.day_bucket = day
            record.count = 0
        return record

    def read(self, identity: str, day: date) -> int:
        shard = self._shard_for(identity)
        with shard.lock:
            record = shard.records.get(identity)
            if record is None or record.day_bucket != day:
                return 0
            return record.count

    def increment(self, identity: str, day: date) -> int:
        shard = self._shard_for(identity)
        with shard.lock:
            record = shard.records.get(identity)
            if record is None:
                record = _UsageRecord(day_bucket=day, count=0)
                shard.records[identity] = record
            self._normalize(record, day)
            record.count += 1
            return record.count

    def evict_older_than(self, cutoff: date) -> int:
        removed = 0
        for shard in self._shards:
            with shard.lock:
                stale = [k for k, rec in shard.records.items() if rec.day_bucket < cutoff]
                for key in stale:
                    del shard.records[key]
                removed += len(stale)
        return removed

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.records)
        return total
