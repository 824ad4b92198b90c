"""Usage store adapters.

The quota tracker starts with an in-memory store and can move to a shared
backend by implementing ``AbstractUsageStore``; the API layer does not change.
"""

from quota_api.adapters.quota.base import (
    AbstractUsageStore,
    QuotaConfig,
    RecordedUsage,
    UsageSnapshot,
)
from quota_api.adapters.quota.in_memory import InMemoryUsageStore

__all__ = [
    "AbstractUsageStore",
    "InMemoryUsageStore",
    "QuotaConfig",
    "RecordedUsage",
    "UsageSnapshot",
]
