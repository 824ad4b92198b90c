"""Factory for usage store instances."""

from __future__ import annotations

from quota_api.adapters.quota.base import AbstractUsageStore
from quota_api.adapters.quota.in_memory import InMemoryUsageStore
from quota_api.core.config import AppSettings, settings
from quota_api.core.errors import ValidationAppError


def create_usage_store(app_settings: AppSettings | None = None) -> AbstractUsageStore:
    """Instantiate the usage store selected by ``APP_QUOTA_STORE_BACKEND``.

    Args:
        app_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractUsageStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is not supported.
    """
    cfg = app_settings or settings.app
    backend = cfg.quota_store_backend.lower()

    if backend == "memory":
        return InMemoryUsageStore(shards=cfg.quota_store_shards)

    # A shared backend (e.g., Redis) plugs in here by implementing
    # AbstractUsageStore with its own timeout/retry policy.

    raise ValidationAppError(
        code="quota_unknown_store_backend",
        message=f"Unknown usage store backend: '{backend}'. Supported backends: memory",
    )
