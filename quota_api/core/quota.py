"""Daily quota dependencies for FastAPI routes.

This module wires the quota tracker into the HTTP layer.

Design goals:
- The tracker instance lives on ``app.state`` (built by the app factory), so
  every app, and therefore every test client, gets its own usage state.
- Routes depend on dependency functions only, never on the store.
- Exhausted quota is an outcome reported by the tracker; translating it into
  HTTP 429 happens here.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends, Request

from quota_api.adapters.quota.base import QuotaConfig, RecordedUsage, UsageSnapshot
from quota_api.adapters.quota.factory import create_usage_store
from quota_api.core.config import AppSettings, settings
from quota_api.core.errors import QuotaExceededAppError
from quota_api.core.identity import get_client_identity, hash_identity
from quota_api.services.quota_tracker import QuotaTracker

logger = logging.getLogger(__name__)


def build_quota_tracker(app_settings: AppSettings | None = None) -> QuotaTracker:
    """Create a tracker with a fresh store from settings.

    Args:
        app_settings: Optional settings; defaults to the global settings.

    Returns:
        QuotaTracker: Tracker configured with the daily limit and timezone.
    """
    cfg = app_settings or settings.app
    config = QuotaConfig(
        daily_limit=cfg.quota_daily_limit,
        timezone=ZoneInfo(cfg.quota_timezone),
    )
    return QuotaTracker(create_usage_store(cfg), config)


def get_quota_tracker(request: Request) -> QuotaTracker:
    """Return the tracker owned by the running application."""
    return request.app.state.quota_tracker


def get_quota_settings(request: Request) -> AppSettings:
    """Return the settings the running application was created with."""
    return getattr(request.app.state, "quota_settings", None) or settings.app


def quota_headers(usage: UsageSnapshot | RecordedUsage) -> dict[str, str]:
    """X-RateLimit-* headers describing current quota figures."""
    return {
        "X-RateLimit-Limit": str(usage.limit),
        "X-RateLimit-Remaining": str(usage.remaining),
        "X-RateLimit-Reset": str(int(usage.reset_at.timestamp())),
    }


def _has_own_credential(request: Request, cfg: AppSettings) -> bool:
    cookie_name = cfg.quota_bypass_cookie
    return bool(cookie_name and request.cookies.get(cookie_name))


async def enforce_daily_quota(
    request: Request,
    identity: Annotated[str, Depends(get_client_identity)],
    tracker: Annotated[QuotaTracker, Depends(get_quota_tracker)],
) -> RecordedUsage | None:
    """FastAPI dependency metering one request against the daily quota.

    Checks the identity's remaining quota and, when some is left, records one
    consumption. Check and record are separate tracker calls, so concurrent
    requests from one identity may overshoot the limit by at most the number
    in flight.

    Args:
        request: FastAPI request.
        identity: Resolved client identity.
        tracker: Application quota tracker.

    Returns:
        RecordedUsage after recording, or None when the request is not
        metered (quota disabled or the client sent its own credential).

    Raises:
        QuotaExceededAppError: When no quota is left today (HTTP 429).
    """
    cfg = get_quota_settings(request)
    if not cfg.quota_enabled:
        return None

    identity_hash = hash_identity(identity)

    if _has_own_credential(request, cfg):
        logger.info("quota.bypassed", extra={"identity_hash": identity_hash})
        return None

    snapshot = tracker.get_usage(identity)
    if snapshot.remaining <= 0:
        reset_epoch = int(snapshot.reset_at.timestamp())
        # Both instants come from the tracker clock.
        retry_after = max(
            0, int(math.ceil((snapshot.reset_at - snapshot.as_of).total_seconds()))
        )
        logger.warning(
            "quota.exceeded",
            extra={
                "identity_hash": identity_hash,
                "used": snapshot.used,
                "limit": snapshot.limit,
                "retry_after_s": retry_after,
            },
        )
        raise QuotaExceededAppError(
            code="daily_quota_exceeded",
            message=(
                "Daily limit reached. Add your own API key to continue "
                "or wait until tomorrow."
            ),
            details={
                "limit": snapshot.limit,
                "used": snapshot.used,
                "remaining": 0,
                "reset_at": str(reset_epoch),
                "retry_after": retry_after,
            },
        )

    recorded = tracker.record_usage(identity)
    logger.info(
        "quota.allowed",
        extra={
            "identity_hash": identity_hash,
            "used": recorded.used,
            "limit": recorded.limit,
            "remaining": recorded.remaining,
        },
    )
    return recorded
