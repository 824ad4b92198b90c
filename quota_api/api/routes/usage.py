from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from quota_api.adapters.quota.base import RecordedUsage
from quota_api.core.identity import get_client_identity, mask_identity
from quota_api.core.quota import (
    enforce_daily_quota,
    get_quota_settings,
    get_quota_tracker,
    quota_headers,
)
from quota_api.schemas.usage import (
    NOT_METERED_MESSAGE,
    ConsumeResponse,
    UsageResponse,
    quota_message,
)
from quota_api.services.quota_tracker import QuotaTracker

router = APIRouter(tags=["Usage"])


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    request: Request,
    response: Response,
    identity: Annotated[str, Depends(get_client_identity)],
    tracker: Annotated[QuotaTracker, Depends(get_quota_tracker)],
) -> UsageResponse:
    """Report today's usage for the requesting client.

    Read-only: calling this endpoint never consumes quota.

    Returns:
        UsageResponse: used, remaining, limit, reset day/time and a message
            telling the client whether free requests are left.
    """
    snapshot = tracker.get_usage(identity)

    if get_quota_settings(request).quota_include_headers:
        response.headers.update(quota_headers(snapshot))

    return UsageResponse(
        ip=mask_identity(identity),
        used=snapshot.used,
        remaining=snapshot.remaining,
        limit=snapshot.limit,
        reset_date=snapshot.day_bucket,
        reset_at=snapshot.reset_at,
        message=quota_message(snapshot.remaining),
    )


@router.post("/usage", response_model=ConsumeResponse)
async def record_usage(
    request: Request,
    response: Response,
    identity: Annotated[str, Depends(get_client_identity)],
    tracker: Annotated[QuotaTracker, Depends(get_quota_tracker)],
    recorded: Annotated[RecordedUsage | None, Depends(enforce_daily_quota)],
) -> ConsumeResponse:
    """Record one request for the requesting client.

    Used by metered endpoints that consume quota. Responds with 429 when no
    quota is left today.
    """
    include_headers = get_quota_settings(request).quota_include_headers

    if recorded is None:
        snapshot = tracker.get_usage(identity)
        if include_headers:
            response.headers.update(quota_headers(snapshot))
        return ConsumeResponse(
            ip=mask_identity(identity),
            used=snapshot.used,
            remaining=snapshot.remaining,
            limit=snapshot.limit,
            metered=False,
            message=NOT_METERED_MESSAGE,
        )

    if include_headers:
        response.headers.update(quota_headers(recorded))

    return ConsumeResponse(
        ip=mask_identity(identity),
        used=recorded.used,
        remaining=recorded.remaining,
        limit=recorded.limit,
        message=quota_message(recorded.remaining),
    )
