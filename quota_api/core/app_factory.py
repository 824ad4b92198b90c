"""Application factory for the FastAPI app.

Centralizes app construction (metadata, quota state, middleware, handlers,
routers) so each call yields an isolated application with its own usage
store, which keeps tests independent of one another.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from quota_api.api.routes import health_router, usage_router
from quota_api.core.config import AppSettings, settings
from quota_api.core.exception_handlers import setup_exception_handlers
from quota_api.core.logging import configure_logging
from quota_api.core.middleware import request_id_middleware
from quota_api.core.openapi import apply_openapi_customizations
from quota_api.core.quota import build_quota_tracker
from quota_api.services.quota_tracker import QuotaTracker
from quota_api.services.sweeper import UsageSweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop the usage sweeper alongside the application."""
    sweeper: UsageSweeper | None = app.state.usage_sweeper
    if sweeper is not None:
        sweeper.start()
    try:
        yield
    finally:
        if sweeper is not None:
            await sweeper.stop()


def create_app(
    app_settings: AppSettings | None = None,
    *,
    tracker: QuotaTracker | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Optional settings; defaults to the global settings.
        tracker: Optional pre-built tracker (e.g., with a fake clock).

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    cfg = app_settings or settings.app

    app = FastAPI(
        title="Usage Quota API",
        description=(
            "Meters requests per client identity (derived from proxy forwarding "
            "headers) against a daily limit and reports the remaining budget."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    app.state.quota_settings = cfg
    app.state.quota_tracker = tracker or build_quota_tracker(cfg)
    app.state.usage_sweeper = (
        UsageSweeper(
            app.state.quota_tracker,
            interval_seconds=cfg.quota_sweep_interval_seconds,
            max_age_days=cfg.quota_sweep_max_age_days,
        )
        if cfg.quota_sweep_enabled
        else None
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(usage_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "daily_limit": app.state.quota_tracker.daily_limit,
            "timezone": cfg.quota_timezone,
            "quota_enabled": cfg.quota_enabled,
            "sweep_enabled": cfg.quota_sweep_enabled,
        },
    )

    return app
