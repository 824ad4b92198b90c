from __future__ import annotations

from quota_api.api.routes.health import router as health_router
from quota_api.api.routes.usage import router as usage_router

__all__ = ["health_router", "usage_router"]
