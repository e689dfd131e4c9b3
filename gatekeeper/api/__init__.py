"""Gatekeeper API routers."""

from gatekeeper.api.auth import router as auth_router
from gatekeeper.api.health import router as health_router
from gatekeeper.api.webhook import router as webhook_router

__all__ = ["auth_router", "health_router", "webhook_router"]
