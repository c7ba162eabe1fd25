"""API routers."""

from handoff.api.events import router as events_router
from handoff.api.health import router as health_router
from handoff.api.users import router as users_router

__all__ = [
    "events_router",
    "health_router",
    "users_router",
]
