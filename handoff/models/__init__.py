"""SQLAlchemy ORM models."""

from handoff.models.event import Event, SupplementalEvent, SupplementalEventType
from handoff.models.user import User

__all__ = [
    "Event",
    "SupplementalEvent",
    "SupplementalEventType",
    "User",
]
