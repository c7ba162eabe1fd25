"""Pydantic schemas for request/response validation."""

from handoff.schemas.event import (
    ConflictCheck,
    ConflictMap,
    ConflictResolution,
    ConflictResolutionReason,
    ConflictResolutionRequest,
    Event,
    EventAssign,
    EventCreate,
    SupplementalEvent,
    SupplementalEventCreate,
    SupplementalEventsReplace,
)
from handoff.schemas.user import User, UserCreate, UserUpdate

__all__ = [
    "ConflictCheck",
    "ConflictMap",
    "ConflictResolution",
    "ConflictResolutionReason",
    "ConflictResolutionRequest",
    "Event",
    "EventAssign",
    "EventCreate",
    "SupplementalEvent",
    "SupplementalEventCreate",
    "SupplementalEventsReplace",
    "User",
    "UserCreate",
    "UserUpdate",
]
