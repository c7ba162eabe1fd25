"""Event, travel buffer and conflict schemas.

These models are shared by the REST API and by the async client, so a UI
holding a list of ``Event`` objects sees exactly what the store returned.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from handoff.models.event import SupplementalEventType


class ConflictResolutionReason(str, Enum):
    """Why the user says a pair of conflicting events is fine."""

    SAME_LOCATION = "same_location"
    OTHER = "other"


class SupplementalEventBase(BaseModel):
    """Base schema for a travel buffer interval."""

    type: SupplementalEventType
    start_time: datetime
    end_time: datetime
    title: str | None = None
    drive_time_minutes: int | None = None


class SupplementalEventCreate(SupplementalEventBase):
    """Schema for attaching a travel buffer to an event."""

    @model_validator(mode="after")
    def check_order(self) -> "SupplementalEventCreate":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class SupplementalEvent(SupplementalEventBase):
    """Schema for travel buffer response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_event_id: int


class SupplementalEventsReplace(BaseModel):
    """Full replacement set of travel buffers for one event."""

    supplemental_events: list[SupplementalEventCreate] = []


class EventBase(BaseModel):
    """Base event schema."""

    title: str
    description: str | None = None
    location: str | None = None
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False


class EventCreate(EventBase):
    """Schema for creating an event."""

    assigned_to_user_id: int | None = None
    supplemental_events: list[SupplementalEventCreate] = []

    @model_validator(mode="after")
    def check_order(self) -> "EventCreate":
        if not self.is_all_day and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class Event(EventBase):
    """Schema for event response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    assigned_to_user_id: int | None = None
    is_skipped: bool = False
    version: int = 1
    supplemental_events: list[SupplementalEvent] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


class EventAssign(BaseModel):
    """Assignment request guarded by the version the caller last saw."""

    assigned_to_user_id: int | None = None
    expected_version: int | None = Field(default=None, ge=1)
    skip: bool = False


class ConflictCheck(BaseModel):
    """Result of checking a prospective assignment for overlaps."""

    has_conflicts: bool
    conflicts: list[Event] = []


class ConflictMap(BaseModel):
    """Event id to the ids of events it overlaps with."""

    conflicts: dict[int, list[int]] = {}


class ConflictResolutionRequest(BaseModel):
    """Request to clear the travel buffers that make two events overlap."""

    event1_id: int
    event2_id: int
    reason: ConflictResolutionReason
    assigned_user_id: int

    @model_validator(mode="after")
    def check_distinct(self) -> "ConflictResolutionRequest":
        if self.event1_id == self.event2_id:
            raise ValueError("event1_id and event2_id must differ")
        return self


class ConflictResolution(BaseModel):
    """Acknowledgement of a conflict resolution."""

    success: bool
    message: str
    removed: int = 0
