"""Event and supplemental (travel buffer) event models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from handoff.database import Base
from handoff.models.mixins import TimestampMixin


class SupplementalEventType(str, Enum):
    """Kind of travel interval attached to an event."""

    DEPARTURE = "departure"
    BUFFER = "buffer"
    RETURN = "return"


class Event(Base, TimestampMixin):
    """A single calendar occurrence that a parent can take responsibility for.

    ``version`` starts at 1 and is bumped on every mutation of the row; writers
    must present the version they read (optimistic locking).
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_all_day: Mapped[bool] = mapped_column(Boolean, default=False)
    assigned_to_user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_skipped: Mapped[bool] = mapped_column(Boolean, default=False)  # "Not Attending"
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Relationships
    assigned_to: Mapped[Optional["User"]] = relationship(back_populates="assigned_events")  # noqa: F821
    supplemental_events: Mapped[list["SupplementalEvent"]] = relationship(
        back_populates="parent_event",
        cascade="all, delete-orphan",
        order_by=lambda: [SupplementalEvent.start_time, SupplementalEvent.id],
    )

    __table_args__ = (
        Index("idx_events_start_time", "start_time"),
        Index("idx_events_assigned_to_user_id", "assigned_to_user_id"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}', version={self.version})>"


class SupplementalEvent(Base, TimestampMixin):
    """Travel interval (drive there, early arrival, drive home) for an event.

    Produced by the external drive-time estimator for the current assignee.
    """

    __tablename__ = "supplemental_events"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    parent_event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    drive_time_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    parent_event: Mapped["Event"] = relationship(back_populates="supplemental_events")

    __table_args__ = (
        Index("idx_supplemental_events_parent_event_id", "parent_event_id"),
        Index("idx_supplemental_events_type", "type"),
    )

    def __repr__(self) -> str:
        return f"<SupplementalEvent(id={self.id}, type='{self.type}', parent={self.parent_event_id})>"
