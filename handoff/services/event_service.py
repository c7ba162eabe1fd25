"""Event store operations: listing, conflict checks, versioned assignment and
conflict resolution."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from handoff.errors import ConcurrentModificationError, NotFoundError, ValidationError
from handoff.models.event import Event, SupplementalEvent, SupplementalEventType
from handoff.models.user import User
from handoff.schemas.event import (
    ConflictResolutionReason,
    EventCreate,
    SupplementalEventCreate,
)
from handoff.services.conflicts import detect_conflicts, intervals_overlap
from handoff.services.intervals import prospective_interval, resolve_interval

logger = logging.getLogger(__name__)

# Travel windows never stretch an event by more than this, so candidates for
# an overlap can be narrowed in SQL before resolving intervals in Python.
TRAVEL_WINDOW_SLACK = timedelta(hours=24)


class EventService:
    """Store-side implementation of the event contracts."""

    def _query(self, db: Session):
        return db.query(Event).options(selectinload(Event.supplemental_events))

    def get_event(self, event_id: int, db: Session) -> Event:
        """Get an event with its travel events, or raise ``NotFoundError``."""
        event = self._query(db).filter(Event.id == event_id).first()
        if not event:
            raise NotFoundError("Event", event_id)
        return event

    def _get_user(self, user_id: int, db: Session) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def list_events(
        self,
        db: Session,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        assigned_to_user_id: int | None = None,
        unassigned: bool = False,
        exclude_past: bool = False,
        skip: int = 0,
        limit: int = 500,
    ) -> list[Event]:
        """List events ordered by start time, travel events included."""
        query = self._query(db)

        if start_date:
            query = query.filter(Event.start_time >= start_date)
        if end_date:
            query = query.filter(Event.start_time <= end_date)

        if unassigned:
            query = query.filter(Event.assigned_to_user_id.is_(None), Event.is_skipped.is_(False))
        elif assigned_to_user_id is not None:
            query = query.filter(Event.assigned_to_user_id == assigned_to_user_id)

        if exclude_past:
            query = query.filter(Event.end_time >= datetime.now(timezone.utc))

        events = query.order_by(Event.start_time.asc(), Event.id.asc()).offset(skip).limit(limit).all()
        logger.debug(f"Listed {len(events)} events")
        return events

    def create_event(self, data: EventCreate, db: Session) -> Event:
        """Create an event, optionally with its travel events."""
        if data.assigned_to_user_id is not None:
            self._get_user(data.assigned_to_user_id, db)

        event = Event(**data.model_dump(exclude={"supplemental_events"}))
        event.supplemental_events = [
            SupplementalEvent(**item.model_dump()) for item in data.supplemental_events
        ]
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(f"Created event {event.id} '{event.title}'")
        return event

    def replace_supplemental_events(
        self, event_id: int, items: list[SupplementalEventCreate], db: Session
    ) -> Event:
        """Replace an event's travel events with a freshly estimated set."""
        event = self.get_event(event_id, db)
        event.supplemental_events = [SupplementalEvent(**item.model_dump()) for item in items]
        db.commit()
        db.refresh(event)
        logger.info(f"Replaced travel events for event {event_id}: {len(items)} now attached")
        return event

    def check_conflicts(self, event_id: int, candidate_user_id: int, db: Session) -> list[Event]:
        """Events of the candidate that would overlap if they took this event.

        Travel events of the other events count, since their windows come
        from ``resolve_interval``. The event itself, skipped events and events
        of other people are ignored.
        """
        event = self.get_event(event_id, db)
        candidate = self._get_user(candidate_user_id, db)

        if event.assigned_to_user_id == candidate.id:
            window = resolve_interval(event)
        else:
            window = prospective_interval(
                event, comfort_buffer=timedelta(minutes=candidate.comfort_buffer_minutes)
            )

        others = (
            self._query(db)
            .filter(
                Event.id != event_id,
                Event.assigned_to_user_id == candidate.id,
                Event.is_skipped.is_(False),
                Event.start_time <= window.end + TRAVEL_WINDOW_SLACK,
                Event.end_time >= window.start - TRAVEL_WINDOW_SLACK,
            )
            .order_by(Event.start_time.asc(), Event.id.asc())
            .all()
        )

        conflicts = [other for other in others if intervals_overlap(window, resolve_interval(other))]
        logger.info(
            f"Conflict check for event {event_id} -> user {candidate_user_id}: "
            f"{len(conflicts)} conflicting event(s)"
        )
        return conflicts

    @staticmethod
    def _current_state(event: Event) -> dict[str, Any]:
        assignee = event.assigned_to
        return {
            "id": event.id,
            "title": event.title,
            "assigned_to_user_id": event.assigned_to_user_id,
            "assigned_to": {"id": assignee.id, "name": assignee.name} if assignee else None,
            "is_skipped": event.is_skipped,
            "version": event.version,
        }

    def assign_event(
        self,
        event_id: int,
        assign_to_user_id: int | None,
        db: Session,
        expected_version: int | None = None,
        skip: bool = False,
    ) -> Event:
        """Assign, unassign or skip an event with optimistic locking.

        The write is a conditional UPDATE on ``version``; if another writer got
        there first nothing is changed and ``ConcurrentModificationError``
        carries the row as it is now. Travel events belong to the previous
        assignee and are dropped whenever the assignee changes.
        """
        event = self.get_event(event_id, db)
        new_assignee = None if skip else assign_to_user_id
        if new_assignee is not None:
            self._get_user(new_assignee, db)

        if expected_version is not None and event.version != expected_version:
            logger.warning(
                f"Rejected assignment of event {event_id}: expected version "
                f"{expected_version}, found {event.version}"
            )
            raise ConcurrentModificationError(
                "Event", event_id, expected_version, event.version, self._current_state(event)
            )

        previous_assignee = event.assigned_to_user_id
        version_for_update = expected_version if expected_version is not None else event.version

        updated = (
            db.query(Event)
            .filter(Event.id == event_id, Event.version == version_for_update)
            .update(
                {
                    Event.assigned_to_user_id: new_assignee,
                    Event.is_skipped: skip,
                    Event.version: Event.version + 1,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            # Lost the race between the read above and the conditional write
            db.refresh(event)
            logger.warning(
                f"Concurrent assignment of event {event_id}: version moved from "
                f"{version_for_update} to {event.version}"
            )
            raise ConcurrentModificationError(
                "Event", event_id, version_for_update, event.version, self._current_state(event)
            )

        if previous_assignee != new_assignee:
            removed = (
                db.query(SupplementalEvent)
                .filter(SupplementalEvent.parent_event_id == event_id)
                .delete(synchronize_session=False)
            )
            if removed:
                logger.info(f"Dropped {removed} travel event(s) of event {event_id} after reassignment")

        db.commit()
        event = self.get_event(event_id, db)
        logger.info(
            f"Event {event_id} {'skipped' if skip else 'assigned'} "
            f"(assignee {previous_assignee} -> {event.assigned_to_user_id}, version {event.version})"
        )
        return event

    def resolve_conflict(
        self,
        event1_id: int,
        event2_id: int,
        reason: ConflictResolutionReason,
        assigned_user_id: int,
        db: Session,
    ) -> int:
        """Drop the travel events between two conflicting events.

        The earlier event loses its trip home and the later one its trip there
        and early-arrival buffer, so the parent goes straight from one to the
        other. Returns the number of travel events removed; running it again
        removes nothing and still succeeds.
        """
        first = self.get_event(event1_id, db)
        second = self.get_event(event2_id, db)

        for event in (first, second):
            if event.assigned_to_user_id != assigned_user_id:
                raise ValidationError(
                    f"Event {event.id} is not assigned to user {assigned_user_id}",
                    {"event_id": event.id, "assigned_to_user_id": event.assigned_to_user_id},
                )

        earlier, later = sorted((first, second), key=lambda e: (e.start_time, e.id))
        removed = self._delete_supplemental(earlier.id, [SupplementalEventType.RETURN], db)
        removed += self._delete_supplemental(
            later.id, [SupplementalEventType.DEPARTURE, SupplementalEventType.BUFFER], db
        )
        db.commit()

        if reason == ConflictResolutionReason.OTHER:
            logger.info(f"User override for conflict between events {event1_id} and {event2_id}")
        logger.info(
            f"Resolved {reason.value} conflict between events {earlier.id} and {later.id}: "
            f"removed {removed} travel event(s)"
        )
        return removed

    @staticmethod
    def _delete_supplemental(
        event_id: int, kinds: list[SupplementalEventType], db: Session
    ) -> int:
        return (
            db.query(SupplementalEvent)
            .filter(
                SupplementalEvent.parent_event_id == event_id,
                SupplementalEvent.type.in_([kind.value for kind in kinds]),
            )
            .delete(synchronize_session=False)
        )

    def conflict_map(self, db: Session, **filters: Any) -> dict[int, set[int]]:
        """Conflict map over the events matching the list filters."""
        return detect_conflicts(self.list_events(db, **filters))

    def prune_stale_supplemental_events(self, db: Session, ended_before: datetime) -> int:
        """Delete travel events nobody will drive.

        That is travel attached to unassigned or skipped events, and travel of
        events that ended before ``ended_before``.
        """
        stale_parents = select(Event.id).where(
            (Event.assigned_to_user_id.is_(None))
            | (Event.is_skipped.is_(True))
            | (Event.end_time < ended_before)
        )
        removed = (
            db.query(SupplementalEvent)
            .filter(SupplementalEvent.parent_event_id.in_(stale_parents))
            .delete(synchronize_session=False)
        )
        db.commit()
        return removed


def get_event_service() -> EventService:
    """Get an event service instance."""
    return EventService()
