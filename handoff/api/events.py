"""Event API endpoints: listing, conflict checks, versioned assignment and
conflict resolution."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from handoff.database import get_db
from handoff.models.event import Event as EventModel
from handoff.schemas.event import (
    ConflictCheck,
    ConflictMap,
    ConflictResolution,
    ConflictResolutionRequest,
    Event,
    EventAssign,
    EventCreate,
    SupplementalEventsReplace,
)
from handoff.services.event_service import EventService, get_event_service

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.post("/", response_model=Event, status_code=201)
def create_event(
    event: EventCreate,
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> EventModel:
    """Create a new event."""
    return service.create_event(event, db)


@router.get("/", response_model=list[Event])
def list_events(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    assigned_to_user_id: int | None = None,
    unassigned: bool = False,
    exclude_past: bool = False,
    skip: int = 0,
    limit: int = Query(500, le=1000),
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> list[EventModel]:
    """List events ordered by start time, each with its travel events."""
    return service.list_events(
        db,
        start_date=start_date,
        end_date=end_date,
        assigned_to_user_id=assigned_to_user_id,
        unassigned=unassigned,
        exclude_past=exclude_past,
        skip=skip,
        limit=limit,
    )


@router.get("/conflict-map", response_model=ConflictMap)
def get_conflict_map(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    assigned_to_user_id: int | None = None,
    exclude_past: bool = False,
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> ConflictMap:
    """Which events overlap, per assignee, for the filtered event list."""
    conflicts = service.conflict_map(
        db,
        start_date=start_date,
        end_date=end_date,
        assigned_to_user_id=assigned_to_user_id,
        exclude_past=exclude_past,
    )
    return ConflictMap(
        conflicts={event_id: sorted(others) for event_id, others in conflicts.items()}
    )


@router.post("/resolve-conflict", response_model=ConflictResolution)
def resolve_conflict(
    request: ConflictResolutionRequest,
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> ConflictResolution:
    """Resolve a conflict between two events by dropping the travel between them."""
    removed = service.resolve_conflict(
        request.event1_id,
        request.event2_id,
        request.reason,
        request.assigned_user_id,
        db,
    )
    return ConflictResolution(success=True, message="Conflict resolved", removed=removed)


@router.get("/{event_id}", response_model=Event)
def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> EventModel:
    """Get an event by ID with its travel events."""
    return service.get_event(event_id, db)


@router.get("/{event_id}/conflicts", response_model=ConflictCheck)
def check_event_conflicts(
    event_id: int,
    assign_to_user_id: int = Query(..., description="Candidate assignee"),
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> ConflictCheck:
    """Events the candidate would be double-booked with if assigned this one."""
    conflicts = service.check_conflicts(event_id, assign_to_user_id, db)
    return ConflictCheck(
        has_conflicts=bool(conflicts),
        conflicts=[Event.model_validate(conflict) for conflict in conflicts],
    )


@router.patch("/{event_id}/assign", response_model=Event)
def assign_event(
    event_id: int,
    assignment: EventAssign,
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> EventModel:
    """Assign, unassign or skip an event.

    With ``expected_version`` the write only happens if the event is still at
    that version; otherwise the response is 409 ``CONCURRENT_MODIFICATION``
    with the current state in ``details.current_state``.
    """
    return service.assign_event(
        event_id,
        assignment.assigned_to_user_id,
        db,
        expected_version=assignment.expected_version,
        skip=assignment.skip,
    )


@router.put("/{event_id}/supplemental-events", response_model=Event)
def replace_supplemental_events(
    event_id: int,
    payload: SupplementalEventsReplace,
    db: Session = Depends(get_db),
    service: EventService = Depends(get_event_service),
) -> EventModel:
    """Replace an event's travel events (used by the drive-time estimator)."""
    return service.replace_supplemental_events(event_id, payload.supplemental_events, db)
