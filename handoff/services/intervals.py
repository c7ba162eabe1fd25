"""Effective busy interval of an event once travel is accounted for.

Resolution order for the start of the window:

1. a ``departure`` travel event,
2. else a ``buffer`` (early arrival) travel event,
3. else, for an unassigned event with a location, the arrival time written in
   the description, falling back to a fixed travel margin,
4. else the event's own start.

The end of the window uses a ``return`` travel event, else the margin for
unassigned events with a location, else the event's own end. The window never
shrinks below the event itself.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, NamedTuple

from handoff.config import get_app_config
from handoff.models.event import SupplementalEventType
from handoff.services.arrival_time import parse_arrival_time

logger = logging.getLogger(__name__)


class EffectiveInterval(NamedTuple):
    """Closed time window an event actually occupies."""

    start: datetime
    end: datetime


def default_margin() -> timedelta:
    """Travel margin for unassigned events that have a location."""
    return timedelta(minutes=get_app_config().default_margin_minutes)


def max_arrival_lead() -> timedelta:
    return timedelta(minutes=get_app_config().max_arrival_lead_minutes)


def find_supplemental(event: Any, kind: SupplementalEventType) -> Any | None:
    """First travel event of the given type, in source order."""
    for supplemental in getattr(event, "supplemental_events", None) or []:
        if supplemental.type == kind.value:
            return supplemental
    return None


def has_location(event: Any) -> bool:
    return bool(event.location and event.location.strip())


def _arrival_start(event: Any, margin: timedelta, max_lead: timedelta) -> datetime:
    """Arrival time from the description, or the start minus the margin."""
    arrival = parse_arrival_time(event.description, event.start_time)
    if arrival is not None:
        if event.start_time - max_lead <= arrival <= event.start_time:
            return arrival
        logger.warning(
            f"Ignoring implausible arrival time {arrival} for event {event.id} "
            f"starting at {event.start_time}"
        )
    return event.start_time - margin


def resolve_interval(
    event: Any,
    margin: timedelta | None = None,
    max_lead: timedelta | None = None,
) -> EffectiveInterval:
    """Compute the effective interval of an event.

    Works on anything shaped like an event (ORM row or API schema). Pure: no
    I/O beyond reading the cached app config for defaults.
    """
    if margin is None:
        margin = default_margin()
    if max_lead is None:
        max_lead = max_arrival_lead()

    heuristic = event.assigned_to_user_id is None and has_location(event)

    departure = find_supplemental(event, SupplementalEventType.DEPARTURE)
    buffer = find_supplemental(event, SupplementalEventType.BUFFER)
    if departure is not None:
        start = departure.start_time
    elif buffer is not None:
        start = buffer.start_time
    elif heuristic:
        start = _arrival_start(event, margin, max_lead)
    else:
        start = event.start_time

    trip_home = find_supplemental(event, SupplementalEventType.RETURN)
    if trip_home is not None:
        end = trip_home.end_time
    elif heuristic:
        end = event.end_time + margin
    else:
        end = event.end_time

    return EffectiveInterval(min(start, event.start_time), max(end, event.end_time))


def prospective_interval(
    event: Any,
    margin: timedelta | None = None,
    comfort_buffer: timedelta = timedelta(0),
    max_lead: timedelta | None = None,
) -> EffectiveInterval:
    """Window the event would occupy for a new assignee.

    Existing travel events were computed for whoever holds the event now, so
    they are ignored. Events with a location get an estimated drive of
    ``margin`` plus the candidate's ``comfort_buffer`` on both sides, measured
    from the arrival time when the description gives one.
    """
    if not has_location(event):
        return EffectiveInterval(event.start_time, event.end_time)

    if margin is None:
        margin = default_margin()
    if max_lead is None:
        max_lead = max_arrival_lead()
    drive = margin + comfort_buffer

    target = event.start_time
    arrival = parse_arrival_time(event.description, event.start_time)
    if arrival is not None and event.start_time - max_lead <= arrival <= event.start_time:
        target = arrival

    return EffectiveInterval(target - drive, event.end_time + drive)
