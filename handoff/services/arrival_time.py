"""Arrival time extraction from event descriptions.

Team-management feeds put the time families are expected on site into the
free-text description, e.g.::

    Location: Turf (Arrival Time: 1:30 PM (Eastern Time (US & Canada)))

Nothing here raises on odd input: anything that does not look like a valid
12-hour clock reading is reported as "no arrival time".
"""

import logging
import re
from datetime import datetime, time, tzinfo

import pytz

logger = logging.getLogger(__name__)

ARRIVAL_TIME_PATTERN = re.compile(
    r"Arrival Time:\s*(\d{1,2}):(\d{2})\s*([AP]M)"
    r"(?:\s*\(\s*([^()]*(?:\([^()]*\))?[^()]*?)\s*\))?",
    re.IGNORECASE,
)
LOCATION_PATTERN = re.compile(r"Location:\s*([^(\n]+?)\s*(?:\(|$)", re.IGNORECASE | re.MULTILINE)

TIMEZONE_ALIASES = {
    "eastern time (us & canada)": "America/New_York",
    "eastern time": "America/New_York",
    "est": "America/New_York",
    "edt": "America/New_York",
    "central time (us & canada)": "America/Chicago",
    "central time": "America/Chicago",
    "cst": "America/Chicago",
    "cdt": "America/Chicago",
    "mountain time (us & canada)": "America/Denver",
    "mountain time": "America/Denver",
    "mst": "America/Denver",
    "mdt": "America/Denver",
    "pacific time (us & canada)": "America/Los_Angeles",
    "pacific time": "America/Los_Angeles",
    "pst": "America/Los_Angeles",
    "pdt": "America/Los_Angeles",
    "alaska time": "America/Anchorage",
    "hawaii time": "Pacific/Honolulu",
    "arizona time": "America/Phoenix",
}


def to_24_hour(hour: int, minute: int, meridiem: str) -> time | None:
    """Convert a 12-hour reading to a ``time``; ``None`` if out of range.

    12 AM is midnight, 12 PM stays noon.
    """
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        return None
    hour = hour % 12
    if meridiem.upper() == "PM":
        hour += 12
    return time(hour, minute)


def parse_arrival_clock(description: str | None) -> tuple[time, str | None] | None:
    """Find "Arrival Time: H:MM AM/PM" and return the clock time and zone label."""
    if not description:
        return None

    match = ARRIVAL_TIME_PATTERN.search(description)
    if not match:
        return None

    clock = to_24_hour(int(match.group(1)), int(match.group(2)), match.group(3))
    if clock is None:
        logger.debug(f"Ignoring out-of-range arrival time {match.group(0)!r}")
        return None

    label = match.group(4).strip() if match.group(4) else None
    return clock, label


def lookup_timezone(label: str | None) -> tzinfo | None:
    """Map a feed's time-zone label to a pytz zone, or ``None`` if unknown."""
    if not label:
        return None

    key = label.strip().lower()
    name = TIMEZONE_ALIASES.get(key)
    if name is None:
        for alias, candidate in TIMEZONE_ALIASES.items():
            if alias in key or key in alias:
                name = candidate
                break
    if name is None:
        try:
            return pytz.timezone(label.strip())
        except pytz.UnknownTimeZoneError:
            logger.debug(f"Unknown arrival time zone label {label!r}")
            return None
    return pytz.timezone(name)


def parse_arrival_time(description: str | None, start_time: datetime) -> datetime | None:
    """Anchor the description's arrival time on the event's calendar date.

    The date is the one ``start_time`` falls on. When ``start_time`` is aware
    and the text names a known zone, both the date and the clock reading are
    interpreted in that zone. The result has the same tzinfo as ``start_time``.
    """
    parsed = parse_arrival_clock(description)
    if parsed is None:
        return None
    clock, label = parsed

    try:
        zone = lookup_timezone(label) if start_time.tzinfo is not None else None
        if zone is not None:
            local_start = start_time.astimezone(zone)
            arrival = zone.localize(datetime.combine(local_start.date(), clock))
            return arrival.astimezone(start_time.tzinfo)
        return datetime.combine(start_time.date(), clock, tzinfo=start_time.tzinfo)
    except (ValueError, OverflowError) as e:
        logger.warning(f"Could not anchor arrival time {clock} to {start_time}: {e}")
        return None


def extract_location(description: str | None) -> str | None:
    """Pull "Location: <name>" out of a description."""
    if not description:
        return None

    match = LOCATION_PATTERN.search(description)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return None
