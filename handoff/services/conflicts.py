"""Overlap detection between events assigned to the same person."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import timedelta
from typing import Any

from handoff.services.intervals import EffectiveInterval, resolve_interval


def intervals_overlap(first: EffectiveInterval, second: EffectiveInterval) -> bool:
    """Closed-interval overlap test; touching endpoints count.

    Back-to-back commitments leave zero slack for travel, so a window ending
    at 11:00 conflicts with one starting at 11:00.
    """
    return first.start <= second.end and first.end >= second.start


def detect_conflicts(
    events: Iterable[Any], margin: timedelta | None = None
) -> dict[Any, set[Any]]:
    """Map each event id to the ids of events it overlaps with.

    Only events sharing the same non-null assignee are compared; unassigned
    events never appear. The result is symmetric and rebuilt from scratch on
    every call.

    Every pair within an assignee's group is compared, which is quadratic in
    the group size. One family's event list is small enough for that; a
    sweep over intervals sorted by start would be the next step if it is not.
    """
    groups: dict[Any, list[tuple[Any, EffectiveInterval]]] = defaultdict(list)
    for event in events:
        if event.assigned_to_user_id is None:
            continue
        groups[event.assigned_to_user_id].append((event, resolve_interval(event, margin)))

    conflicts: dict[Any, set[Any]] = defaultdict(set)
    for members in groups.values():
        for index, (first, first_window) in enumerate(members):
            for second, second_window in members[index + 1 :]:
                if first.id == second.id:
                    continue
                if intervals_overlap(first_window, second_window):
                    conflicts[first.id].add(second.id)
                    conflicts[second.id].add(first.id)

    return dict(conflicts)


def conflicting_pairs(conflict_map: dict[Any, set[Any]]) -> list[tuple[Any, Any]]:
    """Each unordered conflicting pair once, smaller id first, sorted."""
    pairs = {
        tuple(sorted((event_id, other_id)))
        for event_id, others in conflict_map.items()
        for other_id in others
    }
    return sorted(pairs)
