"""Client-side event snapshot with conflicts derived on read."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from handoff.schemas.event import Event
from handoff.services.conflicts import detect_conflicts
from handoff.services.event_store_client import EventStoreClient

logger = logging.getLogger(__name__)


class EventCache:
    """Holds the last event list fetched from the store.

    The event list is the only state; the conflict map is recomputed from it
    on every access, so it cannot drift from the events. Nothing here patches
    events locally: after a mutation the list is marked stale and refetched.
    """

    def __init__(
        self,
        client: EventStoreClient,
        filters: dict[str, Any] | None = None,
        margin: timedelta | None = None,
    ) -> None:
        self.client = client
        self.filters = filters or {}
        self.margin = margin
        self._events: list[Event] = []
        self.stale = True
        self.loaded_at: datetime | None = None

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def get(self, event_id: Any) -> Event | None:
        for event in self._events:
            if event.id == event_id:
                return event
        return None

    @property
    def conflicts(self) -> dict[Any, set[Any]]:
        return detect_conflicts(self._events, self.margin)

    def conflicts_for(self, event_id: Any) -> set[Any]:
        return self.conflicts.get(event_id, set())

    def invalidate(self) -> None:
        """Mark the snapshot as out of date."""
        self.stale = True

    async def refresh(self) -> list[Event]:
        """Refetch the full event collection from the store."""
        events = await self.client.list_events(**self.filters)
        self._events = list(events)
        self.stale = False
        self.loaded_at = datetime.now(timezone.utc)
        logger.debug(f"Event cache refreshed with {len(self._events)} events")
        return self.events

    async def ensure_fresh(self) -> list[Event]:
        if self.stale:
            return await self.refresh()
        return self.events
