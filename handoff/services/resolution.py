"""Resolving a detected conflict between two events of the same assignee."""

import logging
from typing import Any

from handoff.errors import ResolutionFailure, ValidationError
from handoff.schemas.event import ConflictResolution, ConflictResolutionReason, Event
from handoff.services.event_cache import EventCache
from handoff.services.event_store_client import EventStoreClient

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Asks the store to clear a conflict, then reloads the whole event list.

    The store edits travel events the client never sees directly, so a
    targeted patch of the cache is not enough; the full collection is
    refetched before conflicts are computed again.
    """

    def __init__(self, client: EventStoreClient, cache: EventCache) -> None:
        self.client = client
        self.cache = cache

    async def resolve(
        self,
        event_a: Event,
        event_b: Event,
        reason: ConflictResolutionReason | str,
        assigned_user_id: Any = None,
    ) -> ConflictResolution:
        try:
            reason = ConflictResolutionReason(reason)
        except ValueError as e:
            raise ValidationError(f"Unknown resolution reason {reason!r}") from e

        if event_a.id == event_b.id:
            raise ValidationError("A conflict needs two different events")

        if assigned_user_id is None:
            assigned_user_id = event_a.assigned_to_user_id
        if assigned_user_id is None:
            raise ValidationError("An assignee is required to resolve a conflict")
        for event in (event_a, event_b):
            if event.assigned_to_user_id != assigned_user_id:
                raise ValidationError(
                    f"Event {event.id} is not assigned to user {assigned_user_id}",
                    {"event_id": event.id},
                )

        try:
            result = await self.client.resolve_conflict(
                event_a.id, event_b.id, reason, assigned_user_id
            )
        except ResolutionFailure:
            logger.warning(
                f"Conflict between events {event_a.id} and {event_b.id} left in place"
            )
            raise

        self.cache.invalidate()
        await self.cache.refresh()
        logger.info(f"Resolved conflict between events {event_a.id} and {event_b.id} ({reason.value})")
        return result
