"""Conflict-checked, version-guarded event assignment.

One ``AssignmentAttempt`` per event moves through::

    IDLE -> CHECKING_CONFLICTS -> AWAITING_CONFIRMATION -> COMMITTING -> IDLE
                              \\-------------------------/

Unassigning and skipping go straight to COMMITTING. An attempt waiting for
confirmation is an ordinary object the caller can inspect and later pass to
``confirm`` or ``decline``.
"""

import asyncio
import logging
from enum import Enum
from typing import Any

from handoff.errors import (
    AssignmentInProgress,
    ConflictCheckFailure,
    StoreFailure,
    ValidationError,
    VersionConflict,
)
from handoff.schemas.event import Event
from handoff.services.event_cache import EventCache
from handoff.services.event_store_client import EventStoreClient

logger = logging.getLogger(__name__)


class AssignmentState(str, Enum):
    """Where an assignment attempt currently is."""

    IDLE = "idle"
    CHECKING_CONFLICTS = "checking_conflicts"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMMITTING = "committing"


class AssignmentAttempt:
    """A single assign/unassign/skip request for one event."""

    def __init__(self, event: Event, target_user_id: int | None, skip: bool = False) -> None:
        self.event = event
        self.target_user_id = target_user_id
        self.skip = skip
        self.state = AssignmentState.IDLE
        self.conflicts: list[Event] = []
        self.result: Event | None = None
        self.error: Exception | None = None

    @property
    def event_id(self) -> Any:
        return self.event.id

    @property
    def expected_version(self) -> int:
        # The version the user was looking at, never re-read before the write
        return self.event.version

    @property
    def is_active(self) -> bool:
        return self.state != AssignmentState.IDLE

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    def __repr__(self) -> str:
        return (
            f"<AssignmentAttempt(event={self.event_id}, target={self.target_user_id}, "
            f"state='{self.state.value}')>"
        )


class AssignmentCoordinator:
    """Drives assignment attempts against the event store.

    At most one attempt per event is in flight from this coordinator; a
    second one is refused with ``AssignmentInProgress`` so two writes never
    go out with the same expected version. Concurrent writers elsewhere are
    caught by the store's version check.
    """

    def __init__(self, client: EventStoreClient, cache: EventCache | None = None) -> None:
        self.client = client
        self.cache = cache
        self._attempts: dict[Any, AssignmentAttempt] = {}

    def attempt_for(self, event_id: Any) -> AssignmentAttempt | None:
        """The unfinished attempt for an event, if any."""
        return self._attempts.get(event_id)

    def _start(self, event: Event, target_user_id: int | None, skip: bool) -> AssignmentAttempt:
        if event is None or event.id is None:
            raise ValidationError("An event is required to assign")
        if event.version is None or event.version < 1:
            raise ValidationError(
                f"Event {event.id} has no version; refresh the event list first",
                {"event_id": event.id},
            )

        current = self._attempts.get(event.id)
        if current is not None and current.is_active:
            raise AssignmentInProgress(
                f"An assignment for event {event.id} is already {current.state.value}",
                {"event_id": event.id, "state": current.state.value},
            )

        attempt = AssignmentAttempt(event, target_user_id, skip)
        self._attempts[event.id] = attempt
        return attempt

    def _finish(self, attempt: AssignmentAttempt, error: Exception | None = None) -> AssignmentAttempt:
        attempt.state = AssignmentState.IDLE
        attempt.error = error
        if self._attempts.get(attempt.event_id) is attempt:
            del self._attempts[attempt.event_id]
        return attempt

    async def assign(self, event: Event, target_user_id: int | None) -> AssignmentAttempt:
        """Start assigning ``event`` to ``target_user_id`` (``None`` unassigns).

        Returns the attempt: either finished (``result`` holds the updated
        event) or parked in AWAITING_CONFIRMATION with ``conflicts`` filled in.
        """
        attempt = self._start(event, target_user_id, skip=False)
        if target_user_id is None:
            return await self._commit(attempt)

        attempt.state = AssignmentState.CHECKING_CONFLICTS
        try:
            check = await self.client.check_conflicts(event.id, target_user_id)
        except ConflictCheckFailure as e:
            self._finish(attempt, e)
            raise
        except Exception as e:
            failure = ConflictCheckFailure(f"Could not check conflicts for event {event.id}: {e}")
            self._finish(attempt, failure)
            raise failure from e
        except asyncio.CancelledError:
            self._finish(attempt)
            raise

        if check.has_conflicts:
            attempt.conflicts = list(check.conflicts)
            attempt.state = AssignmentState.AWAITING_CONFIRMATION
            logger.info(
                f"Assigning event {event.id} to user {target_user_id} conflicts with "
                f"{len(attempt.conflicts)} event(s); waiting for confirmation"
            )
            return attempt

        return await self._commit(attempt)

    async def unassign(self, event: Event) -> AssignmentAttempt:
        """Remove the assignee; never checks conflicts."""
        return await self.assign(event, None)

    async def skip(self, event: Event) -> AssignmentAttempt:
        """Mark the event "Not Attending"; clears the assignee."""
        attempt = self._start(event, None, skip=True)
        return await self._commit(attempt)

    def _awaiting(self, event_id: Any) -> AssignmentAttempt:
        attempt = self._attempts.get(event_id)
        if attempt is None or attempt.state != AssignmentState.AWAITING_CONFIRMATION:
            raise ValidationError(
                f"No assignment for event {event_id} is waiting for confirmation",
                {"event_id": event_id},
            )
        return attempt

    async def confirm(self, event_id: Any) -> AssignmentAttempt:
        """Go ahead with an assignment despite the reported conflicts."""
        return await self._commit(self._awaiting(event_id))

    def decline(self, event_id: Any) -> AssignmentAttempt:
        """Abandon an assignment waiting for confirmation; nothing is written."""
        attempt = self._awaiting(event_id)
        logger.info(f"Assignment of event {event_id} to user {attempt.target_user_id} declined")
        return self._finish(attempt)

    async def _commit(self, attempt: AssignmentAttempt) -> AssignmentAttempt:
        attempt.state = AssignmentState.COMMITTING
        try:
            updated = await self.client.assign_event(
                attempt.event_id,
                attempt.target_user_id,
                expected_version=attempt.expected_version,
                skip=attempt.skip,
            )
        except (VersionConflict, StoreFailure) as e:
            self._finish(attempt, e)
            raise
        except Exception as e:
            failure = StoreFailure(f"Failed to assign event {attempt.event_id}: {e}")
            self._finish(attempt, failure)
            raise failure from e
        except asyncio.CancelledError:
            # The write may or may not have landed; the next refresh shows which
            self._finish(attempt)
            if self.cache is not None:
                self.cache.invalidate()
            raise

        attempt.result = updated
        self._finish(attempt)
        if self.cache is not None:
            self.cache.invalidate()
        logger.info(
            f"Event {attempt.event_id} now assigned to {updated.assigned_to_user_id} "
            f"(version {updated.version})"
        )
        return attempt
