"""Async HTTP client for the event store API."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import httpx
import pydantic

from handoff.config import get_settings
from handoff.errors import (
    ConcurrentModificationError,
    ConflictCheckFailure,
    ResolutionFailure,
    StoreFailure,
    VersionConflict,
)
from handoff.schemas.event import (
    ConflictCheck,
    ConflictResolution,
    ConflictResolutionReason,
    Event,
)

logger = logging.getLogger(__name__)

# Matches the store's default page size
PAGE_SIZE = 500


def _error_body(response: httpx.Response) -> dict[str, Any]:
    """Decoded JSON error body, or an empty dict if there is none."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class EventStoreClient:
    """Client for the event store REST endpoints.

    Pass ``http_client`` to reuse a connection pool (or a mock transport in
    tests); otherwise a short-lived ``httpx.AsyncClient`` is opened per call.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self.settings = get_settings()
        self.base_url = (base_url or self.settings.event_store_url).rstrip("/")
        self.timeout = timeout if timeout is not None else self.settings.event_store_timeout
        self._http_client = http_client
        self.page_size = page_size

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/v1/events{path}"

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def list_events(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        assigned_to_user_id: int | None = None,
        unassigned: bool = False,
        exclude_past: bool = False,
    ) -> list[Event]:
        """Fetch every matching event (with travel events) ordered by start time.

        The store pages its listing, so pages are requested until a short one
        comes back.
        """
        params: dict[str, Any] = {}
        if start_date:
            params["start_date"] = start_date.isoformat()
        if end_date:
            params["end_date"] = end_date.isoformat()
        if assigned_to_user_id is not None:
            params["assigned_to_user_id"] = assigned_to_user_id
        if unassigned:
            params["unassigned"] = "true"
        if exclude_past:
            params["exclude_past"] = "true"

        try:
            async with self._client() as client:
                events: list[Event] = []
                while True:
                    response = await client.get(
                        self._url("/"),
                        params={**params, "skip": len(events), "limit": self.page_size},
                    )
                    response.raise_for_status()
                    page = [Event.model_validate(item) for item in response.json()]
                    events.extend(page)
                    if len(page) < self.page_size:
                        return events
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to list events: {e}")
            raise StoreFailure(
                "Failed to fetch events", e.response.status_code, _error_body(e.response)
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to list events: {e}")
            raise StoreFailure(f"Failed to fetch events: {e}") from e
        except pydantic.ValidationError as e:
            logger.error(f"Unreadable event listing from the store: {e}")
            raise StoreFailure("Failed to read events from the store") from e

    async def check_conflicts(self, event_id: int, candidate_user_id: int) -> ConflictCheck:
        """Ask the store what the candidate's schedule would collide with."""
        try:
            async with self._client() as client:
                response = await client.get(
                    self._url(f"/{event_id}/conflicts"),
                    params={"assign_to_user_id": candidate_user_id},
                )
                response.raise_for_status()
                return ConflictCheck.model_validate(response.json())
        except (httpx.HTTPError, pydantic.ValidationError) as e:
            logger.error(f"Conflict check failed for event {event_id}: {e}")
            raise ConflictCheckFailure(
                f"Could not check conflicts for event {event_id}",
                {"event_id": event_id, "candidate_user_id": candidate_user_id},
            ) from e

    async def assign_event(
        self,
        event_id: int,
        user_id: int | None,
        expected_version: int,
        skip: bool = False,
    ) -> Event:
        """Versioned assignment; raises ``VersionConflict`` on a lost update."""
        payload = {
            "assigned_to_user_id": user_id,
            "expected_version": expected_version,
            "skip": skip,
        }
        try:
            async with self._client() as client:
                response = await client.patch(self._url(f"/{event_id}/assign"), json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Failed to assign event {event_id}: {e}")
            raise StoreFailure(f"Failed to assign event {event_id}: {e}") from e

        if response.is_success:
            try:
                return Event.model_validate(response.json())
            except pydantic.ValidationError as e:
                logger.error(f"Unreadable assignment result for event {event_id}: {e}")
                raise StoreFailure(
                    f"Failed to read assignment result for event {event_id}", response.status_code
                ) from e

        body = _error_body(response)
        if response.status_code == 409 and body.get("code") == ConcurrentModificationError.code:
            details = body.get("details") or {}
            logger.warning(f"Event {event_id} changed underneath us: {body.get('message')}")
            raise VersionConflict(
                event_id,
                details.get("expected_version", expected_version),
                details.get("actual_version"),
                details.get("current_state") or {},
            )

        logger.error(f"Failed to assign event {event_id}: HTTP {response.status_code} {body}")
        raise StoreFailure(
            body.get("message") or body.get("detail") or f"Failed to assign event {event_id}",
            response.status_code,
            body,
        )

    async def resolve_conflict(
        self,
        event1_id: int,
        event2_id: int,
        reason: ConflictResolutionReason,
        assigned_user_id: int,
    ) -> ConflictResolution:
        """Ask the store to drop the travel events that make two events overlap."""
        payload = {
            "event1_id": event1_id,
            "event2_id": event2_id,
            "reason": reason.value,
            "assigned_user_id": assigned_user_id,
        }
        try:
            async with self._client() as client:
                response = await client.post(self._url("/resolve-conflict"), json=payload)
                response.raise_for_status()
                return ConflictResolution.model_validate(response.json())
        except (httpx.HTTPError, pydantic.ValidationError) as e:
            logger.error(f"Failed to resolve conflict between {event1_id} and {event2_id}: {e}")
            raise ResolutionFailure(
                f"Could not resolve conflict between events {event1_id} and {event2_id}",
                {"event1_id": event1_id, "event2_id": event2_id},
            ) from e
