"""Tests for the async event store client."""

import json
from collections.abc import Callable

import httpx
import pytest

from handoff.errors import ConflictCheckFailure, ResolutionFailure, StoreFailure, VersionConflict
from handoff.schemas.event import ConflictResolutionReason
from handoff.services.event_store_client import EventStoreClient

BASE_URL = "http://store.test"


def event_json(event_id: int = 7, assignee: int | None = None, version: int = 1) -> dict:
    return {
        "id": event_id,
        "title": "Practice",
        "start_time": "2024-06-01T09:00:00",
        "end_time": "2024-06-01T10:00:00",
        "assigned_to_user_id": assignee,
        "version": version,
        "supplemental_events": [
            {
                "id": 1,
                "parent_event_id": event_id,
                "type": "departure",
                "start_time": "2024-06-01T08:30:00",
                "end_time": "2024-06-01T09:00:00",
            }
        ],
    }


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> EventStoreClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EventStoreClient(base_url=BASE_URL, http_client=http_client)


class TestListEvents:
    """Tests for listing events."""

    @pytest.mark.asyncio
    async def test_parses_events_and_sends_filters(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=[event_json(assignee=2)])

        events = await make_client(handler).list_events(assigned_to_user_id=2, exclude_past=True)

        assert len(events) == 1
        assert events[0].assigned_to_user_id == 2
        assert events[0].supplemental_events[0].type == "departure"
        assert requests[0].url.path == "/api/v1/events/"
        assert requests[0].url.params["assigned_to_user_id"] == "2"
        assert requests[0].url.params["exclude_past"] == "true"
        assert "unassigned" not in requests[0].url.params

    @pytest.mark.asyncio
    async def test_http_error_becomes_store_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"detail": "down"})

        with pytest.raises(StoreFailure) as exc_info:
            await make_client(handler).list_events()
        assert exc_info.value.http_status == 503

    @pytest.mark.asyncio
    async def test_transport_error_becomes_store_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StoreFailure) as exc_info:
            await make_client(handler).list_events()
        assert exc_info.value.http_status is None


    @pytest.mark.asyncio
    async def test_pages_through_the_whole_listing(self):
        stored = [event_json(event_id) for event_id in range(1, 502)]
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            skip = int(request.url.params["skip"])
            limit = int(request.url.params["limit"])
            return httpx.Response(200, json=stored[skip : skip + limit])

        events = await make_client(handler).list_events()

        assert [e.id for e in events] == list(range(1, 502))
        assert [r.url.params["skip"] for r in requests] == ["0", "500"]
        assert all(r.url.params["limit"] == "500" for r in requests)

    @pytest.mark.asyncio
    async def test_exact_page_multiple_needs_one_more_request(self):
        stored = [event_json(event_id) for event_id in range(1, 5)]
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            skip = int(request.url.params["skip"])
            limit = int(request.url.params["limit"])
            return httpx.Response(200, json=stored[skip : skip + limit])

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = EventStoreClient(base_url=BASE_URL, http_client=http_client, page_size=2)
        events = await client.list_events(assigned_to_user_id=3)

        assert len(events) == 4
        assert [r.url.params["skip"] for r in requests] == ["0", "2", "4"]
        assert all(r.url.params["assigned_to_user_id"] == "3" for r in requests)

    @pytest.mark.asyncio
    async def test_unreadable_listing_is_store_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": "not-an-event"}])

        with pytest.raises(StoreFailure):
            await make_client(handler).list_events()


class TestCheckConflicts:
    """Tests for the conflict check call."""

    @pytest.mark.asyncio
    async def test_returns_conflicts(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, json={"has_conflicts": True, "conflicts": [event_json(8, assignee=3)]}
            )

        check = await make_client(handler).check_conflicts(7, 3)

        assert check.has_conflicts is True
        assert [e.id for e in check.conflicts] == [8]
        assert requests[0].url.path == "/api/v1/events/7/conflicts"
        assert requests[0].url.params["assign_to_user_id"] == "3"

    @pytest.mark.asyncio
    async def test_failure_becomes_conflict_check_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        with pytest.raises(ConflictCheckFailure):
            await make_client(handler).check_conflicts(7, 3)


class TestAssignEvent:
    """Tests for versioned assignment."""

    @pytest.mark.asyncio
    async def test_sends_expected_version(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=event_json(assignee=3, version=2))

        event = await make_client(handler).assign_event(7, 3, expected_version=1)

        assert event.version == 2
        assert requests[0].method == "PATCH"
        assert requests[0].url.path == "/api/v1/events/7/assign"
        assert json.loads(requests[0].content) == {
            "assigned_to_user_id": 3,
            "expected_version": 1,
            "skip": False,
        }

    @pytest.mark.asyncio
    async def test_version_mismatch_becomes_version_conflict(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                409,
                json={
                    "error": "Event was modified by another user",
                    "code": "CONCURRENT_MODIFICATION",
                    "message": "Please refresh and try again.",
                    "details": {
                        "expected_version": 3,
                        "actual_version": 4,
                        "current_state": {"id": 7, "assigned_to_user_id": 5, "version": 4},
                    },
                },
            )

        with pytest.raises(VersionConflict) as exc_info:
            await make_client(handler).assign_event(7, 3, expected_version=3)

        error = exc_info.value
        assert error.expected_version == 3
        assert error.actual_version == 4
        assert error.current_assignee_id == 5

    @pytest.mark.asyncio
    async def test_other_409_is_store_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"detail": "Email already registered"})

        with pytest.raises(StoreFailure) as exc_info:
            await make_client(handler).assign_event(7, 3, expected_version=1)
        assert not isinstance(exc_info.value, VersionConflict)
        assert exc_info.value.http_status == 409

    @pytest.mark.asyncio
    async def test_server_error_is_store_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(StoreFailure) as exc_info:
            await make_client(handler).assign_event(7, None, expected_version=1)
        assert exc_info.value.http_status == 500

    @pytest.mark.asyncio
    async def test_timeout_is_store_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(StoreFailure):
            await make_client(handler).assign_event(7, 3, expected_version=1)


class TestResolveConflict:
    """Tests for the conflict resolution call."""

    @pytest.mark.asyncio
    async def test_posts_resolution(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200, json={"success": True, "message": "Conflict resolved", "removed": 2}
            )

        result = await make_client(handler).resolve_conflict(
            1, 2, ConflictResolutionReason.SAME_LOCATION, 3
        )

        assert result.success is True
        assert result.removed == 2
        assert requests[0].url.path == "/api/v1/events/resolve-conflict"
        assert json.loads(requests[0].content)["reason"] == "same_location"

    @pytest.mark.asyncio
    async def test_failure_becomes_resolution_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"code": "VALIDATION_ERROR"})

        with pytest.raises(ResolutionFailure):
            await make_client(handler).resolve_conflict(1, 2, ConflictResolutionReason.OTHER, 3)


def test_base_url_from_settings():
    client = EventStoreClient()
    assert client.base_url == "http://localhost:8000"
    assert client._url("/5/assign") == "http://localhost:8000/api/v1/events/5/assign"


@pytest.mark.asyncio
async def test_unreadable_resolution_is_resolution_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": 1})

    with pytest.raises(ResolutionFailure):
        await make_client(handler).resolve_conflict(1, 2, ConflictResolutionReason.OTHER, 3)


@pytest.mark.asyncio
async def test_unreadable_conflict_check_is_conflict_check_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"conflicts": "none"})

    with pytest.raises(ConflictCheckFailure):
        await make_client(handler).check_conflicts(7, 3)


@pytest.mark.asyncio
async def test_unreadable_assignment_result_is_store_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": 7})

    with pytest.raises(StoreFailure):
        await make_client(handler).assign_event(7, 3, expected_version=1)
