"""Application error types.

Store-side errors carry an HTTP status and a stable ``code`` so the API can
render them and clients can tell them apart. Client-side errors describe what
happened to a single assignment or resolution attempt; none of them are fatal.
"""

from typing import Any


class HandoffError(Exception):
    """Base application error with a machine-readable code."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code,
            "message": self.message,
            "details": self.context,
        }


class ValidationError(HandoffError):
    """Request is missing something required; rejected before any mutation."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(HandoffError):
    """Referenced record does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: Any = None) -> None:
        if identifier is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, {"resource": resource, "identifier": identifier})


class ConcurrentModificationError(HandoffError):
    """Optimistic lock failure: the row changed since the caller read it."""

    code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(
        self,
        resource_type: str,
        resource_id: Any,
        expected_version: int,
        actual_version: int,
        current_state: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"{resource_type} {resource_id} was modified by another user. "
            f"Expected version {expected_version}, but found {actual_version}",
            {
                "expected_version": expected_version,
                "actual_version": actual_version,
                "current_state": current_state or {},
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.current_state = current_state or {}

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["error"] = f"{self.resource_type} was modified by another user"
        data["message"] = (
            f"The {self.resource_type.lower()} has been updated since you last viewed it. "
            "Please refresh and try again."
        )
        return data


# Client-side failures


class AssignmentError(HandoffError):
    """Base for failures of a single client-side assignment attempt."""


class ConflictCheckFailure(AssignmentError):
    """The conflict check call failed; nothing was mutated."""

    code = "CONFLICT_CHECK_FAILED"
    status_code = 502


class VersionConflict(AssignmentError):
    """The store rejected a commit because the event moved on.

    Carries the store's authoritative state so the caller can explain the
    discrepancy without another round trip. Never retried automatically.
    """

    code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(
        self,
        event_id: Any,
        expected_version: int | None,
        actual_version: int | None,
        current_state: dict[str, Any] | None = None,
    ) -> None:
        self.event_id = event_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        self.current_state = current_state or {}
        super().__init__(
            f"Event {event_id} was modified by another user "
            f"(expected version {expected_version}, found {actual_version})",
            {
                "expected_version": expected_version,
                "actual_version": actual_version,
                "current_state": self.current_state,
            },
        )

    @property
    def current_assignee_id(self) -> Any:
        return self.current_state.get("assigned_to_user_id")


class StoreFailure(AssignmentError):
    """Any other failure reported by (or reaching) the event store."""

    code = "STORE_FAILURE"
    status_code = 502

    def __init__(
        self, message: str, status_code: int | None = None, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, context)
        self.http_status = status_code


class AssignmentInProgress(AssignmentError):
    """Another attempt for the same event has not finished yet."""

    code = "ASSIGNMENT_IN_PROGRESS"
    status_code = 409


class ResolutionFailure(HandoffError):
    """The conflict resolution call failed; the conflict stays visible."""

    code = "RESOLUTION_FAILED"
    status_code = 502
