"""Base service exceptions.

These exceptions are raised by the service layer and are converted to HTTP
responses by the API layer (see ``freightbid.main``). Errors about the state
of a record carry a snapshot of the current authoritative state so callers
can refresh instead of blindly retrying.
"""

from enum import Enum
from typing import Any


class ServiceError(Exception):
    """Base service exception."""

    status_code = 500
    default_message = "Internal service error"

    def __init__(self, message: str | None = None, *, current: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.current = current
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        rv: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.current is not None:
            rv["current"] = self.current
        return rv


class ValidationError(ServiceError):
    """Validation error."""

    status_code = 400
    default_message = "Invalid input"


class NotFoundError(ServiceError):
    """Resource not found."""

    status_code = 404
    default_message = "Resource not found"


class ForbiddenError(ServiceError):
    """Caller may not act on this resource."""

    status_code = 403
    default_message = "Not allowed"


class InvalidStateError(ServiceError):
    """Illegal lifecycle transition, e.g. quoting on a closed order or selecting twice."""

    status_code = 409
    default_message = "Operation not allowed in the current state"


class ConflictError(ServiceError):
    """Caller acted on a stale view of a record."""

    status_code = 409
    default_message = "Record changed since it was read"


class CapacityExceeded(ServiceError):
    """A bounded resource (e.g. the daily order sequence) is exhausted."""

    status_code = 503
    default_message = "Capacity exceeded"


class TransientStoreError(ServiceError):
    """Lock contention, deadlock victim or serialization failure. Safe to retry."""

    status_code = 503
    default_message = "Store temporarily unavailable, retry later"


class FatalStoreError(ServiceError):
    """Unexpected store failure. Surfaced, never retried."""

    status_code = 500
    default_message = "Unexpected store failure"


class UnexpectedStatusError(InvalidStateError):
    """Status in DB doesn't match an allowed source status for the requested transition.

    Raised by RowLock.transition() when the current status cannot move to the
    requested one, or when another transaction changed it first.
    """

    def __init__(self, expected: frozenset[Enum], actual: Enum, *, current: dict[str, Any] | None = None):
        self.expected = expected
        self.actual = actual
        expected_names = ", ".join(sorted(e.value for e in expected)) or "-"
        super().__init__(f"Expected status in ({expected_names}), got {actual.value}", current=current)
