from __future__ import annotations


class FocusError(Exception):
    """Base class for errors raised by the task, timer and session core."""

    kind = "FocusError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class Unauthorized(FocusError):
    """No authenticated owner was supplied with the request."""

    kind = "Unauthorized"


# PUBLIC_INTERFACE
class ValidationError(FocusError):
    """Input rejected before any mutation (empty/oversized title, negative report)."""

    kind = "ValidationError"


# PUBLIC_INTERFACE
class NotFound(FocusError):
    """The task does not exist or is not owned by the caller."""

    kind = "NotFound"


# PUBLIC_INTERFACE
class PriorityLimitExceeded(FocusError):
    """The owner already holds the maximum number of active priority tasks."""

    kind = "PriorityLimitExceeded"


# PUBLIC_INTERFACE
class StoreUnavailable(FocusError):
    """The durable store failed; the core does not retry."""

    kind = "StoreUnavailable"
