"""
Scheduling Error Classes

Typed failures raised by the slot store, the booking transaction and the
meeting state machine. Each kind carries a stable ``code`` and the HTTP
status the API layer maps it to, so clients can tell a lost slot race apart
from a server failure and retry against another slot.
"""


class SchedulingError(Exception):
    """Base class for every failure the scheduling core reports to its caller."""

    code = "scheduling_error"
    status_code = 400
    default_message = "Scheduling operation failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(SchedulingError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found"


class Forbidden(SchedulingError):
    code = "forbidden"
    status_code = 403
    default_message = "You do not have permission to perform this action"


class InvalidOperation(SchedulingError):
    """Raised for requests that can never succeed, e.g. booking your own slot."""

    code = "invalid_operation"
    status_code = 400
    default_message = "Invalid operation"


class InvalidOffer(SchedulingError):
    code = "invalid_offer"
    status_code = 422
    default_message = "Invalid offer"


class SlotUnavailable(SchedulingError):
    """Raised when the slot was already claimed before the booking started."""

    code = "slot_unavailable"
    status_code = 409
    default_message = "This slot is already booked"


class AlreadyClaimed(SchedulingError):
    """Raised when another booking claimed the slot between check and commit."""

    code = "already_claimed"
    status_code = 409
    default_message = "This slot was claimed by another request"


class Conflict(SchedulingError):
    code = "conflict"
    status_code = 409
    default_message = "Conflicting request"


class InvalidState(SchedulingError):
    """Raised when an action is not allowed for the meeting's status and the caller's role."""

    code = "invalid_state"
    status_code = 409
    default_message = "This action is not allowed in the meeting's current state"


class StoreUnavailable(SchedulingError):
    code = "store_unavailable"
    status_code = 503
    default_message = "The scheduling store is temporarily unavailable"
