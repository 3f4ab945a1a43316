"""Booking error taxonomy."""

from typing import Optional, Sequence
from uuid import UUID


class BookingError(Exception):
    """Base class for booking lifecycle failures."""

    error_type = "booking_error"


class InvalidIntervalError(BookingError, ValueError):
    """Raised when a time range is malformed or violates the booking policy."""

    error_type = "invalid_interval"


class BookingConflictError(BookingError):
    """Raised when an active booking already overlaps the requested range."""

    error_type = "conflict"

    def __init__(self, message: str, conflicting_ids: Sequence[UUID] = ()):
        super().__init__(message)
        self.conflicting_ids = tuple(conflicting_ids)


class InvalidTransitionError(BookingError):
    """Raised when a status change is not legal from the current status."""

    error_type = "invalid_transition"

    def __init__(self, current_status, action: Optional[str] = None, message: Optional[str] = None):
        self.current_status = current_status
        self.action = action
        if message is None:
            status_name = getattr(current_status, "value", current_status)
            message = f"Cannot {action} a booking that is {status_name}"
        super().__init__(message)


class ForbiddenError(BookingError):
    """Raised when the acting identity or role may not perform the operation."""

    error_type = "forbidden"


class BookingNotFoundError(BookingError):
    """Raised when a booking identifier does not exist."""

    error_type = "not_found"

    def __init__(self, booking_id: UUID):
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class StaleWriteError(BookingError):
    """Raised by a store when a conditional status update lost a race."""

    error_type = "stale_write"
