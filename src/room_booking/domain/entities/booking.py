"""Booking entity and its status state machine."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple
from uuid import UUID, uuid4

from ..errors import InvalidTransitionError
from ..value_objects.time_interval import TimeInterval, utc_now


class BookingStatus(Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Active bookings take part in conflict detection."""
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Terminal bookings accept no further transitions."""
        return self in TERMINAL_STATUSES


class BookingAction(Enum):
    """Requested status change."""
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.APPROVED})
TERMINAL_STATUSES = frozenset({BookingStatus.REJECTED, BookingStatus.CANCELLED})

TRANSITIONS: Dict[Tuple[BookingStatus, BookingAction], BookingStatus] = {
    (BookingStatus.PENDING, BookingAction.APPROVE): BookingStatus.APPROVED,
    (BookingStatus.PENDING, BookingAction.REJECT): BookingStatus.REJECTED,
    (BookingStatus.PENDING, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.APPROVED, BookingAction.CANCEL): BookingStatus.CANCELLED,
}


def next_status(current: BookingStatus, action: BookingAction) -> BookingStatus:
    """Resolve the status an action leads to, or raise InvalidTransitionError."""
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidTransitionError(current, action.value) from None


def is_legal_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Check whether any action moves ``current`` to ``target``."""
    return any(
        source == current and destination == target
        for (source, _), destination in TRANSITIONS.items()
    )


class Booking:
    """Booking entity representing a room reservation.

    Instances are immutable snapshots. Status changes produce a new snapshot
    through ``with_status`` with the version stamp incremented.
    """

    def __init__(
        self,
        resource_id: str,
        owner_id: UUID,
        interval: TimeInterval,
        purpose: str = "",
        booking_id: Optional[UUID] = None,
        status: BookingStatus = BookingStatus.PENDING,
        version: int = 1,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        if not resource_id:
            raise ValueError("Resource ID cannot be empty")
        if version < 1:
            raise ValueError("Version must be at least 1")

        self._id = booking_id or uuid4()
        self._resource_id = resource_id
        self._owner_id = owner_id
        self._interval = interval
        self._purpose = purpose or ""
        self._status = status
        self._version = version
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        """Get booking ID."""
        return self._id

    @property
    def resource_id(self) -> str:
        """Get booked room identifier."""
        return self._resource_id

    @property
    def owner_id(self) -> UUID:
        """Get requester identity."""
        return self._owner_id

    @property
    def interval(self) -> TimeInterval:
        """Get reserved time range."""
        return self._interval

    @property
    def purpose(self) -> str:
        """Get free-text purpose."""
        return self._purpose

    @property
    def status(self) -> BookingStatus:
        """Get booking status."""
        return self._status

    @property
    def version(self) -> int:
        """Get optimistic concurrency stamp."""
        return self._version

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def is_active(self) -> bool:
        """Check if booking blocks its interval."""
        return self._status.is_active

    def with_status(self, status: BookingStatus, updated_at: Optional[datetime] = None) -> "Booking":
        """Create the next snapshot of this booking with a new status."""
        if not is_legal_transition(self._status, status):
            raise InvalidTransitionError(
                self._status,
                message=f"Cannot move booking from {self._status.value} to {status.value}"
            )

        return Booking(
            resource_id=self._resource_id,
            owner_id=self._owner_id,
            interval=self._interval,
            purpose=self._purpose,
            booking_id=self._id,
            status=status,
            version=self._version + 1,
            created_at=self._created_at,
            updated_at=updated_at or utc_now()
        )

    def __eq__(self, other: object) -> bool:
        """Check equality based on booking ID."""
        if not isinstance(other, Booking):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        """Hash based on booking ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Booking({self._id}, {self._resource_id}, {self._status.value})"
