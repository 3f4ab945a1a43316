"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from room_booking.domain.entities.booking import Booking, BookingStatus


# Receives the active bookings of a resource and returns the ones that conflict
ConflictPredicate = Callable[[Sequence["Booking"]], Sequence["Booking"]]


class BookingStore(ABC):
    """Port interface for durable booking storage."""

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional["Booking"]:
        """Find booking by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_active_by_resource(self, resource_id: str) -> List["Booking"]:
        """Find pending and approved bookings for a resource."""
        raise NotImplementedError

    @abstractmethod
    async def insert_if_no_conflict(
        self,
        candidate: "Booking",
        conflict_predicate: ConflictPredicate
    ) -> "Booking":
        """Atomically check the active set and insert the candidate as pending.

        Raises BookingConflictError and persists nothing if the predicate
        reports any conflicting booking.
        """
        raise NotImplementedError

    @abstractmethod
    async def compare_and_set_status(
        self,
        booking_id: UUID,
        expected_version: int,
        expected_status: "BookingStatus",
        new_status: "BookingStatus"
    ) -> "Booking":
        """Change status only if version and status still match.

        Raises BookingNotFoundError, StaleWriteError or InvalidTransitionError.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_owner(self, owner_id: UUID) -> List["Booking"]:
        """Find all bookings requested by an owner."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_resource(self, resource_id: str) -> List["Booking"]:
        """Find all bookings for a resource, including inert history."""
        raise NotImplementedError

    @abstractmethod
    async def find_all(self, status: Optional["BookingStatus"] = None) -> List["Booking"]:
        """Find all bookings, optionally filtered by status."""
        raise NotImplementedError
