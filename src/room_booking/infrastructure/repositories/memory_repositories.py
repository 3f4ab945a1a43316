"""In-memory repository implementations for testing and development."""

import asyncio
from typing import Dict, List, Optional
from uuid import UUID

from room_booking.application.ports.repositories import BookingStore, ConflictPredicate
from room_booking.domain.entities.booking import Booking, BookingStatus, is_legal_transition
from room_booking.domain.errors import (
    BookingConflictError,
    BookingNotFoundError,
    InvalidTransitionError,
    StaleWriteError
)
from room_booking.infrastructure.logging import get_logger


class InMemoryBookingStore(BookingStore):
    """In-memory implementation of the booking store.

    Check-and-insert and compare-and-set run under a per-resource lock, so
    creates on one room are serialised while other rooms proceed freely.
    Stored bookings are immutable snapshots and are replaced, never mutated.
    """

    def __init__(self):
        self._bookings: Dict[UUID, Booking] = {}
        self._resource_locks: Dict[str, asyncio.Lock] = {}
        self._logger = get_logger(__name__)

    def _lock_for(self, resource_id: str) -> asyncio.Lock:
        """Get the lock guarding a resource's active set."""
        return self._resource_locks.setdefault(resource_id, asyncio.Lock())

    def _active_for(self, resource_id: str) -> List[Booking]:
        return [booking for booking in self._bookings.values()
                if booking.resource_id == resource_id and booking.is_active]

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        return self._bookings.get(booking_id)

    async def find_active_by_resource(self, resource_id: str) -> List[Booking]:
        """Find pending and approved bookings for a resource."""
        async with self._lock_for(resource_id):
            return self._active_for(resource_id)

    async def insert_if_no_conflict(self, candidate: Booking, conflict_predicate: ConflictPredicate) -> Booking:
        """Atomically check the active set and insert the candidate as pending."""
        if candidate.status != BookingStatus.PENDING:
            raise ValueError("New bookings must be pending")

        async with self._lock_for(candidate.resource_id):
            if candidate.id in self._bookings:
                raise ValueError(f"Booking already exists: {candidate.id}")

            conflicts = conflict_predicate(self._active_for(candidate.resource_id))
            if conflicts:
                raise BookingConflictError(
                    f"Room {candidate.resource_id} is already booked for the requested time",
                    [booking.id for booking in conflicts]
                )

            self._bookings[candidate.id] = candidate

        self._logger.debug(
            "Booking stored",
            extra={"booking_id": str(candidate.id), "resource_id": candidate.resource_id}
        )
        return candidate

    async def compare_and_set_status(
        self,
        booking_id: UUID,
        expected_version: int,
        expected_status: BookingStatus,
        new_status: BookingStatus
    ) -> Booking:
        """Change status only if version and status still match."""
        current = self._bookings.get(booking_id)
        if current is None:
            raise BookingNotFoundError(booking_id)

        async with self._lock_for(current.resource_id):
            current = self._bookings[booking_id]
            if current.version != expected_version or current.status != expected_status:
                raise StaleWriteError(
                    f"Booking {booking_id} changed: expected v{expected_version} "
                    f"{expected_status.value}, found v{current.version} {current.status.value}"
                )
            if not is_legal_transition(expected_status, new_status):
                raise InvalidTransitionError(
                    current.status,
                    message=f"Cannot move booking from {expected_status.value} to {new_status.value}"
                )

            updated = current.with_status(new_status)
            self._bookings[booking_id] = updated

        return updated

    async def find_by_owner(self, owner_id: UUID) -> List[Booking]:
        """Find all bookings requested by an owner."""
        return self._sorted(booking for booking in self._bookings.values()
                            if booking.owner_id == owner_id)

    async def find_by_resource(self, resource_id: str) -> List[Booking]:
        """Find all bookings for a resource."""
        return self._sorted(booking for booking in self._bookings.values()
                            if booking.resource_id == resource_id)

    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find all bookings, optionally filtered by status."""
        return self._sorted(booking for booking in self._bookings.values()
                            if status is None or booking.status == status)

    @staticmethod
    def _sorted(bookings) -> List[Booking]:
        return sorted(bookings, key=lambda booking: (booking.interval, booking.created_at))
