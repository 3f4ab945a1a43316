"""Time-interval conflict detection for room bookings."""

from typing import List, Sequence

from ..ports.repositories import BookingStore, ConflictPredicate
from ...domain.entities.booking import Booking
from ...domain.value_objects.time_interval import TimeInterval, overlaps


class ConflictDetector:
    """Finds active bookings on a resource that overlap a candidate interval.

    Linear scan over the active set of one room.
    """

    def __init__(self, booking_store: BookingStore):
        self._booking_store = booking_store

    @staticmethod
    def find_conflicts(active: Sequence[Booking], candidate: TimeInterval) -> List[Booking]:
        """Return the active bookings whose interval overlaps the candidate."""
        return [
            booking for booking in active
            if booking.is_active and overlaps(candidate, booking.interval)
        ]

    def predicate_for(self, resource_id: str, candidate: TimeInterval) -> ConflictPredicate:
        """Build the predicate evaluated inside the store's atomic section."""

        def conflicting(active: Sequence[Booking]) -> List[Booking]:
            return self.find_conflicts(
                [booking for booking in active if booking.resource_id == resource_id],
                candidate
            )

        return conflicting

    async def has_conflict(self, resource_id: str, candidate: TimeInterval) -> bool:
        """Check for conflicts against the current active set (advisory read)."""
        return bool(await self.conflicts_with(resource_id, candidate))

    async def conflicts_with(self, resource_id: str, candidate: TimeInterval) -> List[Booking]:
        """Return conflicting bookings from the current active set."""
        active = await self._booking_store.find_active_by_resource(resource_id)
        return self.find_conflicts(active, candidate)
