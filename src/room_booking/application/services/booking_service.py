"""Booking lifecycle service implementing create/approve/reject/cancel use cases."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from .conflict_detector import ConflictDetector
from ..ports.repositories import BookingStore
from ...domain.entities.booking import Booking, BookingAction, BookingStatus, next_status
from ...domain.errors import (
    BookingConflictError,
    BookingError,
    BookingNotFoundError,
    ForbiddenError,
    StaleWriteError,
)
from ...domain.value_objects.actor import ActorRole
from ...domain.value_objects.booking_result import BookingResult
from ...domain.value_objects.time_interval import IntervalPolicy, TimeInterval
from ...infrastructure.logging import (
    get_logger,
    log_booking_transition,
    log_business_rule_violation
)


class BookingLifecycleManager:
    """Application service owning the booking state machine.

    Every mutating operation returns a ``BookingResult``. Typed booking
    failures are carried in the result; storage failures propagate.
    """

    # One transparent retry after a lost optimistic update
    MAX_TRANSITION_ATTEMPTS = 2

    def __init__(
        self,
        booking_store: BookingStore,
        conflict_detector: Optional[ConflictDetector] = None,
        interval_policy: Optional[IntervalPolicy] = None
    ):
        self._booking_store = booking_store
        self._conflict_detector = conflict_detector or ConflictDetector(booking_store)
        self._interval_policy = interval_policy or IntervalPolicy()
        self._logger = get_logger(__name__)

    async def create_booking(
        self,
        owner_id: UUID,
        resource_id: str,
        start: datetime,
        end: datetime,
        purpose: str = ""
    ) -> BookingResult:
        """Request a booking; the only path that creates bookings.

        ``resource_id`` must be a non-empty room identifier. Room existence
        belongs to the caller, so an empty identifier is a programming error
        and raises ``ValueError`` instead of producing a result.
        """
        try:
            interval = TimeInterval(start, end)
            self._interval_policy.validate(interval)

            candidate = Booking(
                resource_id=resource_id,
                owner_id=owner_id,
                interval=interval,
                purpose=purpose,
                status=BookingStatus.PENDING
            )
            predicate = self._conflict_detector.predicate_for(resource_id, interval)
            booking = await self._booking_store.insert_if_no_conflict(candidate, predicate)
        except BookingError as e:
            return self._failed("create", e, resource_id=resource_id, owner_id=str(owner_id))

        self._logger.info(
            "Booking created",
            extra={
                "booking_id": str(booking.id),
                "resource_id": resource_id,
                "owner_id": str(owner_id),
                "interval_start": booking.interval.start.isoformat(),
                "interval_end": booking.interval.end.isoformat()
            }
        )
        return BookingResult.ok(booking)

    async def approve(self, booking_id: UUID, acting_role: ActorRole) -> BookingResult:
        """Approve a pending booking (administrators only)."""
        if acting_role != ActorRole.ADMIN:
            return self._failed(
                "approve", ForbiddenError("Only administrators can approve bookings"),
                booking_id=str(booking_id)
            )
        return await self._transition(booking_id, BookingAction.APPROVE)

    async def reject(self, booking_id: UUID, acting_role: ActorRole) -> BookingResult:
        """Reject a pending booking (administrators only)."""
        if acting_role != ActorRole.ADMIN:
            return self._failed(
                "reject", ForbiddenError("Only administrators can reject bookings"),
                booking_id=str(booking_id)
            )
        return await self._transition(booking_id, BookingAction.REJECT)

    async def cancel(
        self,
        booking_id: UUID,
        acting_identity: UUID,
        acting_role: ActorRole
    ) -> BookingResult:
        """Cancel a pending or approved booking (owner or administrator)."""

        def authorize(booking: Booking) -> None:
            if acting_role != ActorRole.ADMIN and booking.owner_id != acting_identity:
                raise ForbiddenError("You can only cancel your own bookings")

        return await self._transition(booking_id, BookingAction.CANCEL, authorize)

    async def get_booking(self, booking_id: UUID) -> BookingResult:
        """Get a specific booking by ID."""
        booking = await self._booking_store.find_by_id(booking_id)
        if booking is None:
            return BookingResult.failed(BookingNotFoundError(booking_id))
        return BookingResult.ok(booking)

    async def list_for_owner(self, owner_id: UUID) -> List[Booking]:
        """Get all bookings requested by an owner."""
        return await self._booking_store.find_by_owner(owner_id)

    async def list_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Get all bookings, optionally only those with the given status."""
        return await self._booking_store.find_all(status)

    async def list_for_resource(self, resource_id: str, active_only: bool = False) -> List[Booking]:
        """Get the bookings of a room."""
        if active_only:
            bookings = await self._booking_store.find_active_by_resource(resource_id)
            return sorted(bookings, key=lambda booking: booking.interval)
        return await self._booking_store.find_by_resource(resource_id)

    async def _transition(self, booking_id: UUID, action: BookingAction, authorize=None) -> BookingResult:
        """Apply a state machine action through compare-and-set."""
        try:
            for _ in range(self.MAX_TRANSITION_ATTEMPTS):
                booking, target = await self._prepare_transition(booking_id, action, authorize)
                try:
                    updated = await self._booking_store.compare_and_set_status(
                        booking.id, booking.version, booking.status, target
                    )
                except StaleWriteError:
                    self._logger.info(
                        "Stale booking write, re-reading",
                        extra={"booking_id": str(booking_id), "action": action.value}
                    )
                    continue

                log_booking_transition(
                    self._logger, str(updated.id), booking.status.value, updated.status.value,
                    action=action.value
                )
                return BookingResult.ok(updated)

            # Raises InvalidTransitionError when the fresh state forbids the action
            await self._prepare_transition(booking_id, action, authorize)
            raise BookingConflictError("Booking was modified concurrently, please retry")
        except BookingError as e:
            return self._failed(action.value, e, booking_id=str(booking_id))

    async def _prepare_transition(self, booking_id: UUID, action: BookingAction, authorize):
        """Read the booking and check every precondition of the action."""
        booking = await self._booking_store.find_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if authorize is not None:
            authorize(booking)
        return booking, next_status(booking.status, action)

    def _failed(self, operation: str, error: BookingError, **extra) -> BookingResult:
        log_business_rule_violation(
            self._logger, error.error_type, str(error), operation=operation, **extra
        )
        return BookingResult.failed(error)
