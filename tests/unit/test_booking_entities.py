"""Unit tests for booking domain entities."""

import pytest
from itertools import product
from uuid import uuid4

from room_booking.domain.entities.booking import (
    ACTIVE_STATUSES,
    TRANSITIONS,
    Booking,
    BookingAction,
    BookingStatus,
    is_legal_transition,
    next_status
)
from room_booking.domain.errors import BookingError, InvalidTransitionError
from room_booking.domain.value_objects.actor import Actor, ActorRole
from room_booking.domain.value_objects.booking_result import BookingResult

from tests.helpers import at, interval


def make_booking(status=BookingStatus.PENDING, **kwargs):
    defaults = dict(resource_id="room-1", owner_id=uuid4(), interval=interval(10, 11), status=status)
    defaults.update(kwargs)
    return Booking(**defaults)


class TestBookingStatus:
    """Test cases for BookingStatus."""

    def test_active_statuses(self):
        """Test pending and approved bookings block their interval."""
        assert BookingStatus.PENDING.is_active is True
        assert BookingStatus.APPROVED.is_active is True
        assert BookingStatus.REJECTED.is_active is False
        assert BookingStatus.CANCELLED.is_active is False

    def test_terminal_statuses(self):
        """Test rejected and cancelled are terminal."""
        assert BookingStatus.REJECTED.is_terminal is True
        assert BookingStatus.CANCELLED.is_terminal is True
        assert BookingStatus.PENDING.is_terminal is False
        assert BookingStatus.APPROVED.is_terminal is False

    def test_values(self):
        """Test status values are lowercase names."""
        assert [status.value for status in BookingStatus] == ["pending", "approved", "rejected", "cancelled"]


class TestStateMachine:
    """Test cases for the transition table."""

    @pytest.mark.parametrize("current, action, expected", [
        (BookingStatus.PENDING, BookingAction.APPROVE, BookingStatus.APPROVED),
        (BookingStatus.PENDING, BookingAction.REJECT, BookingStatus.REJECTED),
        (BookingStatus.PENDING, BookingAction.CANCEL, BookingStatus.CANCELLED),
        (BookingStatus.APPROVED, BookingAction.CANCEL, BookingStatus.CANCELLED),
    ])
    def test_legal_transitions(self, current, action, expected):
        """Test every legal transition resolves to its target."""
        assert next_status(current, action) == expected

    def test_every_other_pair_is_illegal(self):
        """Test all pairs missing from the table raise InvalidTransitionError."""
        for current, action in product(BookingStatus, BookingAction):
            if (current, action) in TRANSITIONS:
                continue
            with pytest.raises(InvalidTransitionError) as exc_info:
                next_status(current, action)
            assert exc_info.value.current_status == current
            assert exc_info.value.action == action.value

    def test_terminal_statuses_have_no_exits(self):
        """Test no transition leaves a terminal status."""
        for current, target in product(BookingStatus, BookingStatus):
            if current.is_terminal:
                assert is_legal_transition(current, target) is False

    def test_pending_is_never_reentered(self):
        """Test no transition leads back to pending."""
        assert BookingStatus.PENDING not in TRANSITIONS.values()
        for current in BookingStatus:
            assert is_legal_transition(current, BookingStatus.PENDING) is False

    def test_invalid_transition_message(self):
        """Test the default error message names the action and status."""
        with pytest.raises(InvalidTransitionError, match="Cannot approve a booking that is cancelled"):
            next_status(BookingStatus.CANCELLED, BookingAction.APPROVE)

    def test_active_statuses_match_table_sources(self):
        """Test only active statuses appear as transition sources."""
        assert {source for source, _ in TRANSITIONS} == set(ACTIVE_STATUSES)


class TestBooking:
    """Test cases for Booking entity."""

    def test_booking_creation(self):
        """Test basic booking creation."""
        owner_id = uuid4()
        booking = Booking(resource_id="room-1", owner_id=owner_id, interval=interval(10, 11), purpose="Standup")

        assert booking.resource_id == "room-1"
        assert booking.owner_id == owner_id
        assert booking.interval == interval(10, 11)
        assert booking.purpose == "Standup"
        assert booking.status == BookingStatus.PENDING
        assert booking.version == 1
        assert booking.is_active is True
        assert booking.updated_at == booking.created_at

    def test_empty_resource_rejected(self):
        """Test resource ID is required."""
        with pytest.raises(ValueError, match="Resource ID cannot be empty"):
            make_booking(resource_id="")

    def test_version_must_be_positive(self):
        """Test version stamps start at one."""
        with pytest.raises(ValueError, match="Version must be at least 1"):
            make_booking(version=0)

    def test_with_status_creates_next_snapshot(self):
        """Test a status change yields a new snapshot with a bumped version."""
        booking = make_booking()

        approved = booking.with_status(BookingStatus.APPROVED, updated_at=at(9))

        assert approved is not booking
        assert approved.id == booking.id
        assert approved.status == BookingStatus.APPROVED
        assert approved.version == 2
        assert approved.updated_at == at(9)
        assert approved.created_at == booking.created_at
        assert booking.status == BookingStatus.PENDING
        assert booking.version == 1

    def test_with_status_rejects_illegal_target(self):
        """Test illegal targets raise without producing a snapshot."""
        booking = make_booking(status=BookingStatus.REJECTED)

        with pytest.raises(InvalidTransitionError, match="from rejected to approved"):
            booking.with_status(BookingStatus.APPROVED)

    def test_booking_equality(self):
        """Test bookings compare by ID."""
        booking = make_booking()

        assert booking == booking.with_status(BookingStatus.CANCELLED)
        assert booking != make_booking()
        assert len({booking, booking.with_status(BookingStatus.APPROVED)}) == 1

    def test_booking_str(self):
        """Test string representation."""
        booking = make_booking()

        assert str(booking) == f"Booking({booking.id}, room-1, pending)"


class TestActor:
    """Test cases for Actor value object."""

    def test_default_role(self):
        """Test actors are regular users by default."""
        actor = Actor(uuid4())

        assert actor.role == ActorRole.USER
        assert actor.is_admin is False

    def test_owns(self):
        """Test ownership check."""
        identity = uuid4()
        actor = Actor(identity, ActorRole.ADMIN)

        assert actor.owns(identity) is True
        assert actor.owns(uuid4()) is False
        assert actor.is_admin is True


class TestBookingResult:
    """Test cases for BookingResult."""

    def test_ok(self):
        """Test a successful result carries the booking."""
        booking = make_booking()
        result = BookingResult.ok(booking)

        assert result.success is True
        assert result.error_type is None
        assert result.unwrap() is booking

    def test_failed(self):
        """Test a failed result carries and re-raises the error."""
        error = InvalidTransitionError(BookingStatus.CANCELLED, "approve")
        result = BookingResult.failed(error)

        assert result.success is False
        assert result.error_type == "invalid_transition"
        with pytest.raises(BookingError):
            result.unwrap()

    def test_requires_exactly_one(self):
        """Test a result holds either a booking or an error."""
        with pytest.raises(ValueError):
            BookingResult()
        with pytest.raises(ValueError):
            BookingResult(booking=make_booking(), error=BookingError("boom"))
