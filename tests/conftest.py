"""Shared fixtures for booking tests."""

from uuid import uuid4

import pytest

from room_booking.application.services.booking_service import BookingLifecycleManager
from room_booking.domain.value_objects.time_interval import IntervalPolicy
from room_booking.infrastructure.repositories.memory_repositories import InMemoryBookingStore

from tests.helpers import FIXED_NOW


@pytest.fixture
def policy() -> IntervalPolicy:
    """Interval policy with a frozen clock."""
    return IntervalPolicy(clock=lambda: FIXED_NOW)


@pytest.fixture
def store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def manager(store, policy) -> BookingLifecycleManager:
    """Lifecycle manager over a fresh in-memory store."""
    return BookingLifecycleManager(store, interval_policy=policy)


@pytest.fixture
def owner_id():
    return uuid4()
