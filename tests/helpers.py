"""Time helpers shared by booking tests."""

from datetime import datetime, timedelta, timezone

from room_booking.domain.value_objects.time_interval import TimeInterval

# All test bookings live on this day; the policy clock sits half a day earlier
BOOKING_DAY = datetime(2030, 1, 7, tzinfo=timezone.utc)
FIXED_NOW = BOOKING_DAY - timedelta(hours=12)


def at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
    """Build an aware UTC datetime on the booking day."""
    return BOOKING_DAY + timedelta(days=day_offset, hours=hour, minutes=minute)


def interval(start_hour: float, end_hour: float) -> TimeInterval:
    """Build an interval on the booking day from fractional hours."""
    return TimeInterval(
        BOOKING_DAY + timedelta(hours=start_hour),
        BOOKING_DAY + timedelta(hours=end_hour)
    )
