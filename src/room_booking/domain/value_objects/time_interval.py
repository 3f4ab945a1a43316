"""Half-open time interval value object and booking horizon policy."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..errors import InvalidIntervalError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def overlaps(a: "TimeInterval", b: "TimeInterval") -> bool:
    """Check whether two half-open intervals share any instant."""
    return a.start < b.end and b.start < a.end


@dataclass(frozen=True, order=True)
class TimeInterval:
    """Immutable half-open time range ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        """Validate and normalize interval bounds."""
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidIntervalError("Interval bounds must be datetimes")

        # frozen dataclass, so normalize through object.__setattr__
        try:
            object.__setattr__(self, "start", as_utc(self.start))
            object.__setattr__(self, "end", as_utc(self.end))
        except OverflowError:
            raise InvalidIntervalError("Interval bounds are out of range") from None

        if self.start >= self.end:
            raise InvalidIntervalError("Start time must be before end time")

    @property
    def duration(self) -> timedelta:
        """Get interval length."""
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check overlap with another interval."""
        return overlaps(self, other)

    def contains(self, instant: datetime) -> bool:
        """Check whether an instant falls inside the interval."""
        instant = as_utc(instant)
        return self.start <= instant < self.end


@dataclass(frozen=True)
class IntervalPolicy:
    """Configurable acceptance rules for booking intervals."""

    max_advance: timedelta = timedelta(days=365)
    allow_past: bool = False
    past_grace: timedelta = timedelta(minutes=5)
    min_duration: timedelta = timedelta(minutes=1)
    max_duration: Optional[timedelta] = timedelta(hours=24)
    clock: Callable[[], datetime] = field(default=utc_now, compare=False)

    def validate(self, interval: TimeInterval) -> None:
        """Raise InvalidIntervalError if the interval violates the policy."""
        now = as_utc(self.clock())

        if not self.allow_past and interval.start < now - self.past_grace:
            raise InvalidIntervalError("Booking cannot start in the past")
        if interval.start > now + self.max_advance:
            raise InvalidIntervalError(
                f"Booking cannot start more than {self.max_advance.days} days ahead"
            )
        if interval.duration < self.min_duration:
            raise InvalidIntervalError("Booking is shorter than the minimum duration")
        if self.max_duration is not None and interval.duration > self.max_duration:
            raise InvalidIntervalError("Booking is longer than the maximum duration")

    def is_valid(self, interval: TimeInterval) -> bool:
        """Check whether the interval is acceptable."""
        try:
            self.validate(interval)
        except InvalidIntervalError:
            return False
        return True
