"""Result value object returned by booking lifecycle operations."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..errors import BookingError

if TYPE_CHECKING:
    from ..entities.booking import Booking


@dataclass(frozen=True)
class BookingResult:
    """Either a booking or the typed failure that prevented the operation."""
    booking: Optional["Booking"] = None
    error: Optional[BookingError] = None

    def __post_init__(self) -> None:
        """Validate that exactly one of booking and error is set."""
        if (self.booking is None) == (self.error is None):
            raise ValueError("BookingResult needs exactly one of booking or error")

    @classmethod
    def ok(cls, booking: "Booking") -> "BookingResult":
        return cls(booking=booking)

    @classmethod
    def failed(cls, error: BookingError) -> "BookingResult":
        return cls(error=error)

    @property
    def success(self) -> bool:
        """Check if the operation succeeded."""
        return self.error is None

    @property
    def error_type(self) -> Optional[str]:
        """Get the failure tag, if any."""
        return self.error.error_type if self.error else None

    def unwrap(self) -> "Booking":
        """Return the booking or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.booking
