"""Availability queries for rooms."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import List

from .conflict_detector import ConflictDetector
from ...domain.entities.booking import Booking
from ...domain.value_objects.time_interval import TimeInterval


@dataclass(frozen=True)
class AvailabilityReport:
    """Outcome of an availability check for a room and interval."""
    resource_id: str
    interval: TimeInterval
    conflicts: List[Booking] = field(default_factory=list)

    @property
    def available(self) -> bool:
        """Check if no active booking overlaps the interval."""
        return not self.conflicts


class SlotGenerator:
    """Service for generating candidate booking slots."""

    def __init__(self, open_hour: int = 8, close_hour: int = 18, slot_minutes: int = 60):
        if not 0 <= open_hour < close_hour <= 24:
            raise ValueError("Opening hours must satisfy 0 <= open < close <= 24")
        if slot_minutes < 1:
            raise ValueError("Slot duration must be at least one minute")

        self.open_hour = open_hour
        self.close_hour = close_hour
        self.slot_minutes = slot_minutes

    def generate_slots_for_date(self, target_date: date) -> List[TimeInterval]:
        """Generate all slots of a day (UTC) that fit inside opening hours."""
        day_start = datetime.combine(target_date, time.min, tzinfo=timezone.utc)
        current = day_start + timedelta(hours=self.open_hour)
        closing = day_start + timedelta(hours=self.close_hour)
        step = timedelta(minutes=self.slot_minutes)

        slots = []
        while current + step <= closing:
            slots.append(TimeInterval(current, current + step))
            current += step

        return slots


class AvailabilityService:
    """Advisory availability reads; booking creation re-checks atomically."""

    def __init__(self, conflict_detector: ConflictDetector):
        self._conflict_detector = conflict_detector

    async def check(self, resource_id: str, start: datetime, end: datetime) -> AvailabilityReport:
        """Report whether a room is free over an interval."""
        interval = TimeInterval(start, end)
        conflicts = await self._conflict_detector.conflicts_with(resource_id, interval)
        return AvailabilityReport(resource_id=resource_id, interval=interval, conflicts=conflicts)

    async def free_slots(
        self,
        resource_id: str,
        target_date: date,
        generator: SlotGenerator = None
    ) -> List[TimeInterval]:
        """Get the slots of a day that no active booking overlaps."""
        generator = generator or SlotGenerator()
        slots = generator.generate_slots_for_date(target_date)
        if not slots:
            return []

        day = TimeInterval(slots[0].start, slots[-1].end)
        busy = await self._conflict_detector.conflicts_with(resource_id, day)

        return [
            slot for slot in slots
            if not ConflictDetector.find_conflicts(busy, slot)
        ]
