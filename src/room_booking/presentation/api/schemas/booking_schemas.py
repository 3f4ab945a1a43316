"""Pydantic schemas for booking API requests and responses."""

from datetime import datetime, date as Date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ....application.services.availability_service import AvailabilityReport
from ....domain.entities.booking import Booking, BookingStatus
from ....domain.value_objects.time_interval import TimeInterval


class BookingRequest(BaseModel):
    """Request model for creating a booking."""
    resource_id: str = Field(..., min_length=1, max_length=100, description="Room identifier")
    start: datetime = Field(..., description="Start of the reservation (inclusive)")
    end: datetime = Field(..., description="End of the reservation (exclusive)")
    purpose: str = Field("", max_length=500, description="Free-text purpose")

    @field_validator('resource_id')
    @classmethod
    def validate_resource_id(cls, v: str) -> str:
        """Strip surrounding whitespace from the room identifier."""
        if not v.strip():
            raise ValueError('Resource ID cannot be empty')
        return v.strip()


class IntervalResponse(BaseModel):
    """Response model for a time interval."""
    start: datetime
    end: datetime

    @classmethod
    def from_interval(cls, interval: TimeInterval) -> "IntervalResponse":
        return cls(start=interval.start, end=interval.end)


class BookingResponse(BaseModel):
    """Response model for booking operations."""
    model_config = ConfigDict(use_enum_values=True)

    id: UUID
    resource_id: str
    owner_id: UUID
    start: datetime
    end: datetime
    purpose: str
    status: BookingStatus
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            resource_id=booking.resource_id,
            owner_id=booking.owner_id,
            start=booking.interval.start,
            end=booking.interval.end,
            purpose=booking.purpose,
            status=booking.status,
            version=booking.version,
            created_at=booking.created_at,
            updated_at=booking.updated_at
        )


class BookingListResponse(BaseModel):
    """Response model for listing bookings."""
    bookings: List[BookingResponse]
    total_count: int

    @classmethod
    def from_entities(cls, bookings: List[Booking]) -> "BookingListResponse":
        return cls(
            bookings=[BookingResponse.from_entity(booking) for booking in bookings],
            total_count=len(bookings)
        )


class AvailabilityResponse(BaseModel):
    """Response model for an availability check."""
    resource_id: str
    start: datetime
    end: datetime
    available: bool
    conflicting_booking_ids: List[UUID]

    @classmethod
    def from_report(cls, report: AvailabilityReport) -> "AvailabilityResponse":
        return cls(
            resource_id=report.resource_id,
            start=report.interval.start,
            end=report.interval.end,
            available=report.available,
            conflicting_booking_ids=[booking.id for booking in report.conflicts]
        )


class FreeSlotsResponse(BaseModel):
    """Response model for the free slots of a room on a day."""
    resource_id: str
    date: Date
    free_slots: List[IntervalResponse]
    free_count: int


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    type: str
    conflicting_booking_ids: Optional[List[UUID]] = None
