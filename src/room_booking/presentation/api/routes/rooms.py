"""Room-scoped booking and availability endpoints."""

from datetime import datetime, date as Date
from fastapi import APIRouter, Depends, Path, Query

from room_booking.application.services.availability_service import SlotGenerator
from room_booking.domain.value_objects.actor import Actor
from room_booking.infrastructure.services import get_service_factory
from ..middleware.auth import get_current_actor
from ..schemas.booking_schemas import (
    AvailabilityResponse,
    BookingListResponse,
    FreeSlotsResponse,
    IntervalResponse
)

router = APIRouter()


@router.get("/{resource_id}/bookings")
async def list_room_bookings(
    resource_id: str = Path(..., description="Room identifier"),
    active_only: bool = Query(False, description="Only pending and approved bookings"),
    actor: Actor = Depends(get_current_actor)
) -> BookingListResponse:
    """List the bookings of a room."""
    async with get_service_factory().get_booking_service() as booking_service:
        bookings = await booking_service.list_for_resource(resource_id, active_only=active_only)

    return BookingListResponse.from_entities(bookings)


@router.get("/{resource_id}/availability")
async def check_availability(
    resource_id: str = Path(..., description="Room identifier"),
    start: datetime = Query(..., description="Start of the interval"),
    end: datetime = Query(..., description="End of the interval"),
    actor: Actor = Depends(get_current_actor)
) -> AvailabilityResponse:
    """Check whether a room is free over an interval."""
    async with get_service_factory().get_availability_service() as availability_service:
        report = await availability_service.check(resource_id, start, end)

    return AvailabilityResponse.from_report(report)


@router.get("/{resource_id}/free-slots")
async def get_free_slots(
    resource_id: str = Path(..., description="Room identifier"),
    date: Date = Query(..., description="Day to inspect (UTC)"),
    open_hour: int = Query(8, ge=0, le=23),
    close_hour: int = Query(18, ge=1, le=24),
    slot_minutes: int = Query(60, ge=5, le=24 * 60),
    actor: Actor = Depends(get_current_actor)
) -> FreeSlotsResponse:
    """Get the free slots of a room on a day."""
    generator = SlotGenerator(open_hour=open_hour, close_hour=close_hour, slot_minutes=slot_minutes)

    async with get_service_factory().get_availability_service() as availability_service:
        slots = await availability_service.free_slots(resource_id, date, generator)

    return FreeSlotsResponse(
        resource_id=resource_id,
        date=date,
        free_slots=[IntervalResponse.from_interval(slot) for slot in slots],
        free_count=len(slots)
    )
