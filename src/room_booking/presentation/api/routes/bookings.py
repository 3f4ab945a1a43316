"""Booking lifecycle endpoints."""

from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Path, Query, status

from room_booking.domain.entities.booking import BookingStatus
from room_booking.domain.errors import ForbiddenError
from room_booking.domain.value_objects.actor import Actor
from room_booking.infrastructure.services import get_service_factory
from ..middleware.auth import get_admin_actor, get_current_actor
from ..schemas.booking_schemas import BookingListResponse, BookingRequest, BookingResponse

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingRequest,
    actor: Actor = Depends(get_current_actor)
) -> BookingResponse:
    """Request a room for a time interval; the booking starts as pending."""
    async with get_service_factory().get_booking_service() as booking_service:
        result = await booking_service.create_booking(
            owner_id=actor.identity,
            resource_id=request.resource_id,
            start=request.start,
            end=request.end,
            purpose=request.purpose
        )

    return BookingResponse.from_entity(result.unwrap())


@router.get("/mine")
async def list_my_bookings(actor: Actor = Depends(get_current_actor)) -> BookingListResponse:
    """List the caller's bookings."""
    async with get_service_factory().get_booking_service() as booking_service:
        bookings = await booking_service.list_for_owner(actor.identity)

    return BookingListResponse.from_entities(bookings)


@router.get("/")
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status", description="Only bookings in this status"),
    actor: Actor = Depends(get_admin_actor)
) -> BookingListResponse:
    """List all bookings (administrators only)."""
    async with get_service_factory().get_booking_service() as booking_service:
        bookings = await booking_service.list_all(status_filter)

    return BookingListResponse.from_entities(bookings)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    actor: Actor = Depends(get_current_actor)
) -> BookingResponse:
    """Get booking by ID (owner or administrator)."""
    async with get_service_factory().get_booking_service() as booking_service:
        result = await booking_service.get_booking(booking_id)

    booking = result.unwrap()
    if not actor.is_admin and not actor.owns(booking.owner_id):
        raise ForbiddenError("You can only view your own bookings")

    return BookingResponse.from_entity(booking)


@router.post("/{booking_id}/approve")
async def approve_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    actor: Actor = Depends(get_current_actor)
) -> BookingResponse:
    """Approve a pending booking."""
    async with get_service_factory().get_booking_service() as booking_service:
        result = await booking_service.approve(booking_id, actor.role)

    return BookingResponse.from_entity(result.unwrap())


@router.post("/{booking_id}/reject")
async def reject_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    actor: Actor = Depends(get_current_actor)
) -> BookingResponse:
    """Reject a pending booking."""
    async with get_service_factory().get_booking_service() as booking_service:
        result = await booking_service.reject(booking_id, actor.role)

    return BookingResponse.from_entity(result.unwrap())


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: UUID = Path(..., description="Booking ID"),
    actor: Actor = Depends(get_current_actor)
) -> BookingResponse:
    """Cancel a pending or approved booking."""
    async with get_service_factory().get_booking_service() as booking_service:
        result = await booking_service.cancel(booking_id, actor.identity, actor.role)

    return BookingResponse.from_entity(result.unwrap())
