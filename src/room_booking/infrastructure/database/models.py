"""SQLAlchemy database models."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, String, DateTime, Integer, Text, Enum as SQLEnum, Index, Uuid
from sqlalchemy.orm import declarative_base

from room_booking.domain.entities.booking import BookingStatus

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingModel(Base):
    """SQLAlchemy model for bookings."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_bookings_interval_order"),
        CheckConstraint("version >= 1", name="ck_bookings_version_positive"),
        Index("ix_bookings_resource_status_start", "resource_id", "status", "start_at"),
    )

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Booking details
    resource_id = Column(String(100), nullable=False, index=True)
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=False)
    purpose = Column(Text, nullable=False, default="")
    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=BookingStatus.PENDING
    )

    # Optimistic concurrency stamp
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<BookingModel(id={self.id}, resource_id='{self.resource_id}', status='{self.status}')>"


class ResourceLockModel(Base):
    """One row per booked room, row-locked to serialise conflict checks."""

    __tablename__ = "booking_resource_locks"

    resource_id = Column(String(100), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<ResourceLockModel(resource_id='{self.resource_id}')>"
