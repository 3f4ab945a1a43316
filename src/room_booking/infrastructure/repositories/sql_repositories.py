"""SQLAlchemy repository implementations."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from room_booking.infrastructure.logging import (
    get_logger,
    log_database_operation
)

from room_booking.application.ports.repositories import BookingStore, ConflictPredicate
from room_booking.domain.entities.booking import ACTIVE_STATUSES, Booking, BookingStatus, is_legal_transition
from room_booking.domain.errors import (
    BookingConflictError,
    BookingNotFoundError,
    InvalidTransitionError,
    StaleWriteError
)
from room_booking.domain.value_objects.time_interval import TimeInterval, as_utc
from room_booking.infrastructure.database.models import BookingModel, ResourceLockModel


class SQLAlchemyBookingStore(BookingStore):
    """SQLAlchemy implementation of the booking store.

    Conflict checks are serialised per room by row-locking that room's entry
    in ``booking_resource_locks``. The lock lives until the surrounding
    session commits or rolls back, so the check and the insert land in the
    same transaction.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        model = await self._get_model(booking_id)
        if not model:
            return None
        return self._model_to_entity(model)

    async def find_active_by_resource(self, resource_id: str) -> List[Booking]:
        """Find pending and approved bookings for a resource."""
        stmt = select(BookingModel).where(
            BookingModel.resource_id == resource_id,
            BookingModel.status.in_(list(ACTIVE_STATUSES))
        ).order_by(BookingModel.start_at)

        return await self._fetch(stmt)

    async def insert_if_no_conflict(self, candidate: Booking, conflict_predicate: ConflictPredicate) -> Booking:
        """Atomically check the active set and insert the candidate as pending."""
        if candidate.status != BookingStatus.PENDING:
            raise ValueError("New bookings must be pending")

        log_database_operation(
            self._logger,
            "INSERT",
            "BookingModel",
            booking_id=str(candidate.id),
            resource_id=candidate.resource_id
        )

        await self._lock_resource(candidate.resource_id)

        active = await self.find_active_by_resource(candidate.resource_id)
        conflicts = conflict_predicate(active)
        if conflicts:
            raise BookingConflictError(
                f"Room {candidate.resource_id} is already booked for the requested time",
                [booking.id for booking in conflicts]
            )

        self._session.add(BookingModel(
            id=candidate.id,
            resource_id=candidate.resource_id,
            owner_id=candidate.owner_id,
            start_at=candidate.interval.start,
            end_at=candidate.interval.end,
            purpose=candidate.purpose,
            status=candidate.status,
            version=candidate.version,
            created_at=candidate.created_at,
            updated_at=candidate.updated_at
        ))
        await self._session.flush()
        return candidate

    async def compare_and_set_status(
        self,
        booking_id: UUID,
        expected_version: int,
        expected_status: BookingStatus,
        new_status: BookingStatus
    ) -> Booking:
        """Change status with a single conditional UPDATE."""
        log_database_operation(
            self._logger,
            "UPDATE",
            "BookingModel",
            booking_id=str(booking_id),
            expected_version=expected_version,
            new_status=new_status.value
        )

        if is_legal_transition(expected_status, new_status):
            stmt = (
                update(BookingModel)
                .where(
                    BookingModel.id == booking_id,
                    BookingModel.version == expected_version,
                    BookingModel.status == expected_status
                )
                .values(
                    status=new_status,
                    version=BookingModel.version + 1,
                    updated_at=datetime.now(timezone.utc)
                )
                .execution_options(synchronize_session=False)
            )
            result = await self._session.execute(stmt)
            if result.rowcount == 1:
                return self._model_to_entity(await self._get_model(booking_id))

        model = await self._get_model(booking_id)
        if model is None:
            raise BookingNotFoundError(booking_id)
        if model.version != expected_version or model.status != expected_status:
            raise StaleWriteError(
                f"Booking {booking_id} changed: expected v{expected_version} "
                f"{expected_status.value}, found v{model.version} {model.status.value}"
            )
        raise InvalidTransitionError(
            model.status,
            message=f"Cannot move booking from {expected_status.value} to {new_status.value}"
        )

    async def find_by_owner(self, owner_id: UUID) -> List[Booking]:
        """Find all bookings requested by an owner."""
        stmt = select(BookingModel).where(
            BookingModel.owner_id == owner_id
        ).order_by(BookingModel.start_at, BookingModel.created_at)

        return await self._fetch(stmt)

    async def find_by_resource(self, resource_id: str) -> List[Booking]:
        """Find all bookings for a resource."""
        stmt = select(BookingModel).where(
            BookingModel.resource_id == resource_id
        ).order_by(BookingModel.start_at, BookingModel.created_at)

        return await self._fetch(stmt)

    async def find_all(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """Find all bookings, optionally filtered by status."""
        stmt = select(BookingModel)
        if status is not None:
            stmt = stmt.where(BookingModel.status == status)
        stmt = stmt.order_by(BookingModel.start_at, BookingModel.created_at)

        return await self._fetch(stmt)

    async def _lock_resource(self, resource_id: str) -> None:
        """Take the per-room row lock, creating the row on first use."""
        dialect = self._session.get_bind().dialect.name

        if dialect in ("postgresql", "sqlite"):
            dialect_module = postgresql if dialect == "postgresql" else sqlite
            await self._session.execute(
                dialect_module.insert(ResourceLockModel)
                .values(resource_id=resource_id, created_at=datetime.now(timezone.utc))
                .on_conflict_do_nothing(index_elements=[ResourceLockModel.resource_id])
            )
        else:
            try:
                async with self._session.begin_nested():
                    await self._session.execute(
                        insert(ResourceLockModel).values(
                            resource_id=resource_id, created_at=datetime.now(timezone.utc)
                        )
                    )
            except IntegrityError:
                # Row already exists
                self._logger.debug("Resource lock row exists", extra={"resource_id": resource_id})

        stmt = select(ResourceLockModel).where(
            ResourceLockModel.resource_id == resource_id
        ).with_for_update()
        await self._session.execute(stmt)

    async def _get_model(self, booking_id: UUID) -> Optional[BookingModel]:
        stmt = (
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _fetch(self, stmt) -> List[Booking]:
        result = await self._session.execute(stmt.execution_options(populate_existing=True))
        return [self._model_to_entity(model) for model in result.scalars().all()]

    def _model_to_entity(self, model: BookingModel) -> Booking:
        """Convert database model to domain entity."""
        return Booking(
            booking_id=model.id,
            resource_id=model.resource_id,
            owner_id=model.owner_id,
            interval=TimeInterval(model.start_at, model.end_at),
            purpose=model.purpose or "",
            status=model.status,
            version=model.version,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at)
        )
