"""Dependency injection and service factory."""

from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from room_booking.application.ports.repositories import BookingStore
from room_booking.application.services.availability_service import AvailabilityService
from room_booking.application.services.booking_service import BookingLifecycleManager
from room_booking.application.services.conflict_detector import ConflictDetector
from room_booking.domain.value_objects.time_interval import IntervalPolicy
from room_booking.infrastructure.database.connection import DatabaseManager
from room_booking.infrastructure.logging import get_logger
from room_booking.infrastructure.repositories.memory_repositories import InMemoryBookingStore
from room_booking.infrastructure.repositories.sql_repositories import SQLAlchemyBookingStore

logger = get_logger(__name__)


class ServiceFactory:
    """Factory for creating application services with proper dependencies."""

    def __init__(
        self,
        storage_backend: str = "memory",
        database_url: Optional[str] = None,
        interval_policy: Optional[IntervalPolicy] = None,
        database_echo: bool = False
    ):
        if storage_backend not in ("memory", "sql"):
            raise ValueError(f"Unknown storage backend: {storage_backend}")
        if storage_backend == "sql" and not database_url:
            raise ValueError("The sql storage backend needs a database URL")

        self.storage_backend = storage_backend
        self.interval_policy = interval_policy or IntervalPolicy()
        self.database_manager = DatabaseManager(database_url, echo=database_echo) if storage_backend == "sql" else None
        # One store for the lifetime of the factory
        self._memory_store = InMemoryBookingStore() if storage_backend == "memory" else None
        self._connected = False

    async def initialize(self):
        """Initialize the service factory."""
        if self.database_manager and not self._connected:
            await self.database_manager.connect()
            self._connected = True
        logger.info("Service factory initialized", extra={"storage_backend": self.storage_backend})

    async def shutdown(self):
        """Shutdown the service factory."""
        if self.database_manager and self._connected:
            await self.database_manager.disconnect()
            self._connected = False

    @asynccontextmanager
    async def get_booking_store(self) -> AsyncGenerator[BookingStore, None]:
        """Get a booking store; SQL stores share one transaction per context."""
        if self._memory_store is not None:
            yield self._memory_store
            return

        async with self.database_manager.get_session() as session:
            yield SQLAlchemyBookingStore(session)

    @asynccontextmanager
    async def get_booking_service(self) -> AsyncGenerator[BookingLifecycleManager, None]:
        """Get booking lifecycle service bound to a store."""
        async with self.get_booking_store() as store:
            yield BookingLifecycleManager(
                booking_store=store,
                conflict_detector=ConflictDetector(store),
                interval_policy=self.interval_policy
            )

    @asynccontextmanager
    async def get_availability_service(self) -> AsyncGenerator[AvailabilityService, None]:
        """Get availability service bound to a store."""
        async with self.get_booking_store() as store:
            yield AvailabilityService(ConflictDetector(store))


# Global service factory instance
_service_factory: ServiceFactory | None = None


def get_service_factory() -> ServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        from room_booking.presentation.api.config import get_settings

        settings = get_settings()
        _service_factory = ServiceFactory(
            storage_backend=settings.storage_backend,
            database_url=settings.database_url,
            interval_policy=settings.interval_policy(),
            database_echo=settings.database_echo
        )

    return _service_factory


def set_service_factory(factory: Optional[ServiceFactory]) -> None:
    """Replace the global service factory (used by tests and tooling)."""
    global _service_factory
    _service_factory = factory


async def initialize_services():
    """Initialize application services."""
    factory = get_service_factory()
    await factory.initialize()


async def shutdown_services():
    """Shutdown application services."""
    factory = get_service_factory()
    await factory.shutdown()
