"""FastAPI main application module."""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from ...domain.errors import (
    BookingConflictError,
    BookingError,
    BookingNotFoundError,
    ForbiddenError,
    InvalidIntervalError,
    InvalidTransitionError,
)
from ...infrastructure.logging import get_logger, setup_logging_from_env
from ...infrastructure.services import initialize_services, shutdown_services
from .routes import health, bookings, rooms
from .config import get_settings
from .middleware.auth import AuthenticationError
from .middleware.logging import RequestResponseLoggingMiddleware


logger = get_logger(__name__)

BOOKING_ERROR_STATUS = {
    InvalidIntervalError: 422,
    BookingConflictError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    BookingNotFoundError: status.HTTP_404_NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    setup_logging_from_env()
    logger.info("Starting Room Booking Service API")
    await initialize_services()

    yield

    logger.info("Shutting down Room Booking Service API")
    await shutdown_services()


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        """Handle authentication errors."""
        logger.warning(f"Authentication error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "detail": str(exc),
                "type": "authentication_error"
            },
            headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        """Map typed booking failures to HTTP statuses."""
        status_code = next(
            (code for error_class, code in BOOKING_ERROR_STATUS.items() if isinstance(exc, error_class)),
            status.HTTP_400_BAD_REQUEST
        )
        content = {"detail": str(exc), "type": exc.error_type}
        if isinstance(exc, BookingConflictError):
            content["conflicting_booking_ids"] = [str(booking_id) for booking_id in exc.conflicting_ids]

        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors from business logic."""
        logger.warning(f"Validation error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": str(exc),
                "type": "validation_error"
            }
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        """Handle storage unavailability."""
        logger.error(f"Storage error on {request.url.path}: {str(exc)}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "detail": "Booking storage is unavailable",
                "type": "storage_error"
            }
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Room Booking Service",
        description="API for requesting, approving and cancelling room bookings",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        bookings.router,
        prefix=f"{settings.api_prefix}/bookings",
        tags=["bookings"]
    )
    app.include_router(
        rooms.router,
        prefix=f"{settings.api_prefix}/rooms",
        tags=["rooms"]
    )

    return app


# Create app instance
app = create_app()
