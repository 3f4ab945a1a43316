"""HTTP request/response logging middleware for FastAPI."""

import time
from typing import Callable, Dict, Optional, Set
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ....infrastructure.logging import (
    clear_correlation_id,
    generate_correlation_id,
    get_logger,
    log_request,
    log_response,
    set_correlation_id
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Never written to logs
SENSITIVE_HEADERS = frozenset({
    'authorization',
    'cookie',
    'set-cookie',
    'proxy-authorization',
    'x-api-key',
})

DEFAULT_EXCLUDED_PATHS = frozenset({'/health', '/docs', '/redoc', '/openapi.json', '/favicon.ico'})


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a correlation ID to each request and log both ends of it.

    An inbound ``X-Correlation-ID`` header is reused so callers can trace a
    booking request across services; otherwise a new ID is generated. The ID
    is echoed on the response.
    """

    def __init__(self, app: ASGIApp, exclude_paths: Optional[Set[str]] = None):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths) if exclude_paths is not None else set(DEFAULT_EXCLUDED_PATHS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            log_request(
                logger,
                request.method,
                request.url.path,
                request_query=str(request.query_params) or None,
                request_headers=redact_headers(request.headers),
                client_host=request.client.host if request.client else "unknown"
            )

            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    f"Request failed: {request.method} {request.url.path}",
                    extra={
                        "request_method": request.method,
                        "request_path": request.url.path,
                        "duration_ms": round(_elapsed_ms(started), 2),
                        "error_type": type(exc).__name__
                    },
                    exc_info=True
                )
                raise

            response.headers[CORRELATION_HEADER] = correlation_id
            log_response(logger, request.method, request.url.path, response.status_code, _elapsed_ms(started))
            return response
        finally:
            clear_correlation_id()


def redact_headers(headers) -> Dict[str, str]:
    """Copy headers with sensitive values masked."""
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
