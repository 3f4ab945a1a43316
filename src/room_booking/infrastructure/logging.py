"""Structured JSON logging for the Room Booking Service.

Every record is rendered as a single JSON object carrying the correlation ID
of the request that produced it, so a booking's path through the API, the
lifecycle manager and the store can be followed in aggregated logs.
"""

import json
import logging
import logging.handlers
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional


SERVICE_NAME = "room-booking-service"

# Correlation ID of the request currently being served
correlation_id_context: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# LogRecord attributes that are not user-supplied extras
_RESERVED_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    'message', 'asctime', 'correlation_id', 'taskName'
}

_QUIET_LOGGERS = (
    'sqlalchemy.engine', 'sqlalchemy.pool', 'aiosqlite', 'asyncpg',
    'uvicorn.access', 'httpx', 'httpcore'
)


class CorrelationIDFilter(logging.Filter):
    """Stamp records with the current correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_context.get() or "unknown"
        return True


class JSONFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def __init__(self, service_name: str = SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, 'correlation_id', 'unknown'),
            "module": record.module,
            "line": record.lineno,
        }
        if record.funcName and record.funcName != '<module>':
            entry["function"] = record.funcName

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info)
            }

        extra = {
            key: value for key, value in vars(record).items()
            if key not in _RESERVED_RECORD_FIELDS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)


class LoggingConfig:
    """Root logger setup: JSON to stdout and, optionally, rotating files."""

    def __init__(self,
                 log_level: str = "INFO",
                 service_name: str = SERVICE_NAME,
                 log_dir: Optional[str] = None,
                 max_file_size: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 5,
                 enable_console: bool = True,
                 enable_file: bool = False):
        """
        Initialize logging configuration.

        Args:
            log_level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            service_name: Value of the ``service`` field and log file prefix
            log_dir: Directory for log files (defaults to ./logs)
            max_file_size: Rotation threshold in bytes
            backup_count: Rotated files to keep
            enable_console: Write to stdout
            enable_file: Write to ``<service>.log`` and ``<service>-errors.log``
        """
        self.log_level = logging.getLevelName(log_level.upper())
        if not isinstance(self.log_level, int):
            raise ValueError(f"Unknown log level: {log_level}")

        self.service_name = service_name
        self.log_dir = Path(log_dir) if log_dir else Path.cwd() / "logs"
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.enable_console = enable_console
        self.enable_file = enable_file

    def build_handlers(self) -> List[logging.Handler]:
        """Create the configured handlers, each with the JSON formatter."""
        handlers: List[logging.Handler] = []

        if self.enable_console:
            handlers.append(logging.StreamHandler(sys.stdout))

        if self.enable_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            for suffix, level in (("", self.log_level), ("-errors", logging.ERROR)):
                handler = logging.handlers.RotatingFileHandler(
                    filename=self.log_dir / f"{self.service_name}{suffix}.log",
                    maxBytes=self.max_file_size,
                    backupCount=self.backup_count,
                    encoding='utf-8'
                )
                handler.setLevel(level)
                handlers.append(handler)

        formatter = JSONFormatter(service_name=self.service_name)
        correlation_filter = CorrelationIDFilter()
        for handler in handlers:
            handler.setFormatter(formatter)
            handler.addFilter(correlation_filter)
        return handlers

    def setup_logging(self) -> None:
        """Replace the root logger's handlers with the configured ones."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        root_logger.setLevel(self.log_level)
        for handler in self.build_handlers():
            root_logger.addHandler(handler)

        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes")


def setup_logging_from_env() -> LoggingConfig:
    """Configure logging from LOG_* environment variables."""
    config = LoggingConfig(
        log_level=os.getenv('LOG_LEVEL', 'INFO'),
        service_name=os.getenv('SERVICE_NAME', SERVICE_NAME),
        log_dir=os.getenv('LOG_DIR'),
        max_file_size=int(os.getenv('LOG_MAX_FILE_SIZE', str(10 * 1024 * 1024))),
        backup_count=int(os.getenv('LOG_BACKUP_COUNT', '5')),
        enable_console=_env_flag('LOG_ENABLE_CONSOLE', True),
        enable_file=_env_flag('LOG_ENABLE_FILE', False)
    )
    config.setup_logging()
    return config


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_context.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_context.get()


def clear_correlation_id() -> None:
    correlation_id_context.set(None)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_with_extra(logger: logging.Logger, level: int, message: str, **extra) -> None:
    """Log a message with structured extra fields."""
    logger.log(level, message, extra=extra)


def log_request(logger: logging.Logger, method: str, path: str, **extra) -> None:
    """Log an inbound HTTP request."""
    log_with_extra(
        logger,
        logging.INFO,
        f"HTTP Request: {method} {path}",
        request_method=method,
        request_path=path,
        **extra
    )


def log_response(logger: logging.Logger, method: str, path: str, status_code: int, duration_ms: float, **extra) -> None:
    """Log an HTTP response; client errors warn and server errors are errors."""
    if status_code >= 500:
        level = logging.ERROR
    elif status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    log_with_extra(
        logger,
        level,
        f"HTTP Response: {method} {path} -> {status_code} ({duration_ms:.2f}ms)",
        request_method=method,
        request_path=path,
        response_status=status_code,
        duration_ms=round(duration_ms, 2),
        **extra
    )


def log_database_operation(logger: logging.Logger, operation: str, table: str, **extra) -> None:
    """Log a store operation at debug level."""
    log_with_extra(
        logger,
        logging.DEBUG,
        f"Database {operation}: {table}",
        db_operation=operation,
        db_table=table,
        **extra
    )


def log_business_rule_violation(logger: logging.Logger, rule: str, details: str, **extra) -> None:
    """Log a refused booking operation."""
    log_with_extra(
        logger,
        logging.WARNING,
        f"Business rule violation: {rule} - {details}",
        business_rule=rule,
        violation_details=details,
        **extra
    )


def log_booking_transition(logger: logging.Logger, booking_id: str, from_status: str, to_status: str, **extra) -> None:
    """Log a committed booking status change."""
    log_with_extra(
        logger,
        logging.INFO,
        f"Booking {booking_id}: {from_status} -> {to_status}",
        booking_id=booking_id,
        from_status=from_status,
        to_status=to_status,
        **extra
    )
