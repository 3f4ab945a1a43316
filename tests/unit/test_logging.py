"""Unit tests for structured logging helpers."""

import json
import logging
import sys

import pytest

from room_booking.infrastructure.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    clear_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    log_booking_transition,
    log_business_rule_violation,
    set_correlation_id
)
from room_booking.presentation.api.middleware.logging import redact_headers

from tests.helpers import at


def make_record(message="hello", **extra):
    record = logging.LogRecord("room_booking.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationID:
    """Test cases for correlation ID tracking."""

    def test_set_and_clear(self):
        """Test the correlation ID follows the context."""
        set_correlation_id("abc-123")
        assert get_correlation_id() == "abc-123"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_generated_ids_are_unique(self):
        """Test generated IDs differ."""
        assert generate_correlation_id() != generate_correlation_id()

    def test_filter_attaches_id(self):
        """Test the filter stamps records with the current ID."""
        record = make_record()
        set_correlation_id("req-1")
        try:
            assert CorrelationIDFilter().filter(record) is True
        finally:
            clear_correlation_id()

        assert record.correlation_id == "req-1"

    def test_filter_without_id(self):
        """Test records outside a request get a placeholder."""
        record = make_record()
        CorrelationIDFilter().filter(record)

        assert record.correlation_id == "unknown"


class TestJSONFormatter:
    """Test cases for JSONFormatter."""

    def test_format_basic_fields(self):
        """Test the core fields of a log entry."""
        record = make_record("Booking created", correlation_id="req-2")

        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["service"] == "room-booking-service"
        assert entry["logger"] == "room_booking.test"
        assert entry["message"] == "Booking created"
        assert entry["correlation_id"] == "req-2"
        assert "extra" not in entry

    def test_format_extra_fields(self):
        """Test user supplied fields land under extra."""
        record = make_record(booking_id="b-1", resource_id="room-1")

        entry = json.loads(JSONFormatter(service_name="test-service").format(record))

        assert entry["service"] == "test-service"
        assert entry["extra"] == {"booking_id": "b-1", "resource_id": "room-1"}

    def test_format_exception(self):
        """Test exception details are serialised."""
        try:
            raise RuntimeError("storage unavailable")
        except RuntimeError:
            record = logging.LogRecord(
                "room_booking.test", logging.ERROR, __file__, 10, "failed", None, sys.exc_info()
            )

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["exception"]["message"] == "storage unavailable"


class TestLogHelpers:
    """Test cases for domain logging helpers."""

    def test_log_booking_transition(self, caplog):
        """Test transitions are logged with status fields."""
        logger = logging.getLogger("room_booking.test.transition")

        with caplog.at_level(logging.INFO, logger="room_booking.test.transition"):
            log_booking_transition(logger, "b-1", "pending", "approved", action="approve")

        record = caplog.records[-1]
        assert record.getMessage() == "Booking b-1: pending -> approved"
        assert record.from_status == "pending"
        assert record.to_status == "approved"
        assert record.action == "approve"

    def test_log_business_rule_violation(self, caplog):
        """Test violations are logged as warnings."""
        logger = logging.getLogger("room_booking.test.violation")

        with caplog.at_level(logging.WARNING, logger="room_booking.test.violation"):
            log_business_rule_violation(logger, "conflict", "Room is taken", resource_id="room-1")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.business_rule == "conflict"
        assert record.resource_id == "room-1"

    @pytest.mark.asyncio
    async def test_failed_create_is_logged(self, manager, owner_id, caplog):
        """Test lifecycle failures emit a business rule warning."""
        with caplog.at_level(logging.WARNING):
            await manager.create_booking(owner_id, "room-1", at(11), at(10))

        assert any(getattr(record, "business_rule", None) == "invalid_interval" for record in caplog.records)


class TestRequestLoggingMiddleware:
    """Test cases for request logging helpers."""

    def test_redact_headers(self):
        """Test credentials never reach the logs."""
        redacted = redact_headers({"Authorization": "Bearer secret", "Accept": "application/json"})

        assert redacted == {"Authorization": "[REDACTED]", "Accept": "application/json"}
