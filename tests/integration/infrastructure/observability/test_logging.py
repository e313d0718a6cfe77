"""Integration tests for structured logging.

Tests that logs are formatted correctly and credentials are masked.
"""

import json
import logging

from opentelemetry.sdk.trace import TracerProvider

from src.infrastructure.observability.logging import (
    _add_trace_context,
    _filter_sensitive_data,
    configure_logging,
    get_logger,
)


class TestStructuredLogging:
    """Tests for structured logging configuration."""

    def test_logger_outputs_json_format(self, caplog):
        """Test that events are rendered as JSON with standard fields."""
        configure_logging(log_level="INFO", json_format=True)
        logger = get_logger("test_logging_json")

        with caplog.at_level(logging.INFO):
            logger.info("service_created", service_name="auth-api", user="u")

        record = json.loads(caplog.records[-1].getMessage())
        assert record["event"] == "service_created"
        assert record["service_name"] == "auth-api"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_log_levels(self):
        """Test different log levels (should not crash)."""
        configure_logging(json_format=False)
        logger = get_logger(__name__)

        logger.debug("debug_event")
        logger.info("info_event")
        logger.warning("warning_event")
        logger.error("error_event")

    def test_exception_logging(self):
        """Test exception logging with stack traces."""
        configure_logging(json_format=True)
        logger = get_logger(__name__)

        try:
            raise ValueError("Test exception")
        except ValueError:
            logger.error("exception_occurred", exc_info=True)


class TestSensitiveDataFiltering:
    """Tests for credential masking."""

    def test_tokens_masked(self):
        event_dict = {
            "event": "github_request",
            "token": "ghp_abcdef123456",
            "Authorization": "Bearer xyz",
            "team": "auth-squad",
        }

        filtered = _filter_sensitive_data(None, "info", event_dict)

        assert filtered["token"].startswith("ghp_")
        assert "abcdef" not in filtered["token"]
        assert filtered["Authorization"].startswith("Bear")
        assert filtered["team"] == "auth-squad"
        assert filtered["event"] == "github_request"

    def test_short_values_fully_redacted(self):
        filtered = _filter_sensitive_data(None, "info", {"password": "abc"})

        assert filtered["password"] == "***REDACTED***"

    def test_nested_values_masked(self):
        filtered = _filter_sensitive_data(
            None, "info", {"context": {"name": "prod", "token": "sa-token-value"}}
        )

        assert filtered["context"]["name"] == "prod"
        assert filtered["context"]["token"] == "sa-t**********"


class TestTraceContext:
    """Tests for trace_id/span_id injection."""

    def test_no_active_span(self):
        event_dict = _add_trace_context(None, "info", {"event": "x"})

        assert "trace_id" not in event_dict

    def test_active_span_adds_ids(self):
        tracer = TracerProvider().get_tracer(__name__)

        with tracer.start_as_current_span("request") as span:
            event_dict = _add_trace_context(None, "info", {"event": "x"})

        assert event_dict["trace_id"] == format(span.get_span_context().trace_id, "032x")
        assert len(event_dict["span_id"]) == 16
