"""
Tests for Structured Logging - WBS 1.3.1

Reference Documents:
- GUIDELINES: Structured logging for observability

WBS Items Covered:
- 1.3.1.1: JSON output through structlog
- 1.3.1.2: Correlation ID propagation via contextvars
- 1.3.1.3: Level filtering from settings
"""

import io
import json

import pytest
from structlog.testing import capture_logs

from session_core.core.config import get_settings
from session_core.observability.logging import (
    add_correlation_id,
    add_service_context,
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    rename_level,
    set_correlation_id,
)


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestCorrelationId:
    """Tests for the correlation ID context helpers."""

    def test_default_is_none(self):
        clear_correlation_id()

        assert get_correlation_id() is None

    def test_set_and_get(self):
        set_correlation_id("corr-1")
        try:
            assert get_correlation_id() == "corr-1"
        finally:
            clear_correlation_id()

    def test_context_restores_previous_value(self):
        set_correlation_id("outer")
        try:
            with correlation_id_context("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
        finally:
            clear_correlation_id()


class TestProcessors:
    def test_add_correlation_id_when_set(self):
        with correlation_id_context("corr-9"):
            event = add_correlation_id(None, "info", {"event": "x"})

        assert event["correlation_id"] == "corr-9"

    def test_add_correlation_id_keeps_explicit_value(self):
        with correlation_id_context("corr-9"):
            event = add_correlation_id(None, "info", {"event": "x", "correlation_id": "mine"})

        assert event["correlation_id"] == "mine"

    def test_add_correlation_id_noop_when_unset(self):
        clear_correlation_id()

        assert "correlation_id" not in add_correlation_id(None, "info", {"event": "x"})

    def test_rename_level(self):
        event = rename_level(None, "info", {"event": "x", "log_level": "info"})

        assert event == {"event": "x", "level": "info"}

    def test_add_service_context(self):
        settings = get_settings()

        event = add_service_context(None, "info", {"event": "x"})

        assert event["service"] == settings.service_name
        assert event["environment"] == settings.environment

    def test_add_service_context_keeps_explicit_value(self):
        event = add_service_context(None, "info", {"event": "x", "service": "other"})

        assert event["service"] == "other"


class TestStructuredOutput:
    """Tests for the rendered JSON lines."""

    def test_logger_emits_json_with_name_and_level(self, log_stream):
        get_logger("session_core.test").info("session_established", session_id="session-1")

        [line] = _lines(log_stream)
        assert line["event"] == "session_established"
        assert line["logger_name"] == "session_core.test"
        assert line["level"] == "info"
        assert line["session_id"] == "session-1"
        assert "timestamp" in line

    def test_correlation_id_is_included(self, log_stream):
        with correlation_id_context("corr-42"):
            get_logger("session_core.test").info("chunk_received")

        [line] = _lines(log_stream)
        assert line["correlation_id"] == "corr-42"

    def test_service_and_environment_on_every_line(self, log_stream):
        logger = get_logger("session_core.test")
        logger.info("first")
        logger.warning("second")

        defaults = get_settings()
        for line in _lines(log_stream):
            assert line["service"] == defaults.service_name
            assert line["environment"] == defaults.environment

    def test_level_filtering(self, log_stream):
        stream = io.StringIO()
        configure_logging(level="WARNING", stream=stream, force=True)
        logger = get_logger("session_core.test")
        logger.info("dropped")
        logger.warning("kept")

        assert [line["event"] for line in _lines(stream)] == ["kept"]

    def test_configure_is_idempotent_without_force(self, log_stream):
        configure_logging(level="ERROR", stream=io.StringIO())
        get_logger("session_core.test").debug("still_configured")

        assert _lines(log_stream)[0]["event"] == "still_configured"


class TestModuleLevelLoggers:
    """Loggers created at import time must follow later configuration."""

    def test_logger_created_before_reconfigure_uses_new_stream(self, log_stream):
        logger = get_logger("session_core.early")
        replacement = io.StringIO()

        configure_logging(level="DEBUG", stream=replacement, force=True)
        logger.info("after_reconfigure")

        assert _lines(log_stream) == []
        [line] = _lines(replacement)
        assert line["event"] == "after_reconfigure"
        assert line["logger_name"] == "session_core.early"

    def test_capture_logs_sees_logger_after_forced_configure(self, log_stream):
        logger = get_logger("session_core.early")

        with capture_logs() as captured:
            logger.warning("captured")

        assert captured == [
            {"event": "captured", "log_level": "warning", "logger_name": "session_core.early"}
        ]

    def test_initial_values_are_kept(self, log_stream):
        get_logger("session_core.test", component="store").info("bound")

        [line] = _lines(log_stream)
        assert line["component"] == "store"
