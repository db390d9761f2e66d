"""
Structured Logging Module - WBS 1.3.1

JSON logging through structlog with correlation ID support. Every use case
run is wrapped in correlation_id_context, so every line emitted during one
invocation (begin, commit/rollback, wrapped failures) carries the same
correlation_id and can be grouped downstream. Lines also carry the service
name and environment from settings.

Pattern: Structured logging for observability
Pattern: Singleton configuration (configure once at startup)
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor

from session_core.core.config import get_settings


_configured: bool = False

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


# =============================================================================
# Correlation ID Context
# =============================================================================

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None if unset."""
    return _correlation_id_var.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID for the current context."""
    _correlation_id_var.set(None)


@contextmanager
def correlation_id_context(correlation_id: str) -> Generator[None, None, None]:
    """
    Context manager for scoping a correlation ID.

    The previous value is restored on exit, so nested scopes behave.

    Example:
        >>> with correlation_id_context("req-12345"):
        ...     logger.info("chunk_received")
    """
    token = _correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id_var.reset(token)


# =============================================================================
# Processors
# =============================================================================


def add_correlation_id(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add the correlation ID to the event if one is set."""
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def add_timestamp(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add an ISO 8601 UTC timestamp to the event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_service_context(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag the event with the service name and deployment environment."""
    settings = get_settings()
    event_dict.setdefault("service", settings.service_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def rename_level(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename log_level to level for cleaner output."""
    if "log_level" in event_dict:
        event_dict["level"] = event_dict.pop("log_level")
    return event_dict


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    level: Optional[str] = None,
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog for the process.

    Subsequent calls are no-ops unless force=True.

    Args:
        level: Minimum log level. Defaults to ``Settings.log_level``.
        stream: Output stream (default: sys.stdout).
        force: Force reconfiguration (tests).
    """
    global _configured

    if _configured and not force:
        return

    if level is None:
        level = get_settings().log_level

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_correlation_id,
        add_service_context,
        rename_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            _LEVELS.get(level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )

    _configured = True


def reset_logging() -> None:
    """Reset the configured flag. Tests only."""
    global _configured
    _configured = False


def get_logger(name: str, **initial_values: object) -> structlog.typing.FilteringBoundLogger:
    """
    Get a structured logger tagged with ``logger_name``.

    Configures logging on first use. The returned logger is a lazy proxy:
    it is built from the structlog configuration current at each call, so a
    module-level logger follows a later configure_logging(force=True) or
    structlog.testing.capture_logs().

    Args:
        name: Logger name (typically the module name).
        **initial_values: Extra context bound to every event.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("session_established", session_id="session-1")
    """
    configure_logging()
    # "logger" is taken by structlog.wrap_logger's first parameter
    return structlog.get_logger(logger_name=name, **initial_values)
