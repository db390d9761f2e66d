"""
Observability Package - WBS 1.3

Structured JSON logging with correlation IDs.
"""

from session_core.observability.logging import (
    add_service_context,
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    reset_logging,
    set_correlation_id,
)

__all__ = [
    "add_service_context",
    "configure_logging",
    "reset_logging",
    "get_logger",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
]
