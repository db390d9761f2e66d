"""
Aggregates Package - WBS 2.3

The Session and Request aggregates and their state machines.
"""

from session_core.aggregates.request import (
    CompletionMetadata,
    Request,
    RequestState,
    RequestWithEvents,
)
from session_core.aggregates.session import Session, SessionState, SessionWithEvents

__all__ = [
    "Session",
    "SessionState",
    "SessionWithEvents",
    "Request",
    "RequestState",
    "RequestWithEvents",
    "CompletionMetadata",
]
