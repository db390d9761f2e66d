"""
Models Package - WBS 2.1 & 2.2 Value Objects and Domain Events

Immutable, self-validating building blocks shared by the Session and Request
aggregates.
"""

from session_core.models.chunks import (
    CompleteChunk,
    DeltaChunk,
    ErrorChunk,
    StreamChunk,
    match_chunk,
    parse_stream_chunk,
)
from session_core.models.events import (
    DomainEvent,
    RequestCompleted,
    RequestFailed,
    RequestReceived,
    ResponseChunkReceived,
    SessionClosed,
    SessionEstablished,
    match_event,
    parse_domain_event,
    utc_now,
)
from session_core.models.identifiers import RequestId, SessionId
from session_core.models.messages import ClientMessage, LLMProviderHint

__all__ = [
    # Identifiers
    "SessionId",
    "RequestId",
    # Messages
    "ClientMessage",
    "LLMProviderHint",
    # Chunks
    "StreamChunk",
    "DeltaChunk",
    "CompleteChunk",
    "ErrorChunk",
    "parse_stream_chunk",
    "match_chunk",
    # Events
    "DomainEvent",
    "SessionEstablished",
    "SessionClosed",
    "RequestReceived",
    "ResponseChunkReceived",
    "RequestCompleted",
    "RequestFailed",
    "parse_domain_event",
    "match_event",
    "utc_now",
]
