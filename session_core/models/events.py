"""
Domain events - WBS 2.2

Immutable records of facts that already happened to a Session or Request.
Aggregates return them alongside each new snapshot; the core never dispatches
them itself. Events are pure data with an ``event_type`` discriminator so a
stored event stream can be parsed back with parse_domain_event.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Callable, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from session_core.models.chunks import StreamChunk
from session_core.models.identifiers import RequestId, SessionId
from session_core.models.messages import ClientMessage

R = TypeVar("R")


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)


class SessionEstablished(_EventBase):
    event_type: Literal["SessionEstablished"] = "SessionEstablished"
    session_id: SessionId


class SessionClosed(_EventBase):
    event_type: Literal["SessionClosed"] = "SessionClosed"
    session_id: SessionId
    reason: Optional[str] = None


class RequestReceived(_EventBase):
    event_type: Literal["RequestReceived"] = "RequestReceived"
    request_id: RequestId
    session_id: SessionId
    message: ClientMessage


class ResponseChunkReceived(_EventBase):
    event_type: Literal["ResponseChunkReceived"] = "ResponseChunkReceived"
    request_id: RequestId
    chunk: StreamChunk


class RequestCompleted(_EventBase):
    event_type: Literal["RequestCompleted"] = "RequestCompleted"
    request_id: RequestId


class RequestFailed(_EventBase):
    event_type: Literal["RequestFailed"] = "RequestFailed"
    request_id: RequestId
    error: str


DomainEvent = Annotated[
    Union[
        SessionEstablished,
        SessionClosed,
        RequestReceived,
        ResponseChunkReceived,
        RequestCompleted,
        RequestFailed,
    ],
    Field(discriminator="event_type"),
]

_domain_event_adapter: TypeAdapter[DomainEvent] = TypeAdapter(DomainEvent)


def parse_domain_event(data: Any) -> DomainEvent:
    """
    Rebuild an event from its dumped form.

    Raises:
        pydantic.ValidationError: For unknown event types or bad payloads.
    """
    return _domain_event_adapter.validate_python(data)


def match_event(
    event: DomainEvent,
    *,
    on_session_established: Callable[[SessionEstablished], R],
    on_session_closed: Callable[[SessionClosed], R],
    on_request_received: Callable[[RequestReceived], R],
    on_response_chunk_received: Callable[[ResponseChunkReceived], R],
    on_request_completed: Callable[[RequestCompleted], R],
    on_request_failed: Callable[[RequestFailed], R],
) -> R:
    """Dispatch on the event type. Every event type must be handled."""
    handlers: dict[type, Callable[[Any], R]] = {
        SessionEstablished: on_session_established,
        SessionClosed: on_session_closed,
        RequestReceived: on_request_received,
        ResponseChunkReceived: on_response_chunk_received,
        RequestCompleted: on_request_completed,
        RequestFailed: on_request_failed,
    }
    handler = handlers.get(type(event))
    if handler is None:
        raise TypeError(f"Unknown domain event type: {type(event).__name__}")
    return handler(event)
