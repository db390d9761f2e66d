"""
Request aggregate - WBS 2.3.2

Owns the lifecycle of one streamed request: the client message, the chunks
received so far and the terminal outcome.

State machine:
    Pending   --add_chunk--> Streaming
    Streaming --add_chunk--> Streaming
    Streaming --complete-->  Completed
    Pending | Streaming --fail--> Failed

Completed and Failed are terminal. add_chunk appends any chunk variant; the
chunk's own tag never ends the request, only complete() and fail() do.

Pattern: Aggregate root (consistency boundary)
Pattern: Copy-with-changes on a frozen pydantic model
"""

from datetime import datetime
from enum import Enum
from typing import Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from session_core.core.exceptions import InvalidRequestStateError
from session_core.models.chunks import DeltaChunk, StreamChunk
from session_core.models.events import (
    DomainEvent,
    RequestCompleted,
    RequestFailed,
    RequestReceived,
    ResponseChunkReceived,
    utc_now,
)
from session_core.models.identifiers import RequestId, SessionId
from session_core.models.messages import ClientMessage


class RequestState(str, Enum):
    """Lifecycle states of a request."""

    PENDING = "Pending"
    STREAMING = "Streaming"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.COMPLETED, RequestState.FAILED)


class CompletionMetadata(BaseModel):
    """
    Optional details reported when a request completes.

    Attributes:
        total_tokens: Total tokens consumed by the response.
        stop_reason: Why the provider stopped generating.
    """

    model_config = ConfigDict(frozen=True)

    total_tokens: Optional[int] = Field(default=None, gt=0, strict=True)
    stop_reason: Optional[Literal["end_turn", "max_tokens", "stop_sequence"]] = None


class RequestWithEvents(NamedTuple):
    """Result of a request transition: the new snapshot and emitted events."""

    request: "Request"
    events: tuple[DomainEvent, ...]


class Request(BaseModel):
    """
    A single streamed request within a session.

    Attributes:
        request_id: Identifier of the request.
        session_id: Session the request belongs to.
        message: The client message that opened the request.
        state: Pending, Streaming, Completed or Failed.
        chunks: Chunks received so far, in arrival order.
        received_at: When the request was created.
        completed_at: When the request reached a terminal state.
        failure_reason: Error message (set iff Failed).
        completion_metadata: Details supplied on completion (Completed only).
    """

    model_config = ConfigDict(frozen=True)

    request_id: RequestId
    session_id: SessionId
    message: ClientMessage
    state: RequestState = RequestState.PENDING
    chunks: tuple[StreamChunk, ...] = Field(default_factory=tuple)
    received_at: datetime
    completed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    completion_metadata: Optional[CompletionMetadata] = None

    @model_validator(mode="after")
    def check_outcome_fields(self) -> "Request":
        if self.state.is_terminal != (self.completed_at is not None):
            raise ValueError("completed_at must be set exactly when the request is terminal")
        if (self.state is RequestState.FAILED) != (self.failure_reason is not None):
            raise ValueError("failure_reason must be set exactly when the request failed")
        if self.completion_metadata is not None and self.state is not RequestState.COMPLETED:
            raise ValueError("completion_metadata is only allowed on completed requests")
        return self

    # =========================================================================
    # Transitions
    # =========================================================================

    @classmethod
    def create(
        cls,
        request_id: RequestId,
        session_id: SessionId,
        message: ClientMessage,
        timestamp: Optional[datetime] = None,
    ) -> RequestWithEvents:
        """Create a Pending request with no chunks. Never fails."""
        now = timestamp or utc_now()
        request = cls(
            request_id=request_id,
            session_id=session_id,
            message=message,
            received_at=now,
        )
        event = RequestReceived(
            request_id=request_id,
            session_id=session_id,
            message=message,
            timestamp=now,
        )
        return RequestWithEvents(request, (event,))

    def add_chunk(
        self, chunk: StreamChunk, timestamp: Optional[datetime] = None
    ) -> RequestWithEvents:
        """
        Append a chunk. The first chunk moves Pending to Streaming.

        Raises:
            InvalidRequestStateError: If the request is Completed or Failed.
        """
        if not self.can_accept_chunks():
            raise self._invalid_state("add_chunk", "Pending or Streaming")

        updated = self.model_copy(
            update={
                "state": RequestState.STREAMING,
                "chunks": (*self.chunks, chunk),
            }
        )
        event = ResponseChunkReceived(
            request_id=self.request_id,
            chunk=chunk,
            timestamp=timestamp or utc_now(),
        )
        return RequestWithEvents(updated, (event,))

    def complete(
        self,
        metadata: Optional[CompletionMetadata] = None,
        timestamp: Optional[datetime] = None,
    ) -> RequestWithEvents:
        """
        Mark a Streaming request Completed.

        Raises:
            InvalidRequestStateError: Unless the request is Streaming.
        """
        if self.state is not RequestState.STREAMING:
            raise self._invalid_state(
                "complete",
                "Streaming",
                f"Cannot complete request in {self.state.value} state. Must be Streaming.",
            )

        now = timestamp or utc_now()
        updated = self.model_copy(
            update={
                "state": RequestState.COMPLETED,
                "completed_at": now,
                "completion_metadata": metadata,
            }
        )
        event = RequestCompleted(request_id=self.request_id, timestamp=now)
        return RequestWithEvents(updated, (event,))

    def fail(
        self, error_message: str, timestamp: Optional[datetime] = None
    ) -> RequestWithEvents:
        """
        Mark a Pending or Streaming request Failed.

        Raises:
            InvalidRequestStateError: If the request is already terminal.
        """
        if self.state.is_terminal:
            raise self._invalid_state(
                "fail",
                "Pending or Streaming",
                f"Cannot fail request in {self.state.value} state. "
                "Request is already terminal.",
            )

        now = timestamp or utc_now()
        updated = self.model_copy(
            update={
                "state": RequestState.FAILED,
                "completed_at": now,
                "failure_reason": error_message,
            }
        )
        event = RequestFailed(request_id=self.request_id, error=error_message, timestamp=now)
        return RequestWithEvents(updated, (event,))

    def _invalid_state(
        self, operation: str, expected_state: str, message: Optional[str] = None
    ) -> InvalidRequestStateError:
        return InvalidRequestStateError(
            message or f"Cannot {operation.replace('_', ' ')} to request in {self.state.value} state",
            current_state=self.state.value,
            operation=operation,
            expected_state=expected_state,
            request_id=self.request_id.value,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def is_completed(self) -> bool:
        return self.state is RequestState.COMPLETED

    def is_failed(self) -> bool:
        return self.state is RequestState.FAILED

    def can_accept_chunks(self) -> bool:
        return self.state in (RequestState.PENDING, RequestState.STREAMING)

    def get_chunks(self) -> tuple[StreamChunk, ...]:
        return self.chunks

    def get_full_response(self) -> str:
        """The assembled answer: Delta contents joined in arrival order."""
        return "".join(
            chunk.content for chunk in self.chunks if isinstance(chunk, DeltaChunk)
        )
