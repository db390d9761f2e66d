"""
Session aggregate - WBS 2.3.1

Owns the lifecycle of one client session and the ordered identifiers of the
requests issued within it. Request objects themselves are separate aggregates;
a session only keeps the back-references.

State machine:
    Active --close--> Closed          (one-way, Closed is terminal)
    Active --add_request--> Active    (append to request_ids)

Every transition returns a new immutable snapshot plus the events it emitted.

Pattern: Aggregate root (consistency boundary)
Pattern: Copy-with-changes on a frozen pydantic model
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from session_core.core.exceptions import InvalidSessionStateError
from session_core.models.events import (
    DomainEvent,
    SessionClosed,
    SessionEstablished,
    utc_now,
)
from session_core.models.identifiers import RequestId, SessionId


class SessionState(str, Enum):
    """Lifecycle states of a session."""

    ACTIVE = "Active"
    CLOSED = "Closed"


class SessionWithEvents(NamedTuple):
    """Result of a session transition: the new snapshot and emitted events."""

    session: "Session"
    events: tuple[DomainEvent, ...]


class Session(BaseModel):
    """
    A client session.

    Attributes:
        session_id: Identifier of the session.
        state: Active or Closed.
        request_ids: Requests issued in this session, in arrival order.
            Duplicates are kept as given.
        established_at: When the session was established.
        closed_at: When the session was closed (set iff Closed).
        close_reason: Optional reason given on close (only when Closed).

    Example:
        >>> session, events = Session.establish(SessionId("session-1"))
        >>> session, _ = session.add_request(RequestId("request-1"))
        >>> session.get_request_count()
        1
    """

    model_config = ConfigDict(frozen=True)

    session_id: SessionId
    state: SessionState = SessionState.ACTIVE
    request_ids: tuple[RequestId, ...] = Field(default_factory=tuple)
    established_at: datetime
    closed_at: Optional[datetime] = None
    close_reason: Optional[str] = None

    @model_validator(mode="after")
    def check_closure_fields(self) -> "Session":
        if self.state is SessionState.CLOSED and self.closed_at is None:
            raise ValueError("closed session requires closed_at")
        if self.state is SessionState.ACTIVE and (
            self.closed_at is not None or self.close_reason is not None
        ):
            raise ValueError("active session cannot have closed_at or close_reason")
        return self

    # =========================================================================
    # Transitions
    # =========================================================================

    @classmethod
    def establish(
        cls, session_id: SessionId, timestamp: Optional[datetime] = None
    ) -> SessionWithEvents:
        """
        Start a new Active session with no requests.

        Never fails. ``timestamp`` defaults to the current UTC time and is
        shared by the session and its SessionEstablished event.
        """
        now = timestamp or utc_now()
        session = cls(session_id=session_id, established_at=now)
        event = SessionEstablished(session_id=session_id, timestamp=now)
        return SessionWithEvents(session, (event,))

    def add_request(self, request_id: RequestId) -> SessionWithEvents:
        """
        Append a request identifier.

        No deduplication is done here; callers supply fresh identifiers.
        No event is emitted since RequestReceived already records the fact.

        Raises:
            InvalidSessionStateError: If the session is not Active.
        """
        if self.state is not SessionState.ACTIVE:
            raise InvalidSessionStateError(
                f"Cannot add request to session in {self.state.value} state. "
                "Session must be Active.",
                current_state=self.state.value,
                operation="add_request",
            )

        updated = self.model_copy(
            update={"request_ids": (*self.request_ids, request_id)}
        )
        return SessionWithEvents(updated, ())

    def close(
        self, reason: Optional[str] = None, timestamp: Optional[datetime] = None
    ) -> SessionWithEvents:
        """
        Close the session. There is no way back to Active.

        Raises:
            InvalidSessionStateError: If the session is already Closed.
        """
        if self.state is not SessionState.ACTIVE:
            raise InvalidSessionStateError(
                f"Cannot close session in {self.state.value} state. "
                "Session is already closed.",
                current_state=self.state.value,
                operation="close",
            )

        now = timestamp or utc_now()
        updated = self.model_copy(
            update={
                "state": SessionState.CLOSED,
                "closed_at": now,
                "close_reason": reason,
            }
        )
        event = SessionClosed(session_id=self.session_id, reason=reason, timestamp=now)
        return SessionWithEvents(updated, (event,))

    # =========================================================================
    # Queries
    # =========================================================================

    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def get_request_ids(self) -> tuple[RequestId, ...]:
        return self.request_ids

    def get_request_count(self) -> int:
        return len(self.request_ids)

    def has_request(self, request_id: RequestId) -> bool:
        return request_id in self.request_ids

    def get_duration(self) -> Optional[timedelta]:
        """Time between establish and close; None while Active."""
        if self.closed_at is None:
            return None
        return self.closed_at - self.established_at
