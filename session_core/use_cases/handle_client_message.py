"""
HandleClientMessageUseCase - WBS 4.3

Opens a new request in an Active session. This is the one use case that
writes two aggregates: the new Request and the Session it is appended to are
saved in the same unit of work, so either both are stored or neither is.
"""

from datetime import datetime
from typing import NamedTuple, Optional

from session_core.aggregates.request import Request
from session_core.aggregates.session import Session
from session_core.core.exceptions import SessionNotActiveError, SessionNotFoundError
from session_core.models.events import DomainEvent
from session_core.models.identifiers import RequestId, SessionId
from session_core.models.messages import ClientMessage
from session_core.observability.logging import get_logger
from session_core.use_cases.base import UseCase, map_use_case_errors

logger = get_logger(__name__)


class ClientMessageResult(NamedTuple):
    """Outcome of HandleClientMessageUseCase."""

    session: Session
    request: Request
    events: tuple[DomainEvent, ...]


class HandleClientMessageUseCase(UseCase):
    """Register a client message as a new Pending request."""

    name = "HandleClientMessageUseCase"

    @map_use_case_errors(name, (SessionNotFoundError, SessionNotActiveError))
    async def execute(
        self,
        session_id: SessionId,
        message: ClientMessage,
        timestamp: Optional[datetime] = None,
    ) -> ClientMessageResult:
        """
        Args:
            session_id: Session the message was sent in.
            message: The validated client message.
            timestamp: Receive time; defaults to now.

        Returns:
            The updated session, the new request, and the emitted events
            (request events first, then session events).

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionNotActiveError: If the session is Closed.
            UseCaseExecutionError: For any other failure.
        """
        async with self._transaction() as uow:
            session = await uow.sessions.find_by_id(session_id)
            if session is None:
                raise SessionNotFoundError(session_id.value)
            if not session.is_active():
                raise SessionNotActiveError(session_id.value, session.state.value)

            request, request_events = Request.create(
                RequestId.generate(), session_id, message, timestamp
            )
            updated_session, session_events = session.add_request(request.request_id)

            await uow.sessions.save(updated_session)
            await uow.requests.save(request)

        logger.info(
            "client_message_handled",
            session_id=session_id.value,
            request_id=request.request_id.value,
            provider_hint=message.provider_hint.value if message.provider_hint else None,
        )
        return ClientMessageResult(
            session=updated_session,
            request=request,
            events=(*request_events, *session_events),
        )
