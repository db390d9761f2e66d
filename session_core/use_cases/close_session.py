"""
CloseSessionUseCase - WBS 4.7

Closes an Active session. Requests already issued are left untouched.
"""

from datetime import datetime
from typing import Optional

from session_core.aggregates.session import SessionWithEvents
from session_core.core.exceptions import SessionNotActiveError, SessionNotFoundError
from session_core.models.identifiers import SessionId
from session_core.observability.logging import get_logger
from session_core.use_cases.base import UseCase, map_use_case_errors

logger = get_logger(__name__)


class CloseSessionUseCase(UseCase):
    name = "CloseSessionUseCase"

    @map_use_case_errors(name, (SessionNotFoundError, SessionNotActiveError))
    async def execute(
        self,
        session_id: SessionId,
        reason: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> SessionWithEvents:
        """
        Returns:
            The closed session and its SessionClosed event.

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionNotActiveError: If the session is already Closed.
            UseCaseExecutionError: For any other failure.
        """
        async with self._transaction() as uow:
            session = await uow.sessions.find_by_id(session_id)
            if session is None:
                raise SessionNotFoundError(session_id.value)
            if not session.is_active():
                raise SessionNotActiveError(
                    session_id.value,
                    session.state.value,
                    message=f"Session is {session.state.value}, cannot be closed again",
                )

            result = session.close(reason, timestamp)
            await uow.sessions.save(result.session)

        logger.info(
            "session_closed",
            session_id=session_id.value,
            reason=reason,
            request_count=result.session.get_request_count(),
        )
        return result
