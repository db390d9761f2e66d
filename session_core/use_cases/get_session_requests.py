"""
GetSessionRequestsUseCase - WBS 4.8

Read-only listing of a session's requests, oldest first.
"""

from session_core.aggregates.request import Request
from session_core.core.exceptions import SessionNotFoundError
from session_core.models.identifiers import SessionId
from session_core.use_cases.base import UseCase, map_use_case_errors


class GetSessionRequestsUseCase(UseCase):
    name = "GetSessionRequestsUseCase"

    @map_use_case_errors(name, (SessionNotFoundError,))
    async def execute(self, session_id: SessionId) -> list[Request]:
        """
        Raises:
            SessionNotFoundError: If the session does not exist.
            UseCaseExecutionError: For any other failure.
        """
        async with self._transaction() as uow:
            if not await uow.sessions.exists(session_id):
                raise SessionNotFoundError(session_id.value)
            return await uow.requests.find_by_session_id(session_id)
