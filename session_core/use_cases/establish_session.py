"""
EstablishSessionUseCase - WBS 4.2

Creates a new Active session and persists it.
"""

from datetime import datetime
from typing import Optional

from session_core.aggregates.session import Session, SessionWithEvents
from session_core.models.identifiers import SessionId
from session_core.observability.logging import get_logger
from session_core.use_cases.base import UseCase, map_use_case_errors

logger = get_logger(__name__)


class EstablishSessionUseCase(UseCase):
    """
    Establish a session under the given identifier.

    Storing a session under an id that already exists replaces the stored
    record. Every failure surfaces as UseCaseExecutionError.
    """

    name = "EstablishSessionUseCase"

    @map_use_case_errors(name)
    async def execute(
        self, session_id: SessionId, timestamp: Optional[datetime] = None
    ) -> SessionWithEvents:
        """
        Args:
            session_id: Identifier for the new session.
            timestamp: Establishment time; defaults to now.

        Returns:
            The new session and its SessionEstablished event.

        Raises:
            UseCaseExecutionError: If the session cannot be persisted.
        """
        async with self._transaction() as uow:
            result = Session.establish(session_id, timestamp)
            await uow.sessions.save(result.session)

        logger.info("session_established", session_id=session_id.value)
        return result
