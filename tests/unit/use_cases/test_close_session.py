"""
Tests for CloseSessionUseCase - WBS 4.7
"""

import pytest

from session_core.aggregates.session import SessionWithEvents
from session_core.core.exceptions import SessionNotActiveError, SessionNotFoundError
from session_core.models.events import SessionClosed
from session_core.models.identifiers import SessionId
from session_core.use_cases.close_session import CloseSessionUseCase


class TestCloseSessionUseCase:
    @pytest.mark.asyncio
    async def test_closes_active_session(self, uow_provider, active_session, fixed_time):
        uow_provider.session_repository.sessions[active_session.session_id] = active_session

        session, events = await CloseSessionUseCase(uow_provider).execute(
            active_session.session_id, "client disconnected", fixed_time
        )

        assert session.is_closed()
        assert session.close_reason == "client disconnected"
        assert uow_provider.session_repository.saved == [session]
        assert events == (
            SessionClosed(
                session_id=active_session.session_id,
                reason="client disconnected",
                timestamp=fixed_time,
            ),
        )

    @pytest.mark.asyncio
    async def test_returns_session_with_events(self, uow_provider, active_session):
        uow_provider.session_repository.sessions[active_session.session_id] = active_session

        result = await CloseSessionUseCase(uow_provider).execute(active_session.session_id)

        assert isinstance(result, SessionWithEvents)
        assert result.session.is_closed()
        assert isinstance(result.events[0], SessionClosed)

    @pytest.mark.asyncio
    async def test_closing_closed_session(self, uow_provider, closed_session):
        uow_provider.session_repository.sessions[closed_session.session_id] = closed_session

        with pytest.raises(SessionNotActiveError) as exc_info:
            await CloseSessionUseCase(uow_provider).execute(closed_session.session_id)

        assert exc_info.value.message == "Session is Closed, cannot be closed again"
        assert uow_provider.session_repository.saved == []

    @pytest.mark.asyncio
    async def test_missing_session(self, uow_provider):
        with pytest.raises(SessionNotFoundError):
            await CloseSessionUseCase(uow_provider).execute(SessionId("session-missing"))
