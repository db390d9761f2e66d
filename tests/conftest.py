"""
Pytest configuration for the session core test suite.

Reference Documents:
- GUIDELINES pp. 155-157: "high and low gear" testing philosophy
- GUIDELINES pp. 157: FakeRepository pattern using duck typing

This configuration sets up:
- Test markers for categorization
- fakeredis client for the Redis repositories
- log_stream: structlog JSON output captured in memory
- In-memory FakeRepository / FakeUnitOfWork doubles that record every
  save, commit and rollback so transactional behaviour can be asserted
- Common domain fixtures (ids, messages, fixed timestamps)
"""

import io
from datetime import datetime, timezone
from typing import Optional

import fakeredis.aioredis
import pytest
import pytest_asyncio
import structlog

from session_core.aggregates.request import Request
from session_core.aggregates.session import Session
from session_core.models.identifiers import RequestId, SessionId
from session_core.models.messages import ClientMessage, LLMProviderHint
from session_core.observability.logging import (
    clear_correlation_id,
    configure_logging,
    reset_logging,
)
from session_core.storage.base import (
    RequestRepository,
    SessionRepository,
    UnitOfWork,
    UnitOfWorkProvider,
)


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Tests against fakeredis-backed storage")


# =============================================================================
# FakeRepository pattern (GUIDELINES pp. 157)
# =============================================================================


class FakeSessionRepository(SessionRepository):
    """In-memory session store that records every save."""

    def __init__(self, sessions: Optional[dict[SessionId, Session]] = None) -> None:
        self.sessions: dict[SessionId, Session] = dict(sessions or {})
        self.saved: list[Session] = []
        self.fail_on_save: Optional[Exception] = None

    async def save(self, session: Session) -> None:
        if self.fail_on_save is not None:
            raise self.fail_on_save
        self.saved.append(session)
        self.sessions[session.session_id] = session

    async def find_by_id(self, session_id: SessionId) -> Optional[Session]:
        return self.sessions.get(session_id)

    async def delete(self, session_id: SessionId) -> None:
        self.sessions.pop(session_id, None)

    async def exists(self, session_id: SessionId) -> bool:
        return session_id in self.sessions


class FakeRequestRepository(RequestRepository):
    """In-memory request store that records every save."""

    def __init__(self, requests: Optional[dict[RequestId, Request]] = None) -> None:
        self.requests: dict[RequestId, Request] = dict(requests or {})
        self.saved: list[Request] = []
        self.fail_on_save: Optional[Exception] = None

    async def save(self, request: Request) -> None:
        if self.fail_on_save is not None:
            raise self.fail_on_save
        self.saved.append(request)
        self.requests[request.request_id] = request

    async def find_by_id(self, request_id: RequestId) -> Optional[Request]:
        return self.requests.get(request_id)

    async def find_by_session_id(self, session_id: SessionId) -> list[Request]:
        found = [r for r in self.requests.values() if r.session_id == session_id]
        return sorted(found, key=lambda r: r.received_at)

    async def delete(self, request_id: RequestId) -> None:
        self.requests.pop(request_id, None)

    async def exists(self, request_id: RequestId) -> bool:
        return request_id in self.requests

    async def count_by_session_id(self, session_id: SessionId) -> int:
        return len(await self.find_by_session_id(session_id))


class FakeUnitOfWork(UnitOfWork):
    """Unit of work over the fake repositories, counting commits and rollbacks."""

    def __init__(self, sessions: FakeSessionRepository, requests: FakeRequestRepository) -> None:
        self.sessions = sessions
        self.requests = requests
        self.commits = 0
        self.rollbacks = 0
        self.fail_on_commit: Optional[Exception] = None
        self.fail_on_rollback: Optional[Exception] = None

    async def commit(self) -> None:
        self.commits += 1
        if self.fail_on_commit is not None:
            raise self.fail_on_commit

    async def rollback(self) -> None:
        self.rollbacks += 1
        if self.fail_on_rollback is not None:
            raise self.fail_on_rollback


class FakeUnitOfWorkProvider(UnitOfWorkProvider):
    """Hands out one shared FakeUnitOfWork so tests can inspect it afterwards."""

    def __init__(self) -> None:
        self.session_repository = FakeSessionRepository()
        self.request_repository = FakeRequestRepository()
        self.uow = FakeUnitOfWork(self.session_repository, self.request_repository)
        self.begin_count = 0
        self.fail_on_begin: Optional[Exception] = None

    async def begin(self) -> FakeUnitOfWork:
        if self.fail_on_begin is not None:
            raise self.fail_on_begin
        self.begin_count += 1
        return self.uow


# =============================================================================
# Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def fake_redis():
    """
    Provide a fake Redis client for testing.

    Returns bytes (decode_responses=False) so decoding paths are exercised.
    """
    redis = fakeredis.aioredis.FakeRedis()
    yield redis
    await redis.aclose()


@pytest.fixture
def log_stream():
    """
    Route structlog JSON output to an in-memory stream for one test.

    The previous structlog configuration is restored afterwards so later
    tests see the process defaults again.
    """
    previous = structlog.get_config()
    stream = io.StringIO()
    configure_logging(level="DEBUG", stream=stream, force=True)
    yield stream
    structlog.configure(**previous)
    reset_logging()
    clear_correlation_id()


@pytest.fixture
def uow_provider() -> FakeUnitOfWorkProvider:
    """Provide a fresh FakeUnitOfWorkProvider."""
    return FakeUnitOfWorkProvider()


@pytest.fixture
def fixed_time() -> datetime:
    """A fixed UTC timestamp for deterministic assertions."""
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_id() -> SessionId:
    return SessionId("session-test-001")


@pytest.fixture
def request_id() -> RequestId:
    return RequestId("request-test-001")


@pytest.fixture
def client_message() -> ClientMessage:
    return ClientMessage(
        prompt="Explain the CAP theorem",
        provider_hint=LLMProviderHint.CLAUDE,
        max_tokens=512,
    )


@pytest.fixture
def active_session(session_id, fixed_time) -> Session:
    session, _ = Session.establish(session_id, fixed_time)
    return session


@pytest.fixture
def closed_session(active_session, fixed_time) -> Session:
    session, _ = active_session.close("client disconnected", fixed_time)
    return session


@pytest.fixture
def pending_request(request_id, session_id, client_message, fixed_time) -> Request:
    request, _ = Request.create(request_id, session_id, client_message, fixed_time)
    return request
