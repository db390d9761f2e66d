"""
Redis repositories - WBS 3.2

Redis-backed implementations of SessionRepository and RequestRepository.

Key layout (prefixes come from Settings):
- ``sessions:<session_id>``: hash with state, established_at, closed_at,
  close_reason and request_ids (a JSON array of request id strings).
  Session records hold coordination metadata only, never prompts or chunks.
- ``requests:<request_id>``: the Request serialized as JSON.
- ``session_requests:<session_id>``: sorted set of request ids scored by
  received_at (epoch milliseconds), used for per-session listing and counts.

Both repositories read straight from Redis. Writes go to the pipeline they
were given (so a unit of work can commit them in one MULTI/EXEC), or run in
a short transaction of their own when used standalone.

Inside a unit of work, find_by_id WATCHes the aggregate key before reading
it. Two units of work that load the same session or request therefore cannot
both commit: the later EXEC aborts and neither of its writes lands, so
concurrent operations on one aggregate id never overwrite each other.

Pattern: Repository pattern (Percival & Gregory pp. 86)
Pattern: Dependency injection for Redis client (Sinha pp. 89-90)
"""

import json
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.asyncio.client import Pipeline

from session_core.aggregates.request import Request
from session_core.aggregates.session import Session, SessionState
from session_core.core.config import get_settings
from session_core.core.exceptions import RepositoryError
from session_core.models.identifiers import RequestId, SessionId
from session_core.storage.base import RequestRepository, SessionRepository


def _to_str(value: Any) -> str:
    """Redis returns bytes unless the client decodes responses."""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


# =============================================================================
# WBS 3.2.1: Session record mapping
# =============================================================================


def session_to_record(session: Session) -> dict[str, str]:
    """
    Flatten a Session into the hash stored in Redis.

    Optional fields are left out instead of stored empty.
    """
    record = {
        "session_id": session.session_id.value,
        "state": session.state.value,
        "established_at": session.established_at.isoformat(),
        "request_ids": json.dumps([request_id.value for request_id in session.request_ids]),
    }
    if session.closed_at is not None:
        record["closed_at"] = session.closed_at.isoformat()
    if session.close_reason is not None:
        record["close_reason"] = session.close_reason
    return record


def session_from_record(record: Mapping[Any, Any]) -> Session:
    """
    Rebuild a Session from its Redis hash.

    Raises:
        RepositoryError: If the record is malformed (operation="deserialize").
    """
    fields = {_to_str(key): _to_str(value) for key, value in record.items()}

    state = fields.get("state")
    if state not in {member.value for member in SessionState}:
        raise RepositoryError(
            f"Invalid state in storage: {state!r}. Expected 'Active' or 'Closed'.",
            operation="deserialize",
        )

    try:
        request_ids = json.loads(fields.get("request_ids", "[]"))
        if not isinstance(request_ids, list):
            raise ValueError("request_ids is not an array")
        closed_at = fields.get("closed_at")
        return Session(
            session_id=SessionId(fields["session_id"]),
            state=SessionState(state),
            request_ids=tuple(RequestId(request_id) for request_id in request_ids),
            established_at=datetime.fromisoformat(fields["established_at"]),
            closed_at=datetime.fromisoformat(closed_at) if closed_at else None,
            close_reason=fields.get("close_reason"),
        )
    except (KeyError, ValueError, TypeError) as e:
        # pydantic.ValidationError is a ValueError
        raise RepositoryError(
            f"Failed to parse session record: {e}",
            operation="deserialize",
            cause=e,
        ) from e


# =============================================================================
# WBS 3.2.2: Shared write handling
# =============================================================================


class _RedisRepository:
    """Common plumbing: key building and pipeline-or-direct writes."""

    def __init__(self, redis_client: Redis, pipeline: Optional[Pipeline] = None) -> None:
        self._redis: Redis = redis_client
        self._pipeline: Optional[Pipeline] = pipeline

    async def _watch(self, key: str) -> None:
        """
        WATCH a key before reading it inside a unit of work.

        If another client changes the key before commit, EXEC aborts and the
        unit of work persists nothing. Keys read after the first queued write
        cannot be watched any more (Redis rejects WATCH inside MULTI).
        """
        pipe = self._pipeline
        if pipe is None or pipe.explicit_transaction or pipe.command_stack:
            return
        await pipe.watch(key)

    async def _write(self, queue_commands: Callable[[Pipeline], None]) -> None:
        """
        Queue commands on the unit-of-work pipeline, or execute them at once
        in a transaction of their own when there is no pipeline.
        """
        if self._pipeline is not None:
            # A watching pipeline executes immediately until MULTI is issued
            if self._pipeline.watching and not self._pipeline.explicit_transaction:
                self._pipeline.multi()
            queue_commands(self._pipeline)
            return

        async with self._redis.pipeline(transaction=True) as pipe:
            queue_commands(pipe)
            await pipe.execute()


# =============================================================================
# WBS 3.2.3: RedisSessionRepository
# =============================================================================


class RedisSessionRepository(_RedisRepository, SessionRepository):
    """
    Session storage in Redis hashes.

    Example:
        >>> import redis.asyncio as redis
        >>> repository = RedisSessionRepository(redis.from_url("redis://localhost:6379"))
        >>> await repository.save(session)
        >>> await repository.find_by_id(session.session_id)
    """

    def __init__(
        self,
        redis_client: Redis,
        pipeline: Optional[Pipeline] = None,
        key_prefix: Optional[str] = None,
    ) -> None:
        super().__init__(redis_client, pipeline)
        self._key_prefix: str = key_prefix or get_settings().session_key_prefix

    def _make_key(self, session_id: SessionId) -> str:
        return f"{self._key_prefix}{session_id.value}"

    async def save(self, session: Session) -> None:
        key = self._make_key(session.session_id)
        record = session_to_record(session)

        def queue(pipe: Pipeline) -> None:
            # Replace the whole hash so fields cleared on the aggregate disappear
            pipe.delete(key)
            pipe.hset(key, mapping=record)

        try:
            await self._write(queue)
        except Exception as e:
            raise RepositoryError(
                f"Failed to save session {session.session_id}: {e}",
                operation="save",
                cause=e,
            ) from e

    async def find_by_id(self, session_id: SessionId) -> Optional[Session]:
        key = self._make_key(session_id)
        try:
            await self._watch(key)
            record = await self._redis.hgetall(key)
        except Exception as e:
            raise RepositoryError(
                f"Failed to find session {session_id}: {e}",
                operation="find_by_id",
                cause=e,
            ) from e

        if not record:
            return None
        return session_from_record(record)

    async def delete(self, session_id: SessionId) -> None:
        key = self._make_key(session_id)
        try:
            await self._write(lambda pipe: pipe.delete(key))
        except Exception as e:
            raise RepositoryError(
                f"Failed to delete session {session_id}: {e}",
                operation="delete",
                cause=e,
            ) from e

    async def exists(self, session_id: SessionId) -> bool:
        try:
            return await self._redis.exists(self._make_key(session_id)) > 0
        except Exception as e:
            raise RepositoryError(
                f"Failed to check session existence {session_id}: {e}",
                operation="exists",
                cause=e,
            ) from e


# =============================================================================
# WBS 3.2.4: RedisRequestRepository
# =============================================================================


class RedisRequestRepository(_RedisRepository, RequestRepository):
    """Request storage: one JSON document per request plus a per-session index."""

    def __init__(
        self,
        redis_client: Redis,
        pipeline: Optional[Pipeline] = None,
        key_prefix: Optional[str] = None,
        index_prefix: Optional[str] = None,
    ) -> None:
        super().__init__(redis_client, pipeline)
        settings = get_settings()
        self._key_prefix: str = key_prefix or settings.request_key_prefix
        self._index_prefix: str = index_prefix or settings.session_index_prefix

    def _make_key(self, request_id: RequestId) -> str:
        return f"{self._key_prefix}{request_id.value}"

    def _make_index_key(self, session_id: SessionId) -> str:
        return f"{self._index_prefix}{session_id.value}"

    @staticmethod
    def _parse(raw: Any) -> Request:
        try:
            return Request.model_validate_json(raw)
        except ValidationError as e:
            raise RepositoryError(
                f"Failed to parse request record: {e}",
                operation="deserialize",
                cause=e,
            ) from e

    async def save(self, request: Request) -> None:
        key = self._make_key(request.request_id)
        index_key = self._make_index_key(request.session_id)
        score = request.received_at.timestamp() * 1000
        payload = request.model_dump_json()

        def queue(pipe: Pipeline) -> None:
            pipe.set(key, payload)
            pipe.zadd(index_key, {request.request_id.value: score})

        try:
            await self._write(queue)
        except Exception as e:
            raise RepositoryError(
                f"Failed to save request {request.request_id}: {e}",
                operation="save",
                cause=e,
            ) from e

    async def find_by_id(self, request_id: RequestId) -> Optional[Request]:
        key = self._make_key(request_id)
        try:
            await self._watch(key)
            raw = await self._redis.get(key)
        except Exception as e:
            raise RepositoryError(
                f"Failed to find request {request_id}: {e}",
                operation="find_by_id",
                cause=e,
            ) from e

        if raw is None:
            return None
        return self._parse(raw)

    async def find_by_session_id(self, session_id: SessionId) -> list[Request]:
        try:
            members = await self._redis.zrange(self._make_index_key(session_id), 0, -1)
            if not members:
                return []
            keys = [f"{self._key_prefix}{_to_str(member)}" for member in members]
            raws = await self._redis.mget(keys)
        except Exception as e:
            raise RepositoryError(
                f"Failed to list requests for session {session_id}: {e}",
                operation="find_by_session_id",
                cause=e,
            ) from e

        return [self._parse(raw) for raw in raws if raw is not None]

    async def delete(self, request_id: RequestId) -> None:
        # The index entry lives under the owning session, so load it first
        request = await self.find_by_id(request_id)
        if request is None:
            return

        key = self._make_key(request_id)
        index_key = self._make_index_key(request.session_id)

        def queue(pipe: Pipeline) -> None:
            pipe.delete(key)
            pipe.zrem(index_key, request_id.value)

        try:
            await self._write(queue)
        except Exception as e:
            raise RepositoryError(
                f"Failed to delete request {request_id}: {e}",
                operation="delete",
                cause=e,
            ) from e

    async def exists(self, request_id: RequestId) -> bool:
        try:
            return await self._redis.exists(self._make_key(request_id)) > 0
        except Exception as e:
            raise RepositoryError(
                f"Failed to check request existence {request_id}: {e}",
                operation="exists",
                cause=e,
            ) from e

    async def count_by_session_id(self, session_id: SessionId) -> int:
        try:
            return await self._redis.zcard(self._make_index_key(session_id))
        except Exception as e:
            raise RepositoryError(
                f"Failed to count requests for session {session_id}: {e}",
                operation="count_by_session_id",
                cause=e,
            ) from e
