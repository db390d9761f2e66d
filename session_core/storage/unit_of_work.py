"""
Redis Unit of Work - WBS 3.3

Binds a RedisSessionRepository and a RedisRequestRepository to one MULTI/EXEC
pipeline. Reads go straight to Redis; saves and deletes are queued and only
reach Redis when commit() executes the pipeline, so a use case that touches a
session and a request persists both or neither.

Aggregates loaded through find_by_id are WATCHed on the pipeline's
connection. If another writer changes one of them before commit, EXEC is
aborted and commit() raises TransactionError; nothing from this unit of work
is stored. This is how the Redis store serializes operations per aggregate id.

Usage:
    >>> provider = RedisUnitOfWorkProvider(redis_client)
    >>> uow = await provider.begin()
    >>> await uow.sessions.save(session)
    >>> await uow.requests.save(request)
    >>> await uow.commit()

Pattern: Unit of Work (Percival & Gregory ch. 6)
"""

from typing import Literal, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import WatchError

from session_core.core.config import Settings, get_settings
from session_core.core.exceptions import TransactionError
from session_core.observability.logging import get_logger
from session_core.storage.base import UnitOfWork, UnitOfWorkProvider
from session_core.storage.redis_store import RedisRequestRepository, RedisSessionRepository

logger = get_logger(__name__)


class RedisUnitOfWork(UnitOfWork):
    """
    A single Redis transaction.

    commit() and rollback() may each be reached once; after either one the
    unit of work is finished and a further call raises TransactionError.
    """

    def __init__(self, redis_client: Redis, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._pipeline = redis_client.pipeline(transaction=True)
        self._finished: Optional[str] = None

        self.sessions = RedisSessionRepository(
            redis_client,
            pipeline=self._pipeline,
            key_prefix=settings.session_key_prefix,
        )
        self.requests = RedisRequestRepository(
            redis_client,
            pipeline=self._pipeline,
            key_prefix=settings.request_key_prefix,
            index_prefix=settings.session_index_prefix,
        )

    @property
    def pending_writes(self) -> int:
        """Number of Redis commands queued and not yet committed."""
        return len(self._pipeline.command_stack)

    @property
    def is_finished(self) -> bool:
        return self._finished is not None

    def _ensure_open(self, operation: Literal["commit", "rollback"]) -> None:
        if self._finished is not None:
            raise TransactionError(
                f"Cannot {operation}: unit of work already finished with {self._finished}",
                operation=operation,
            )

    async def commit(self) -> None:
        self._ensure_open("commit")
        self._finished = "commit"
        queued = self.pending_writes
        try:
            await self._pipeline.execute()
        except WatchError as e:
            raise TransactionError(
                f"Commit aborted: a record loaded in this unit of work was changed "
                f"concurrently ({e})",
                operation="commit",
                cause=e,
            ) from e
        except Exception as e:
            raise TransactionError(
                f"Commit failed: {e}", operation="commit", cause=e
            ) from e
        finally:
            await self._pipeline.reset()
        logger.debug("redis_transaction_committed", commands=queued)

    async def rollback(self) -> None:
        self._ensure_open("rollback")
        self._finished = "rollback"
        discarded = self.pending_writes
        try:
            await self._pipeline.reset()
        except Exception as e:
            raise TransactionError(
                f"Rollback failed: {e}", operation="rollback", cause=e
            ) from e
        logger.debug("redis_transaction_rolled_back", commands=discarded)


class RedisUnitOfWorkProvider(UnitOfWorkProvider):
    """
    Hands out RedisUnitOfWork instances over a shared client.

    Args:
        redis_client: Async Redis client (connection pool is shared).
        settings: Key layout; defaults to get_settings().
    """

    def __init__(self, redis_client: Redis, settings: Optional[Settings] = None) -> None:
        self._redis: Redis = redis_client
        self._settings: Settings = settings or get_settings()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RedisUnitOfWorkProvider":
        """Build a provider with its own connection pool from settings."""
        settings = settings or get_settings()
        client = redis.from_url(
            settings.redis_url,
            max_connections=settings.redis_pool_size,
            decode_responses=True,
        )
        return cls(client, settings)

    async def begin(self) -> RedisUnitOfWork:
        try:
            return RedisUnitOfWork(self._redis, self._settings)
        except Exception as e:
            raise TransactionError(
                f"Failed to begin transaction: {e}", operation="begin", cause=e
            ) from e

    async def close(self) -> None:
        """Release the Redis connection pool."""
        await self._redis.aclose()
