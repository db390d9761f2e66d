"""
Storage Package - WBS 3

Repository and unit-of-work contracts plus their Redis implementation.
"""

from session_core.storage.base import (
    RequestRepository,
    SessionRepository,
    UnitOfWork,
    UnitOfWorkProvider,
)
from session_core.storage.redis_store import (
    RedisRequestRepository,
    RedisSessionRepository,
    session_from_record,
    session_to_record,
)
from session_core.storage.unit_of_work import RedisUnitOfWork, RedisUnitOfWorkProvider

__all__ = [
    "SessionRepository",
    "RequestRepository",
    "UnitOfWork",
    "UnitOfWorkProvider",
    "RedisSessionRepository",
    "RedisRequestRepository",
    "session_to_record",
    "session_from_record",
    "RedisUnitOfWork",
    "RedisUnitOfWorkProvider",
]
