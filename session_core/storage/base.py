"""
Storage contracts - WBS 3.1

Abstract repositories and unit of work consumed by the use cases. A storage
adapter implements these; the use cases never see the engine behind them.

Contract:
- Repository methods raise RepositoryError on I/O or (de)serialization
  failures and return None / False / [] for absent data.
- ``UnitOfWorkProvider.begin()`` returns a UnitOfWork whose repositories
  share one transaction. ``commit()`` makes every save/delete issued through
  those repositories durable at once; ``rollback()`` discards them. Each is
  called at most once per begin().

Pattern: Repository pattern (Percival & Gregory pp. 86)
Pattern: Unit of Work (Percival & Gregory ch. 6)
"""

from abc import ABC, abstractmethod
from typing import Optional

from session_core.aggregates.request import Request
from session_core.aggregates.session import Session
from session_core.models.identifiers import RequestId, SessionId


class SessionRepository(ABC):
    """Persistence contract for Session aggregates."""

    @abstractmethod
    async def save(self, session: Session) -> None:
        """Insert or replace a session."""

    @abstractmethod
    async def find_by_id(self, session_id: SessionId) -> Optional[Session]:
        """Load a session, or None if it does not exist."""

    @abstractmethod
    async def delete(self, session_id: SessionId) -> None:
        """Remove a session. Deleting a missing session is not an error."""

    @abstractmethod
    async def exists(self, session_id: SessionId) -> bool:
        """Check whether a session is stored."""


class RequestRepository(ABC):
    """Persistence contract for Request aggregates."""

    @abstractmethod
    async def save(self, request: Request) -> None:
        """Insert or replace a request."""

    @abstractmethod
    async def find_by_id(self, request_id: RequestId) -> Optional[Request]:
        """Load a request, or None if it does not exist."""

    @abstractmethod
    async def find_by_session_id(self, session_id: SessionId) -> list[Request]:
        """All requests of a session, oldest first."""

    @abstractmethod
    async def delete(self, request_id: RequestId) -> None:
        """Remove a request. Deleting a missing request is not an error."""

    @abstractmethod
    async def exists(self, request_id: RequestId) -> bool:
        """Check whether a request is stored."""

    @abstractmethod
    async def count_by_session_id(self, session_id: SessionId) -> int:
        """Number of requests stored for a session."""


class UnitOfWork(ABC):
    """
    One transaction spanning a session repository and a request repository.

    Attributes:
        sessions: Session repository bound to this transaction.
        requests: Request repository bound to this transaction.
    """

    sessions: SessionRepository
    requests: RequestRepository

    @abstractmethod
    async def commit(self) -> None:
        """Persist every write issued in this unit of work atomically."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard every write issued in this unit of work."""


class UnitOfWorkProvider(ABC):
    """Factory for units of work, injected into every use case."""

    @abstractmethod
    async def begin(self) -> UnitOfWork:
        """
        Open a new unit of work.

        Raises:
            TransactionError: If a transaction cannot be started.
        """
