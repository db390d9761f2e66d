"""
Use case plumbing - WBS 4.1

Two helpers shared by every use case:

- transaction(): begins a unit of work, commits when the block succeeds and
  rolls back when it raises. Commit and rollback failures are logged as
  warnings and swallowed; the outcome decided by the business logic stands.
- map_use_case_errors(): passes a use case's known errors through unchanged
  and wraps everything else in UseCaseExecutionError with the cause chained.

Invocation flow:
    Begin -> Load -> Validate -> Transition -> Persist -> Commit   -> Return
                     (any failure after Begin)           -> Rollback -> Raise
"""

import functools
from uuid import uuid4
from abc import ABC
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, ClassVar, TypeVar

from session_core.core.exceptions import UseCaseExecutionError
from session_core.observability.logging import (
    correlation_id_context,
    get_correlation_id,
    get_logger,
)
from session_core.storage.base import UnitOfWork, UnitOfWorkProvider

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


# =============================================================================
# WBS 4.1.1: Transaction scope
# =============================================================================


async def _release(action: Callable[[], Awaitable[None]], outcome: str, use_case: str) -> None:
    try:
        await action()
    except Exception as e:
        logger.warning(
            f"transaction_{outcome}_failed",
            use_case=use_case,
            error=str(e),
            error_type=type(e).__name__,
        )
        return
    logger.debug(f"transaction_{outcome}", use_case=use_case)


@asynccontextmanager
async def transaction(provider: UnitOfWorkProvider, use_case: str) -> AsyncIterator[UnitOfWork]:
    """
    Run a block inside one unit of work.

    Exactly one of commit()/rollback() is called per successful begin().
    Cancellation also rolls back before propagating.

    Args:
        provider: Source of units of work.
        use_case: Name used in log events.

    Yields:
        The unit of work for the block.

    Example:
        >>> async with transaction(provider, "HandleStreamChunkUseCase") as uow:
        ...     request = await uow.requests.find_by_id(request_id)
    """
    uow = await provider.begin()
    logger.debug("transaction_begun", use_case=use_case)
    try:
        yield uow
    except BaseException:
        await _release(uow.rollback, "rolled_back", use_case)
        raise
    await _release(uow.commit, "committed", use_case)


# =============================================================================
# WBS 4.1.2: Error mapping
# =============================================================================


def map_use_case_errors(
    use_case: str,
    known_errors: tuple[type[Exception], ...] = (),
    operation: str = "execute",
) -> Callable[[F], F]:
    """
    Decorate an async use case method with the standard error policy.

    The call runs inside correlation_id_context: the caller's correlation ID
    is kept when one is set, otherwise a fresh one is generated, so every log
    line of the run (begin, commit or rollback, failure) shares it.

    Args:
        use_case: Name reported on UseCaseExecutionError.
        known_errors: Errors the caller is expected to handle; re-raised as is.
        operation: Operation name reported on UseCaseExecutionError.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with correlation_id_context(get_correlation_id() or str(uuid4())):
                try:
                    return await func(*args, **kwargs)
                except known_errors:
                    raise
                except Exception as e:
                    logger.error(
                        "use_case_failed",
                        use_case=use_case,
                        operation=operation,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise UseCaseExecutionError(
                        f"Failed to execute {use_case}: {e}",
                        use_case=use_case,
                        operation=operation,
                        cause=e,
                    ) from e

        return wrapper  # type: ignore[return-value]

    return decorator


# =============================================================================
# WBS 4.1.3: UseCase base class
# =============================================================================


class UseCase(ABC):
    """
    Base class for transactional use cases.

    Subclasses receive their UnitOfWorkProvider by constructor injection and
    open transactions through ``self._transaction()``.
    """

    name: ClassVar[str] = "UseCase"

    def __init__(self, uow_provider: UnitOfWorkProvider) -> None:
        self._uow_provider = uow_provider

    def _transaction(self):
        return transaction(self._uow_provider, self.name)
