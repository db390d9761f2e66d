"""
Custom exceptions for the session coordination core.

WBS 1.2.3: Custom Exceptions

This module provides the hierarchy of exceptions raised by aggregates,
use cases and storage adapters. All exceptions inherit from
SessionCoreException and carry an error code for consistent handling
and logging.

Error taxonomy:
- Domain invariant violations: InvalidSessionStateError, InvalidRequestStateError
- Not-found conditions: SessionNotFoundError, RequestNotFoundError
- Session-activity conflict: SessionNotActiveError
- Infrastructure: RepositoryError, TransactionError
- Catch-all: UseCaseExecutionError (wraps anything else, cause preserved)
"""

from enum import Enum
from typing import Any, Literal


# =============================================================================
# WBS 1.2.3.1: Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for session core exceptions.

    These codes provide a stable, caller-facing vocabulary for error types
    across use cases and in logging.
    """

    CORE_ERROR = "CORE_ERROR"
    INVALID_SESSION_STATE = "INVALID_SESSION_STATE"
    INVALID_REQUEST_STATE = "INVALID_REQUEST_STATE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"
    REPOSITORY_ERROR = "REPOSITORY_ERROR"
    TRANSACTION_ERROR = "TRANSACTION_ERROR"
    USE_CASE_EXECUTION_ERROR = "USE_CASE_EXECUTION_ERROR"


# =============================================================================
# WBS 1.2.3.2: Base Exception
# =============================================================================


class SessionCoreException(Exception):
    """
    Base exception for all session core errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.CORE_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# WBS 1.2.3.3: Domain Invariant Violations
# =============================================================================


class InvalidSessionStateError(SessionCoreException):
    """
    Raised by the Session aggregate when an operation is not allowed
    in the session's current state.

    Attributes:
        current_state: State the session was in ("Active" or "Closed").
        operation: Name of the rejected transition.
    """

    def __init__(
        self,
        message: str,
        current_state: str,
        operation: str,
        error_code: str = ErrorCode.INVALID_SESSION_STATE,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.current_state = current_state
        self.operation = operation


class InvalidRequestStateError(SessionCoreException):
    """
    Raised by the Request aggregate when an operation is not allowed
    in the request's current state.

    Use cases let this error reach the caller unchanged.

    Attributes:
        current_state: State the request was in.
        operation: Name of the rejected transition.
        expected_state: States the operation accepts, e.g. "Streaming".
        request_id: Raw identifier of the affected request (if known).
    """

    def __init__(
        self,
        message: str,
        current_state: str,
        operation: str,
        expected_state: str | None = None,
        request_id: str | None = None,
        error_code: str = ErrorCode.INVALID_REQUEST_STATE,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.current_state = current_state
        self.operation = operation
        self.expected_state = expected_state
        self.request_id = request_id


# =============================================================================
# WBS 1.2.3.4: Application Errors
# =============================================================================


class SessionNotFoundError(SessionCoreException):
    """
    Raised when a use case cannot find the session it was asked to load.

    Attributes:
        session_id: Raw identifier of the missing session.
    """

    def __init__(
        self,
        session_id: str,
        message: str | None = None,
        error_code: str = ErrorCode.SESSION_NOT_FOUND,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message or f"Session with ID {session_id} not found",
            error_code,
            **kwargs,
        )
        self.session_id = session_id


class SessionNotActiveError(SessionCoreException):
    """
    Raised when work arrives for a session that is no longer Active.

    Attributes:
        session_id: Raw identifier of the session.
        current_state: State the session was found in.
    """

    def __init__(
        self,
        session_id: str,
        current_state: str,
        message: str | None = None,
        error_code: str = ErrorCode.SESSION_NOT_ACTIVE,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message or f"Session is {current_state}, cannot handle messages",
            error_code,
            **kwargs,
        )
        self.session_id = session_id
        self.current_state = current_state


class RequestNotFoundError(SessionCoreException):
    """
    Raised when a use case cannot find the request it was asked to load.

    Attributes:
        request_id: Raw identifier of the missing request.
    """

    def __init__(
        self,
        request_id: str,
        message: str | None = None,
        error_code: str = ErrorCode.REQUEST_NOT_FOUND,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message or f"Request with ID {request_id} not found",
            error_code,
            **kwargs,
        )
        self.request_id = request_id


class UseCaseExecutionError(SessionCoreException):
    """
    Catch-all error for anything a use case does not recognize.

    The original exception is kept both as ``cause`` and as the chained
    ``__cause__`` so tracebacks stay intact.

    Attributes:
        use_case: Name of the use case that failed.
        operation: Step that failed (usually "execute").
        cause: The original exception.
    """

    def __init__(
        self,
        message: str,
        use_case: str,
        operation: str = "execute",
        cause: BaseException | None = None,
        error_code: str = ErrorCode.USE_CASE_EXECUTION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.use_case = use_case
        self.operation = operation
        self.cause = cause


# =============================================================================
# WBS 1.2.3.5: Infrastructure Errors
# =============================================================================


class RepositoryError(SessionCoreException):
    """
    Raised by repository implementations when storage I/O or
    (de)serialization fails.

    Attributes:
        operation: Repository operation tag (save, find_by_id, ...).
        cause: The underlying exception (if any).
    """

    def __init__(
        self,
        message: str,
        operation: str,
        cause: BaseException | None = None,
        error_code: str = ErrorCode.REPOSITORY_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.operation = operation
        self.cause = cause


class TransactionError(SessionCoreException):
    """
    Raised by a unit of work when begin, commit or rollback fails.

    Attributes:
        operation: One of "begin", "commit", "rollback".
        cause: The underlying exception (if any).
    """

    def __init__(
        self,
        message: str,
        operation: Literal["begin", "commit", "rollback"],
        cause: BaseException | None = None,
        error_code: str = ErrorCode.TRANSACTION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.operation = operation
        self.cause = cause
