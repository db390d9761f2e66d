"""
Core module for the session coordination core.

This module contains configuration and the exception hierarchy.

WBS 1.2: Core Configuration Module
- 1.2.1: Settings Class Implementation
- 1.2.2: Settings Singleton
- 1.2.3: Custom Exceptions
"""

from session_core.core.config import Settings, get_settings
from session_core.core.exceptions import (
    ErrorCode,
    InvalidRequestStateError,
    InvalidSessionStateError,
    RepositoryError,
    RequestNotFoundError,
    SessionCoreException,
    SessionNotActiveError,
    SessionNotFoundError,
    TransactionError,
    UseCaseExecutionError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "SessionCoreException",
    "InvalidSessionStateError",
    "InvalidRequestStateError",
    "SessionNotFoundError",
    "SessionNotActiveError",
    "RequestNotFoundError",
    "UseCaseExecutionError",
    "RepositoryError",
    "TransactionError",
]
