"""
Use Cases Package - WBS 4

Transactional application procedures over the Session and Request aggregates.
Each use case takes a UnitOfWorkProvider in its constructor.
"""

from session_core.use_cases.base import UseCase, map_use_case_errors, transaction
from session_core.use_cases.close_session import CloseSessionUseCase
from session_core.use_cases.complete_request import CompleteRequestUseCase
from session_core.use_cases.establish_session import EstablishSessionUseCase
from session_core.use_cases.fail_request import FailRequestUseCase
from session_core.use_cases.get_session_requests import GetSessionRequestsUseCase
from session_core.use_cases.handle_client_message import (
    ClientMessageResult,
    HandleClientMessageUseCase,
)
from session_core.use_cases.handle_stream_chunk import HandleStreamChunkUseCase

__all__ = [
    "UseCase",
    "transaction",
    "map_use_case_errors",
    "EstablishSessionUseCase",
    "HandleClientMessageUseCase",
    "ClientMessageResult",
    "HandleStreamChunkUseCase",
    "CompleteRequestUseCase",
    "FailRequestUseCase",
    "CloseSessionUseCase",
    "GetSessionRequestsUseCase",
]
