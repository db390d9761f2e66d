"""
CompleteRequestUseCase - WBS 4.5

Marks a Streaming request Completed.
"""

from typing import Optional

from session_core.aggregates.request import CompletionMetadata, Request
from session_core.core.exceptions import InvalidRequestStateError, RequestNotFoundError
from session_core.models.identifiers import RequestId
from session_core.observability.logging import get_logger
from session_core.use_cases.base import UseCase, map_use_case_errors

logger = get_logger(__name__)


class CompleteRequestUseCase(UseCase):
    """Complete a streaming request, optionally recording usage metadata."""

    name = "CompleteRequestUseCase"

    @map_use_case_errors(name, (RequestNotFoundError, InvalidRequestStateError))
    async def execute(
        self, request_id: RequestId, metadata: Optional[CompletionMetadata] = None
    ) -> Request:
        """
        Args:
            request_id: Request to complete.
            metadata: Optional total tokens / stop reason.

        Returns:
            The completed request.

        Raises:
            RequestNotFoundError: If the request does not exist.
            InvalidRequestStateError: If the request is not Streaming.
            UseCaseExecutionError: For any other failure.
        """
        async with self._transaction() as uow:
            request = await uow.requests.find_by_id(request_id)
            if request is None:
                raise RequestNotFoundError(request_id.value)

            completed, _ = request.complete(metadata)
            await uow.requests.save(completed)

        logger.info(
            "request_completed",
            request_id=request_id.value,
            total_tokens=metadata.total_tokens if metadata else None,
        )
        return completed
