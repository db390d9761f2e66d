"""
HandleStreamChunkUseCase - WBS 4.4

Records one chunk of a streamed response on its request.
"""

from session_core.aggregates.request import Request
from session_core.core.exceptions import InvalidRequestStateError, RequestNotFoundError
from session_core.models.chunks import StreamChunk
from session_core.models.identifiers import RequestId
from session_core.observability.logging import get_logger
from session_core.use_cases.base import UseCase, map_use_case_errors

logger = get_logger(__name__)


class HandleStreamChunkUseCase(UseCase):
    """Append a chunk to a Pending or Streaming request."""

    name = "HandleStreamChunkUseCase"

    @map_use_case_errors(name, (RequestNotFoundError, InvalidRequestStateError))
    async def execute(self, request_id: RequestId, chunk: StreamChunk) -> Request:
        """
        Returns:
            The updated request.

        Raises:
            RequestNotFoundError: If the request does not exist.
            InvalidRequestStateError: If the request is already terminal.
            UseCaseExecutionError: For any other failure.
        """
        async with self._transaction() as uow:
            request = await uow.requests.find_by_id(request_id)
            if request is None:
                raise RequestNotFoundError(request_id.value)

            updated, _ = request.add_chunk(chunk)
            await uow.requests.save(updated)

        logger.debug(
            "stream_chunk_handled",
            request_id=request_id.value,
            chunk_type=chunk.type,
            chunk_count=len(updated.chunks),
        )
        return updated
