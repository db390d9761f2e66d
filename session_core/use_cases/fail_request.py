"""
FailRequestUseCase - WBS 4.6

Records a provider or transport failure on a request that has not finished.
"""

from session_core.aggregates.request import Request
from session_core.core.exceptions import InvalidRequestStateError, RequestNotFoundError
from session_core.models.identifiers import RequestId
from session_core.observability.logging import get_logger
from session_core.use_cases.base import UseCase, map_use_case_errors

logger = get_logger(__name__)


class FailRequestUseCase(UseCase):
    name = "FailRequestUseCase"

    @map_use_case_errors(name, (RequestNotFoundError, InvalidRequestStateError))
    async def execute(self, request_id: RequestId, error_message: str) -> Request:
        """
        Raises:
            RequestNotFoundError: If the request does not exist.
            InvalidRequestStateError: If the request is Completed or Failed.
            UseCaseExecutionError: For any other failure.
        """
        async with self._transaction() as uow:
            request = await uow.requests.find_by_id(request_id)
            if request is None:
                raise RequestNotFoundError(request_id.value)

            failed, _ = request.fail(error_message)
            await uow.requests.save(failed)

        logger.info("request_failed", request_id=request_id.value, reason=error_message)
        return failed
