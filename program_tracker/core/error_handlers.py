from fastapi import Request, status
from fastapi.responses import JSONResponse

from program_tracker.core.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from program_tracker.core.logging import get_logger
from program_tracker.schemas.base import APIError, APIResponse, ResponseMeta

logger = get_logger(__name__)


ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = ERROR_STATUS_MAP.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if status_code >= 500:
        logger.error("domain_error", code=exc.code, message=exc.message, details=exc.details)
    else:
        logger.info("domain_error", code=exc.code, message=exc.message)

    body = APIResponse[None](
        data=None,
        meta=ResponseMeta(request_id=getattr(request.state, "request_id", None)),
        errors=[APIError(code=exc.code, message=exc.message, details=exc.details)],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
