"""HTTP mapping of dispatch errors."""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from ridehail.dispatch.results import TransitionResult
from ridehail.errors import DispatchError, ErrorKind, StoreFault
from ridehail.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_FOR_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.AUTH: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

RETRY_AFTER_SECONDS = 1


def http_error(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": message},
        headers=headers,
    )


def to_http_exception(error: DispatchError) -> HTTPException:
    headers = None
    if error.kind == ErrorKind.UNAVAILABLE:
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return http_error(STATUS_FOR_KIND[error.kind], error.code, error.message, headers)


def raise_for_result(result: TransitionResult) -> TransitionResult:
    """Pass a successful result through; turn a failed one into an HTTP error."""
    if not result.success:
        raise to_http_exception(result.error)
    return result


async def store_fault_handler(request: Request, exc: StoreFault) -> JSONResponse:
    """Answer storage faults with an opaque id that points at the log line."""
    logger.error(
        "store_fault",
        error_id=exc.error_id,
        error=str(exc),
        cause=repr(exc.cause) if exc.cause else None,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "code": "StoreFault",
                "message": "Internal storage error",
                "error_id": exc.error_id,
            }
        },
    )
