"""Maps gate exceptions to HTTP responses.

Order matters: ``GateValidationError`` is also a ``ValueError`` and
``NotFoundError`` a ``LookupError``, so the first matching row wins.
"""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.shared.errors import RuleConfigurationError, TerminalStateError

logger = structlog.get_logger()

RETRY_MESSAGE = "We could not process this request right now. Please try again."

# (exception types, status, error code, expose exception message)
_ERROR_MAP: tuple[tuple[tuple[type[Exception], ...], int, str, bool], ...] = (
    ((ValueError,), 400, "bad_request", True),
    ((LookupError,), 404, "not_found", True),
    ((TerminalStateError,), 409, "conflict", True),
    ((RuleConfigurationError, SQLAlchemyError), 503, "service_unavailable", False),
)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")

    for types, status_code, error, expose in _ERROR_MAP:
        if not isinstance(exc, types):
            continue
        if expose:
            logger.warning(error, request_id=request_id, error=str(exc))
            message = str(exc)
        else:
            # Internal detail stays in the log
            logger.error(
                error,
                request_id=request_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            message = RETRY_MESSAGE
        return JSONResponse(
            status_code=status_code,
            content={"error": error, "message": message, "request_id": request_id},
        )

    logger.exception("unhandled_exception", request_id=request_id, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request_id,
        },
    )
