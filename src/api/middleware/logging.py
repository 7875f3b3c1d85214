"""Per-request structured logging.

Every request gets a request id, taken from ``X-Request-ID`` when the
caller sends one, that is bound to the structlog context for all log lines
written while handling it and echoed back on the response.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by the container platform every few seconds
HEALTH_PATHS = frozenset({"/health", "/ready"})


def _log_level(status_code: int, path: str) -> str:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    if path in HEALTH_PATHS:
        return "debug"
    return "info"


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        path = request.url.path
        log = getattr(logger, _log_level(response.status_code, path))
        log(
            "http_request",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=elapsed_ms,
            client=request.client.host if request.client else None,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
