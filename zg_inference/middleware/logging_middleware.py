"""
Request logging for the client API.

Every request gets a short id bound into structlog's context so log lines
emitted while it runs (wallet, broker, gateway) can be correlated with it.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("api")

# Polled endpoints; logged at debug level only
QUIET_PATHS = frozenset({"/healthz", "/logs", "/inference/status"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log method, path, status and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=path)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            elif path in QUIET_PATHS and request.method == "GET":
                log = logger.debug
            else:
                log = logger.info
            log(
                "api_request",
                method=request.method,
                status=status_code,
                duration_ms=duration_ms,
            )
            structlog.contextvars.unbind_contextvars("path")

        response.headers["x-request-id"] = request_id
        response.headers["x-response-time-ms"] = str(duration_ms)
        return response
