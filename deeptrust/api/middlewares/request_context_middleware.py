"""
Request middleware for log correlation and access logging.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from deeptrust.core.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    new_request_id,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds a request id to every log entry emitted while handling the request.

    A client supplied ``X-Request-ID`` is reused, otherwise one is generated.
    The id is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER, "")[:_MAX_REQUEST_ID_LENGTH]
        request_id = request_id or new_request_id()
        client_ip = request.client.host if request.client else None

        bind_request_context(request_id, client_ip)
        started = time.perf_counter()
        try:
            response = await call_next(request)

            # Skip noise from docs and preflight requests
            if request.method != "OPTIONS" and request.url.path not in ["/openapi.json", "/docs", "/redoc"]:
                logger.info(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()
