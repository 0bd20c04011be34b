"""HTTP middleware for request correlation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from peekmd.core.logging import clear_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger()

# Type alias for the call_next function
CallNext = Callable[[Request], Awaitable[Response]]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id to every request's log lines and echo it back.

    Reuses the client's X-Request-ID when present.
    """

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        rid = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            logger.debug(
                "request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
            )
            return response
        finally:
            clear_request_id()
