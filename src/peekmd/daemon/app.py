"""Starlette application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import BaseRoute, WebSocketRoute
from starlette.websockets import WebSocket

from peekmd.core.errors import InternalError
from peekmd.daemon.broadcast import WebSocketConnection
from peekmd.daemon.middleware import RequestIdMiddleware
from peekmd.daemon.routes import create_routes

if TYPE_CHECKING:
    from peekmd.daemon.lifecycle import ServerController

logger = structlog.get_logger()


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request_failed",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    error = InternalError.unexpected(type(exc).__name__, path=request.url.path)
    return JSONResponse(error.to_dict(), status_code=500)


def create_app(controller: ServerController) -> Starlette:
    """Create the Starlette application: JSON API plus the /ws event stream.

    The controller is started and stopped by ``run_server``, not by the app
    lifespan, so that watchers are torn down even if uvicorn's shutdown hangs.
    """

    async def events(websocket: WebSocket) -> None:
        await websocket.accept()
        conn = WebSocketConnection(websocket, max_buffer=controller.config.watch.outbound_buffer)
        await conn.serve(controller.hub)

    routes: list[BaseRoute] = list(create_routes(controller))
    routes.append(WebSocketRoute("/ws", events))

    return Starlette(
        routes=routes,
        middleware=[Middleware(RequestIdMiddleware)],
        exception_handlers={Exception: _unexpected_error},
    )
