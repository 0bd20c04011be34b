"""HTTP routes for the peekmd daemon.

JSON API consumed by the browser client. Mutating routes go through the
ServerController, which reconciles watchers and broadcasts
``folders-changed``. Directory walks run in the thread pool.
"""

from __future__ import annotations

import importlib.metadata
import json
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from peekmd.core.errors import FolderError
from peekmd.core.paths import canonical_path, is_within
from peekmd.search import scan_documents

if TYPE_CHECKING:
    from peekmd.daemon.lifecycle import ServerController


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return importlib.metadata.version("peekmd")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


async def _json_body(request: Request) -> dict[str, Any]:
    """Parse a JSON object body; anything else reads as empty."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def _list_subdirectories(path: str) -> list[dict[str, str]]:
    with os.scandir(path) as entries:
        dirs = [
            {"name": e.name, "path": os.path.join(path, e.name)}
            for e in entries
            if not e.name.startswith(".") and e.is_dir()
        ]
    return sorted(dirs, key=lambda d: d["name"].lower())


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


def create_routes(controller: ServerController) -> list[Route]:
    """Create HTTP routes bound to the daemon controller."""
    start_time = time.time()
    version = _get_version()

    async def health(request: Request) -> JSONResponse:
        """Liveness probe with a summary of the sync engine."""
        _ = request  # unused
        return JSONResponse(
            {
                "status": "healthy",
                "version": version,
                "uptime_sec": round(time.time() - start_time, 1),
                "folders": len(controller.all_folders()),
                "watchers": len(controller.registry),
                "clients": len(controller.hub),
            }
        )

    async def folders(request: Request) -> JSONResponse:
        _ = request  # unused
        return JSONResponse(await run_in_threadpool(controller.list_folders))

    async def file(request: Request) -> JSONResponse:
        folder = request.query_params.get("folder")
        rel = request.query_params.get("path")
        if not folder or not rel:
            return _error("folder and path required", 400)
        if folder not in controller.all_folders():
            return _error("folder not linked", 403)

        target = os.path.normpath(os.path.join(folder, rel))
        if not is_within(folder, target):
            return _error("forbidden", 403)

        try:
            content = await run_in_threadpool(_read_text, target)
        except (OSError, UnicodeDecodeError):
            return _error("not found", 404)
        return JSONResponse({"content": content})

    async def link(request: Request) -> JSONResponse:
        body = await _json_body(request)
        folder = body.get("folder")
        if not folder or not isinstance(folder, str):
            return _error("folder required", 400)

        try:
            result = controller.link(folder)
        except FolderError as e:
            return JSONResponse(
                {"added": False, "path": e.path, **e.to_dict(), "error": e.message},
                status_code=400,
            )

        files: list[str] = []
        if result.added:
            files = await run_in_threadpool(
                scan_documents,
                result.path,
                controller.policy,
                extension=controller.config.watch.document_extension,
            )
        return JSONResponse({**result.to_dict(), "files": files})

    async def unlink(request: Request) -> JSONResponse:
        body = await _json_body(request)
        folder = body.get("folder")
        if not folder or not isinstance(folder, str):
            return _error("folder required", 400)
        return JSONResponse(controller.unlink(folder).to_dict())

    async def browse(request: Request) -> JSONResponse:
        resolved = canonical_path(request.query_params.get("path") or Path.home())
        try:
            dirs = await run_in_threadpool(_list_subdirectories, resolved)
        except OSError:
            return _error("cannot read directory", 400)
        return JSONResponse(
            {"current": resolved, "parent": os.path.dirname(resolved), "dirs": dirs}
        )

    async def search(request: Request) -> JSONResponse:
        query = request.query_params.get("q", "")
        if len(query) < controller.config.search.min_query_length:
            return _error("query too short", 400)
        results = await run_in_threadpool(controller.search, query)
        return JSONResponse([r.to_dict() for r in results])

    async def ignore_list(request: Request) -> JSONResponse:
        _ = request  # unused
        return JSONResponse(controller.policy.patterns())

    async def ignore_add(request: Request) -> JSONResponse:
        body = await _json_body(request)
        pattern = body.get("pattern")
        if not pattern or not isinstance(pattern, str):
            return _error("pattern required", 400)
        result = controller.add_ignore(pattern)
        return JSONResponse(
            {"added": result.changed, "pattern": result.pattern, "reason": result.reason}
        )

    async def ignore_remove(request: Request) -> JSONResponse:
        body = await _json_body(request)
        pattern = body.get("pattern")
        if not pattern or not isinstance(pattern, str):
            return _error("pattern required", 400)
        result = controller.remove_ignore(pattern)
        return JSONResponse(
            {"removed": result.changed, "pattern": result.pattern, "reason": result.reason}
        )

    async def ignore_reset(request: Request) -> JSONResponse:
        _ = request  # unused
        return JSONResponse({"removed": controller.reset_ignore()})

    async def robots(request: Request) -> PlainTextResponse:
        _ = request  # unused
        return PlainTextResponse("User-agent: *\nDisallow: /\n")

    return [
        Route("/health", health, methods=["GET"]),
        Route("/robots.txt", robots, methods=["GET"]),
        Route("/api/folders", folders, methods=["GET"]),
        Route("/api/file", file, methods=["GET"]),
        Route("/api/link", link, methods=["POST"]),
        Route("/api/unlink", unlink, methods=["POST"]),
        Route("/api/browse", browse, methods=["GET"]),
        Route("/api/search", search, methods=["GET"]),
        Route("/api/ignore", ignore_list, methods=["GET"]),
        Route("/api/ignore", ignore_add, methods=["POST"]),
        Route("/api/unignore", ignore_remove, methods=["POST"]),
        Route("/api/ignore/reset", ignore_reset, methods=["POST"]),
    ]
