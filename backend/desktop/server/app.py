from __future__ import annotations

import contextlib
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from core.errors import ServiceError
from core.logging import setup_logging
from core.state import DesktopState
from desktop.server.middleware import RequestCounterMiddleware
from desktop.server.settings import DesktopServerSettings
from desktop.views import (
    get_file,
    get_package,
    install_package,
    list_packages,
    log_error,
    login,
    logout,
    register,
    remove_package,
    save_file,
    search_packages,
    stats,
    sync,
)

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request


async def _service_error_handler(_request: Request, exc: Exception) -> Response:
    error = cast("ServiceError", exc)
    return JSONResponse(error.to_payload(), status_code=error.status_code)


async def _http_error_handler(_request: Request, exc: Exception) -> Response:
    """Render routing errors (unknown path, wrong method) as JSON envelopes."""
    http_exc = cast("HTTPException", exc)
    if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
        return Response(status_code=http_exc.status_code, headers=http_exc.headers)
    return JSONResponse({"error": http_exc.detail}, status_code=http_exc.status_code, headers=http_exc.headers)


async def _unhandled_error_handler(request: Request, exc: Exception) -> Response:
    logger.error("server error", path=request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)


PLACEHOLDER_INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>SoinLinkx OS</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    <div id="app">
        <h1>Loading SoinLinkx OS...</h1>
    </div>
    <script src="os.js"></script>
</body>
</html>
"""


def ensure_static_shell(static_dir: Path) -> None:
    """Create the static directory and a placeholder index.html when they are missing."""
    index = static_dir / "index.html"
    if index.exists():
        return
    static_dir.mkdir(parents=True, exist_ok=True)
    index.write_text(PLACEHOLDER_INDEX_HTML, encoding="utf-8")
    logger.info("wrote placeholder desktop shell", path=str(index))


def create_state(settings: DesktopServerSettings) -> DesktopState:
    return DesktopState(
        data_dir=settings.data_dir,
        backup_dir=settings.backup_dir,
        log_dir=settings.log_dir,
        catalog_path=settings.catalog_path,
        session_ttl_seconds=settings.session_ttl_seconds,
        sweep_interval_seconds=settings.session_sweep_interval_seconds,
        backup_interval_seconds=settings.backup_interval_seconds,
    )


def create_app(
    settings: DesktopServerSettings | None = None,
    state: DesktopState | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = DesktopServerSettings()
    if state is None:
        state = create_state(settings)

    routes = [
        Route("/api/register", register, methods=["POST"], name="register"),
        Route("/api/login", login, methods=["POST"], name="login"),
        Route("/api/logout", logout, methods=["POST"], name="logout"),
        Route("/api/sync/{user_id}", sync, methods=["GET"], name="sync"),
        Route("/api/save-file", save_file, methods=["POST"], name="save_file"),
        Route("/api/file/{user_id}/{file_path:path}", get_file, methods=["GET"], name="get_file"),
        Route("/api/install-package", install_package, methods=["POST"], name="install_package"),
        Route("/api/remove-package", remove_package, methods=["POST"], name="remove_package"),
        Route("/api/packages", list_packages, methods=["GET"], name="list_packages"),
        Route("/api/package/{package_id}", get_package, methods=["GET"], name="get_package"),
        Route("/api/search-packages", search_packages, methods=["GET"], name="search_packages"),
        Route("/api/log-error", log_error, methods=["POST"], name="log_error"),
        Route("/api/stats", stats, methods=["GET"], name="stats"),
    ]

    static_dir = Path(settings.static_dir).resolve()
    ensure_static_shell(static_dir)
    routes.append(Mount("/", app=StaticFiles(directory=str(static_dir), html=True), name="static"))

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        state.start()
        logger.info("maintenance scheduler started")
        yield
        await state.stop()
        logger.info("desktop server stopped")

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            ServiceError: _service_error_handler,
            HTTPException: _http_error_handler,
            Exception: _unhandled_error_handler,
        },
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(RequestCounterMiddleware, stats=state.stats)  # type: ignore[arg-type]

    app.state.settings = settings
    app.state.desktop = state

    logger.info("desktop server ready", data_dir=str(state.storage.root), packages=state.packages.package_count)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory desktop.server.app:get_app."""
    settings = DesktopServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
