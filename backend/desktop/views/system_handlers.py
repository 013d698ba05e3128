"""Server statistics and client error reporting."""

from __future__ import annotations

import os
import platform
import sys
from typing import TYPE_CHECKING

import psutil
import structlog
from starlette.responses import JSONResponse

from desktop.views.requests import parse_body
from desktop.views.types import LogErrorRequest

if TYPE_CHECKING:
    from starlette.requests import Request

    from core.state import DesktopState

logger = structlog.get_logger()


def format_uptime(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"


def _memory_usage() -> dict[str, int]:
    info = psutil.Process().memory_info()
    return {"rss": info.rss, "vms": info.vms}


async def log_error(request: Request) -> JSONResponse:
    """POST /api/log-error - record a client error. Accepts any well-formed body."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, LogErrorRequest)

    recorded = await state.users.record_error(body.user_id, body.error)
    logger.error(
        "client error reported",
        user_id=body.user_id,
        recorded=recorded,
        code=body.error.code,
        message=body.error.message,
    )
    return JSONResponse({"success": True})


async def stats(request: Request) -> JSONResponse:
    state: DesktopState = request.app.state.desktop
    uptime = state.stats.uptime_seconds
    return JSONResponse(
        {
            "uptime": format_uptime(uptime),
            "uptimeSeconds": uptime,
            "totalRequests": state.stats.total_requests,
            "activeSessions": state.sessions.active_count,
            "totalUsers": state.users.user_count,
            "totalPackages": state.packages.package_count,
            "memory": _memory_usage(),
            "cpu": os.cpu_count(),
            "platform": sys.platform,
            "arch": platform.machine(),
        },
    )
