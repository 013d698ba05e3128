"""ASGI middleware for the desktop server."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

    from core.state import ServerStats

logger = structlog.get_logger()


class RequestCounterMiddleware:
    """Count every HTTP request in the server stats and log it.

    Session tokens travel in query strings, so only the path is logged.
    """

    def __init__(self, app: ASGIApp, *, stats: ServerStats) -> None:
        self.app = app
        self._stats = stats

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            self._stats.total_requests += 1
            client = scope.get("client")
            headers = dict(scope.get("headers") or [])
            logger.info(
                "request",
                method=scope["method"],
                path=scope["path"],
                ip=client[0] if client else None,
                user_agent=headers.get(b"user-agent", b"").decode("latin-1") or None,
            )
        await self.app(scope, receive, send)
