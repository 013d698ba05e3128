"""Auth endpoints: register, login and logout."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from desktop.views.requests import parse_body
from desktop.views.types import LoginRequest, LogoutRequest, RegisterRequest

if TYPE_CHECKING:
    from starlette.requests import Request

    from core.state import DesktopState


async def register(request: Request) -> JSONResponse:
    """POST /api/register - create an account and its home directory."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, RegisterRequest)

    user = await state.users.register(body.username, body.password, email=body.email, theme=body.theme)
    return JSONResponse({"success": True, "userId": user.user_id, "message": "User registered successfully"})


async def login(request: Request) -> JSONResponse:
    """POST /api/login - validate credentials and issue a session token."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, LoginRequest)

    session, user = await state.users.login(body.username, body.password)
    return JSONResponse(
        {
            "success": True,
            "sessionToken": session.token,
            "userId": user.user_id,
            "user": user.profile().model_dump(mode="json", by_alias=True),
        },
    )


async def logout(request: Request) -> JSONResponse:
    """POST /api/logout - destroy the session. Succeeds for unknown tokens too."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, LogoutRequest)

    state.users.logout(body.session_token)
    return JSONResponse({"success": True})
