"""File sync endpoints: full sync, save and raw file download."""

from __future__ import annotations

import mimetypes
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse, Response

from core.errors import InvalidInputError
from desktop.views.requests import parse_body
from desktop.views.types import SaveFileRequest

if TYPE_CHECKING:
    from starlette.requests import Request

    from core.state import DesktopState


async def sync(request: Request) -> JSONResponse:
    """GET /api/sync/{user_id}?sessionToken=... - profile, file inventory and apps."""
    state: DesktopState = request.app.state.desktop
    user_id = request.path_params["user_id"]
    token = request.query_params.get("sessionToken")

    snapshot = await state.files.sync(token, user_id)
    return JSONResponse(
        {
            "success": True,
            "user": snapshot.profile.model_dump(mode="json", by_alias=True),
            "files": [entry.model_dump(mode="json") for entry in snapshot.files],
            "installedApps": snapshot.installed_apps,
            "errorLog": [error.model_dump(mode="json", by_alias=True) for error in snapshot.error_log],
        },
    )


async def save_file(request: Request) -> JSONResponse:
    """POST /api/save-file - write a file inside the user's directory."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, SaveFileRequest)
    if body.content is None:
        raise InvalidInputError("File content required")

    await state.files.save_file(body.session_token, body.user_id, body.path, body.content)
    return JSONResponse({"success": True, "message": "File saved successfully"})


async def get_file(request: Request) -> Response:
    """GET /api/file/{user_id}/{file_path}?sessionToken=... - raw file bytes."""
    state: DesktopState = request.app.state.desktop
    user_id = request.path_params["user_id"]
    file_path = request.path_params["file_path"]
    token = request.query_params.get("sessionToken")

    content = await state.files.read_file(token, user_id, file_path)
    media_type, _ = mimetypes.guess_type(file_path)
    return Response(content, media_type=media_type or "application/octet-stream")
