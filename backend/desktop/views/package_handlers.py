"""Package catalog endpoints and per-user install/remove."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from desktop.views.requests import parse_body
from desktop.views.types import PackageRequest

if TYPE_CHECKING:
    from starlette.requests import Request

    from core.packages.models import Package
    from core.state import DesktopState


def _dump(packages: list[Package]) -> list[dict]:
    return [p.model_dump(mode="json") for p in packages]


async def list_packages(request: Request) -> JSONResponse:
    state: DesktopState = request.app.state.desktop
    return JSONResponse(_dump(state.packages.list_packages()))


async def get_package(request: Request) -> JSONResponse:
    state: DesktopState = request.app.state.desktop
    package = state.packages.get(request.path_params["package_id"])
    return JSONResponse(package.model_dump(mode="json"))


async def search_packages(request: Request) -> JSONResponse:
    """GET /api/search-packages?q=... - empty query matches nothing."""
    state: DesktopState = request.app.state.desktop
    return JSONResponse(_dump(state.packages.search(request.query_params.get("q"))))


async def install_package(request: Request) -> JSONResponse:
    """POST /api/install-package - 400 with the missing ids when dependencies are unmet."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, PackageRequest)

    state.users.authenticate(body.session_token, body.user_id)
    installed = await state.packages.install(body.user_id, body.package_id)
    return JSONResponse(
        {"success": True, "message": f"Package {body.package_id} installed", "installedApps": installed},
    )


async def remove_package(request: Request) -> JSONResponse:
    """POST /api/remove-package - dependents are not checked."""
    state: DesktopState = request.app.state.desktop
    body = await parse_body(request, PackageRequest)

    state.users.authenticate(body.session_token, body.user_id)
    installed = await state.packages.remove(body.user_id, body.package_id)
    return JSONResponse(
        {"success": True, "message": f"Package {body.package_id} removed", "installedApps": installed},
    )
