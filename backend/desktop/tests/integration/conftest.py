from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from desktop.server.app import create_app
from desktop.server.settings import DesktopServerSettings

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from starlette.applications import Starlette

    from core.state import DesktopState


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<html><body>SoinLinkx OS</body></html>", encoding="utf-8")
    return public


@pytest.fixture
def app(desktop_state: DesktopState, static_dir: Path) -> Starlette:
    settings = DesktopServerSettings(static_dir=str(static_dir), max_body_bytes=1024 * 1024)
    return create_app(settings=settings, state=desktop_state)


@pytest.fixture
def client(app: Starlette) -> TestClient:
    return TestClient(app)


@pytest.fixture
def register_and_login(client: TestClient) -> Callable[..., tuple[str, str]]:
    """Return a helper that registers and logs in a user, returning (user_id, session_token)."""

    def _register_and_login(username: str = "alice", password: str = "secret1") -> tuple[str, str]:
        response = client.post("/api/register", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        response = client.post("/api/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return body["userId"], body["sessionToken"]

    return _register_and_login


@pytest.fixture
def alice(register_and_login: Callable[..., tuple[str, str]]) -> tuple[str, str]:
    return register_and_login()
