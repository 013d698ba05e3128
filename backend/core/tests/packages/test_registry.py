"""Tests for the package catalog and PackageRegistry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.errors import DependencyError, NotFoundError
from core.packages import Package, PackageRegistry, load_catalog

if TYPE_CHECKING:
    from core.state import DesktopState


@pytest.fixture
async def user_id(desktop_state: DesktopState) -> str:
    user = await desktop_state.users.register("alice", "secret1")
    return user.user_id


class TestLoadCatalog:
    def test_bundled_catalog(self):
        packages = load_catalog()
        ids = [p.id for p in packages]

        assert ids == ["core-system", "file-manager", "terminal-pro", "text-editor", "dev-toolkit"]
        by_id = {p.id: p for p in packages}
        assert by_id["core-system"].dependencies == []
        assert by_id["text-editor"].dependencies == ["core-system", "file-manager"]
        for package in packages:
            for dep in package.dependencies:
                assert dep in by_id

    def test_custom_catalog(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "packages:\n"
            "  - id: calc\n"
            "    name: Calculator\n"
            "    version: 1.0.0\n"
            "    dependencies: [core-system]\n",
            encoding="utf-8",
        )

        packages = load_catalog(path)

        assert len(packages) == 1
        assert packages[0].id == "calc"
        assert packages[0].downloads == 0
        assert packages[0].description == ""

    def test_empty_file_yields_no_packages(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("", encoding="utf-8")
        assert load_catalog(path) == []

    def test_duplicate_ids_rejected(self, desktop_state):
        package = Package(id="calc", name="Calculator", version="1.0.0")
        with pytest.raises(ValueError, match="Duplicate package id"):
            PackageRegistry([package, package.model_copy()], desktop_state.users)


class TestLookups:
    def test_list_and_get(self, desktop_state):
        registry = desktop_state.packages
        assert registry.package_count == 5
        assert len(registry.list_packages()) == 5
        assert registry.get("terminal-pro").name == "Terminal Pro"

    def test_get_unknown(self, desktop_state):
        with pytest.raises(NotFoundError, match="Package not found"):
            desktop_state.packages.get("nope")

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("terminal", {"terminal-pro", "dev-toolkit"}),
            ("TERMINAL", {"terminal-pro", "dev-toolkit"}),
            ("editor", {"text-editor"}),
            ("xyz", set()),
        ],
    )
    def test_search(self, desktop_state, query, expected):
        assert {p.id for p in desktop_state.packages.search(query)} == expected

    @pytest.mark.parametrize("query", ["", None])
    def test_empty_search(self, desktop_state, query):
        assert desktop_state.packages.search(query) == []


class TestInstall:
    async def test_installs_when_dependencies_present(self, desktop_state, user_id):
        before = desktop_state.packages.get("terminal-pro").downloads

        apps = await desktop_state.packages.install(user_id, "terminal-pro")

        assert apps == ["core-system", "file-manager", "terminal-pro"]
        assert desktop_state.users.get_user(user_id).installed_apps == apps
        assert desktop_state.packages.get("terminal-pro").downloads == before + 1

    async def test_reinstall_is_noop(self, desktop_state, user_id):
        before = desktop_state.packages.get("terminal-pro").downloads
        await desktop_state.packages.install(user_id, "terminal-pro")

        apps = await desktop_state.packages.install(user_id, "terminal-pro")

        assert apps.count("terminal-pro") == 1
        assert desktop_state.packages.get("terminal-pro").downloads == before + 1

    async def test_missing_dependencies_listed_in_declared_order(self, desktop_state, user_id):
        before = desktop_state.packages.get("dev-toolkit").downloads

        with pytest.raises(DependencyError) as exc_info:
            await desktop_state.packages.install(user_id, "dev-toolkit")

        assert exc_info.value.missing == ["terminal-pro", "text-editor"]
        assert exc_info.value.to_payload() == {
            "error": "Missing dependencies",
            "dependencies": ["terminal-pro", "text-editor"],
        }
        assert "dev-toolkit" not in desktop_state.users.get_user(user_id).installed_apps
        assert desktop_state.packages.get("dev-toolkit").downloads == before

    async def test_dependencies_not_installed_transitively(self, desktop_state, user_id):
        await desktop_state.packages.remove(user_id, "core-system")

        with pytest.raises(DependencyError) as exc_info:
            await desktop_state.packages.install(user_id, "text-editor")

        assert exc_info.value.missing == ["core-system"]
        assert desktop_state.users.get_user(user_id).installed_apps == ["file-manager"]

    def test_self_dependency_ignored(self, desktop_state):
        package = Package(id="loop", name="Loop", version="1.0.0", dependencies=["loop", "core-system"])
        assert desktop_state.packages.missing_dependencies(package, ["core-system"]) == []

    async def test_unknown_package(self, desktop_state, user_id):
        with pytest.raises(NotFoundError, match="Package not found"):
            await desktop_state.packages.install(user_id, "nope")

    async def test_unknown_user(self, desktop_state):
        with pytest.raises(NotFoundError, match="User not found"):
            await desktop_state.packages.install("user_missing", "terminal-pro")


class TestRemove:
    async def test_removes_package(self, desktop_state, user_id):
        apps = await desktop_state.packages.remove(user_id, "file-manager")
        assert apps == ["core-system"]

    async def test_remove_ignores_dependents(self, desktop_state, user_id):
        await desktop_state.packages.install(user_id, "text-editor")

        apps = await desktop_state.packages.remove(user_id, "core-system")

        assert apps == ["file-manager", "text-editor"]

    async def test_remove_absent_package_is_noop(self, desktop_state, user_id):
        apps = await desktop_state.packages.remove(user_id, "dev-toolkit")
        assert apps == ["core-system", "file-manager"]

    async def test_remove_does_not_touch_downloads(self, desktop_state, user_id):
        before = desktop_state.packages.get("file-manager").downloads
        await desktop_state.packages.remove(user_id, "file-manager")
        assert desktop_state.packages.get("file-manager").downloads == before
