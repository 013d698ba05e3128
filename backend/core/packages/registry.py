"""Package catalog and per-user install/remove."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import yaml

from core.errors import DependencyError, NotFoundError
from core.packages.models import Package

if TYPE_CHECKING:
    from core.auth.registry import UserRegistry

logger = structlog.get_logger()


def _get_default_catalog_path() -> Path:
    """Return the catalog bundled next to this module."""
    return Path(__file__).parent / "catalog.yaml"


def load_catalog(path: Path | None = None) -> list[Package]:
    """Read package definitions from a YAML file with a top-level ``packages`` list."""
    catalog_path = path or _get_default_catalog_path()
    with catalog_path.open(encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return [Package.model_validate(entry) for entry in config.get("packages", [])]


class PackageRegistry:
    """Catalog lookups plus install/remove against users' installed apps.

    Installs check that every declared dependency is already installed for
    the user. Nothing is resolved or installed transitively. Removal never
    looks at dependents.
    """

    def __init__(
        self,
        packages: list[Package],
        users: UserRegistry,
        *,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._packages: dict[str, Package] = {}
        for package in packages:
            if package.id in self._packages:
                raise ValueError(f"Duplicate package id '{package.id}' in catalog")
            self._packages[package.id] = package
        self._users = users
        self._lock = lock or asyncio.Lock()

    @property
    def package_count(self) -> int:
        return len(self._packages)

    def list_packages(self) -> list[Package]:
        return list(self._packages.values())

    def get(self, package_id: str) -> Package:
        package = self._packages.get(package_id)
        if package is None:
            raise NotFoundError("Package not found")
        return package

    def search(self, query: str | None) -> list[Package]:
        """Case-insensitive substring match over id, name and description."""
        if not query:
            return []
        needle = query.lower()
        return [
            p
            for p in self._packages.values()
            if needle in p.id.lower() or needle in p.name.lower() or needle in p.description.lower()
        ]

    def missing_dependencies(self, package: Package, installed: list[str]) -> list[str]:
        return [dep for dep in package.dependencies if dep != package.id and dep not in installed]

    async def install(self, user_id: str, package_id: str) -> list[str]:
        """Add a package to the user's installed apps and return the new list."""
        async with self._lock:
            user = self._users.get_user(user_id)
            package = self.get(package_id)

            missing = self.missing_dependencies(package, user.installed_apps)
            if missing:
                logger.info(
                    "install rejected: missing dependencies",
                    user_id=user_id,
                    package_id=package_id,
                    missing=missing,
                )
                raise DependencyError(package_id, missing)

            if package_id not in user.installed_apps:
                user.installed_apps.append(package_id)
                package.downloads += 1

        logger.info("package installed", user_id=user_id, package_id=package_id)
        return list(user.installed_apps)

    async def remove(self, user_id: str, package_id: str) -> list[str]:
        """Drop a package from the user's installed apps if present."""
        async with self._lock:
            user = self._users.get_user(user_id)
            user.installed_apps = [app for app in user.installed_apps if app != package_id]

        logger.info("package removed", user_id=user_id, package_id=package_id)
        return list(user.installed_apps)
