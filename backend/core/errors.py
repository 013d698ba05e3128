"""Service-level error taxonomy.

Each error carries the HTTP status it maps to. Services raise these; the
desktop server turns them into ``{"error": ...}`` JSON envelopes in one place.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class ServiceError(Exception):
    """Base class for failures reported to API clients."""

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def to_payload(self) -> dict[str, Any]:
        return {"error": str(self)}


class InvalidInputError(ServiceError):
    """Missing or malformed request fields."""

    status_code = HTTPStatus.BAD_REQUEST


class MissingFieldsError(InvalidInputError):
    pass


class UsernameTakenError(InvalidInputError):
    pass


class AuthError(ServiceError):
    """Bad credentials, or a missing, unknown or expired session token."""

    status_code = HTTPStatus.UNAUTHORIZED


class ForbiddenError(ServiceError):
    """A path resolved outside the directory it must stay in."""

    status_code = HTTPStatus.FORBIDDEN


class NotFoundError(ServiceError):
    """Unknown user, package or file."""

    status_code = HTTPStatus.NOT_FOUND


class StorageError(ServiceError):
    """Disk failure while reading or writing user data."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class DependencyError(InvalidInputError):
    """Package install rejected because some dependencies are not installed."""

    def __init__(self, package_id: str, missing: list[str]) -> None:
        super().__init__("Missing dependencies")
        self.package_id = package_id
        self.missing = missing

    def to_payload(self) -> dict[str, Any]:
        return {"error": str(self), "dependencies": list(self.missing)}
