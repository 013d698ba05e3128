"""Request bodies accepted by the JSON API (camelCase on the wire)."""

from typing import Any

from pydantic import Field, field_validator

from core.auth.models import ApiModel, ErrorRecord


class RegisterRequest(ApiModel):
    username: str = ""
    password: str = ""
    email: str | None = None
    theme: str | None = None


class LoginRequest(ApiModel):
    username: str = ""
    password: str = ""


class LogoutRequest(ApiModel):
    session_token: str | None = None


class SaveFileRequest(ApiModel):
    user_id: str = ""
    session_token: str | None = None
    path: str = ""
    content: str | None = None


class PackageRequest(ApiModel):
    user_id: str = ""
    session_token: str | None = None
    package_id: str = ""


class LogErrorRequest(ApiModel):
    """Client error report. Never rejected for its shape."""

    user_id: str | None = None
    error: ErrorRecord = Field(default_factory=ErrorRecord)

    @field_validator("user_id", mode="before")
    @classmethod
    def _string_user_id(cls, value: Any) -> str | None:  # noqa: ANN401
        return value if isinstance(value, str) else None
