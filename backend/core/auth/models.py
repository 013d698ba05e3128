"""User account, profile and session models.

Models serialize with camelCase keys because the browser shell consumes them
as-is over the JSON API.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_INSTALLED_APPS = ("core-system", "file-manager")


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class UserSettings(ApiModel):
    theme: str | None = None
    animations: bool = True
    font_size: int = 14
    auto_save: bool = True
    sync_enabled: bool = True


class UserStats(ApiModel):
    files: int = 0
    apps: int = 0
    sessions: int = 0


def _as_text(value: Any) -> str | None:  # noqa: ANN401
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


class ErrorRecord(ApiModel):
    """Client-reported error. Unknown fields sent by the client are kept.

    Reports are accepted in any shape: a non-object report becomes the
    message, and non-string known fields are stored as text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    code: str | None = None
    message: str | None = None
    time: str | None = None
    user: str | None = None
    stack: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_message(cls, data: Any) -> Any:  # noqa: ANN401
        if data is None:
            return {}
        if isinstance(data, (dict, cls)):
            return data
        return {"message": _as_text(data)}

    @field_validator("code", "message", "time", "user", "stack", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:  # noqa: ANN401
        return _as_text(value)


class UserProfile(ApiModel, frozen=True):
    """Public view of a user. Never carries credentials."""

    username: str
    email: str | None
    theme: str | None
    settings: UserSettings


class User(ApiModel):
    """User record owned by the UserRegistry."""

    user_id: str
    username: str
    email: str | None = None
    theme: str | None = None
    salt: str
    password_hash: str = Field(alias="hash")
    created_at: datetime = Field(default_factory=_utcnow)
    last_login: datetime = Field(default_factory=_utcnow)
    settings: UserSettings = Field(default_factory=UserSettings)
    installed_apps: list[str] = Field(default_factory=lambda: list(DEFAULT_INSTALLED_APPS))
    error_log: list[ErrorRecord] = Field(default_factory=list)
    stats: UserStats = Field(default_factory=UserStats)

    def profile(self) -> UserProfile:
        return UserProfile(
            username=self.username,
            email=self.email,
            theme=self.theme,
            settings=self.settings.model_copy(),
        )


@dataclass
class Session:
    """Server-side login session."""

    token: str  # 64 hex chars
    user_id: str
    login_time: float  # time.time()
    last_activity: float  # time.time(), refreshed by touch()
