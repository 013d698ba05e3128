"""Desktop server configuration via environment variables."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource

from core.auth.session_store import DEFAULT_SESSION_TTL_SECONDS
from core.maintenance import BACKUP_INTERVAL_SECONDS, SESSION_SWEEP_INTERVAL_SECONDS

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


def parse_origins(value: str | list[str]) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string.

    Raises ValueError when nothing usable is left.
    """
    if isinstance(value, list):
        origins = value
    elif value.strip().startswith("["):
        try:
            origins = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(origins, list) or not all(isinstance(item, str) for item in origins):
            raise ValueError("JSON value must be an array of strings")
    else:
        origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    if not origins:
        raise ValueError("Origin list must not be empty")
    return origins


class _OriginsEnvSettingsSource(EnvSettingsSource):
    """Hand cors_origins to its validator as the raw string so CSV works too."""

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name == "cors_origins" and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class DesktopServerSettings(BaseSettings):
    model_config = {"env_prefix": "DESKTOP_"}

    data_dir: str = "backend/data/user_data"
    backup_dir: str = "backend/data/backups"
    log_dir: str = "backend/logs"
    static_dir: str = "frontend/public"

    # YAML package catalog; the bundled core/packages/catalog.yaml when unset
    catalog_path: Path | None = None

    cors_origins: list[str] = ["*"]

    session_ttl_seconds: float = Field(default=DEFAULT_SESSION_TTL_SECONDS, gt=0)
    session_sweep_interval_seconds: float = Field(default=SESSION_SWEEP_INTERVAL_SECONDS, gt=0)
    backup_interval_seconds: float = Field(default=BACKUP_INTERVAL_SECONDS, gt=0)

    # Request bodies larger than this are rejected with 413
    max_body_bytes: int = 50 * 1024 * 1024

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origins(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, _OriginsEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
