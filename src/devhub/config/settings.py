from __future__ import annotations

import json
import os
import tomllib
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .paths import default_config_path, default_data_dir, expand_path

CONFIG_ENV_VAR = "DEVHUB_CONFIG"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class DatabaseConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    path: str = Field(default_factory=lambda: str(default_data_dir()))


class StatusConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    log_capacity: int = Field(default=500, ge=1)
    low_battery_threshold: int = Field(default=20, ge=0, le=100)


class TransportConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    connect_timeout: float = Field(default=5.0, gt=0)
    probe_timeout: float = Field(default=2.0, gt=0)


class AppConfig(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    autostart: bool = True
    theme: Theme = Theme.SYSTEM


class Settings(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    app: AppConfig = Field(default_factory=AppConfig)


def resolve_config_path(allow_missing: bool = False) -> tuple[Path, bool]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = expand_path(env_path)
        if not allow_missing and not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to missing file: {path}")
        return path, path.exists()

    path = default_config_path()
    return path, path.exists()


def load_settings(path: Path) -> Settings:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in config file: {path}\n{exc}") from exc

    try:
        return Settings.model_validate(data or {})
    except ValidationError as exc:
        raise ValueError(f"Invalid config file: {path}\n{exc}") from exc


@lru_cache
def get_settings() -> Settings:
    path, exists = resolve_config_path(allow_missing=False)
    if exists:
        return load_settings(path)
    return Settings()


def data_dir_from_settings(settings: Settings) -> Path:
    return expand_path(settings.database.path)


def _toml_string(value: str) -> str:
    return json.dumps(value)


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


def render_settings_toml(settings: Settings) -> str:
    lines = [
        "# devhub configuration",
        "",
        "[database]",
        f"path = {_toml_string(settings.database.path)}",
        "",
        "[status]",
        f"log_capacity = {settings.status.log_capacity}",
        f"low_battery_threshold = {settings.status.low_battery_threshold}",
        "",
        "[transport]",
        f"connect_timeout = {settings.transport.connect_timeout}",
        f"probe_timeout = {settings.transport.probe_timeout}",
        "",
        "[app]",
        f"autostart = {_toml_bool(settings.app.autostart)}",
        f"theme = {_toml_string(settings.app.theme.value)}",
        "",
    ]
    return "\n".join(lines)


def write_settings(settings: Settings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_settings_toml(settings))


def update_app_settings(settings: Settings, **changes: object) -> Settings:
    """Return a copy of ``settings`` with fields of the ``[app]`` section replaced."""
    try:
        app = AppConfig.model_validate({**settings.app.model_dump(), **changes})
    except ValidationError as exc:
        raise ValueError(f"Invalid application setting: {exc}") from exc
    return settings.model_copy(update={"app": app})
