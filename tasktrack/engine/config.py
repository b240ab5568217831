"""
TaskTrack Configuration — Load and validate tasktrack.yaml at startup.

Usage:
    from tasktrack.engine.config import load_config, get_config

Environment overrides (applied after the YAML file):
    TASKTRACK_BACKEND_URL   → backend.url
    TASKTRACK_BACKEND_KEY   → backend.anon_key
    TASKTRACK_ENVIRONMENT   → environment
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from tasktrack.engine.errors import ConfigError

CONFIG_FILE_NAME = "tasktrack.yaml"

ENV_OVERRIDES = {
    "TASKTRACK_BACKEND_URL": ("backend", "url"),
    "TASKTRACK_BACKEND_KEY": ("backend", "anon_key"),
    "TASKTRACK_ENVIRONMENT": (None, "environment"),
}


# ---------------------------------------------------------------------------
# Pydantic models for tasktrack.yaml
# ---------------------------------------------------------------------------

class BackendConfig(BaseModel):
    url: str = "http://localhost:54321"
    anon_key: str = ""
    timeout: float = 15.0
    tasks_table: str = "tasks"
    max_connections: int = 10
    max_keepalive: int = 5

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class NotificationConfig(BaseModel):
    success_seconds: float = 4.0
    info_seconds: float = 4.0
    error_seconds: float = 5.0
    history_size: int = Field(default=20, ge=1)


class AuthConfig(BaseModel):
    redirect_delay_seconds: float = Field(default=1.5, ge=0)
    entry_route: str = "/"
    dashboard_route: str = "/dashboard"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".tasktrack/logs"
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class PlatformConfig(BaseModel):
    """Root model for tasktrack.yaml."""
    name: str = "TaskTrack"
    environment: str = "dev"

    backend: BackendConfig = BackendConfig()
    notifications: NotificationConfig = NotificationConfig()
    auth: AuthConfig = AuthConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[PlatformConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for tasktrack.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists():
            return parent
    return current


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay TASKTRACK_* environment variables onto the raw config dict."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None or value.strip() == "":
            continue
        if section is None:
            data[key] = value.strip()
        else:
            data.setdefault(section, {})
            data[section][key] = value.strip()
    return data


def load_config(config_path: Optional[str] = None) -> PlatformConfig:
    """
    Load and validate tasktrack.yaml.

    Args:
        config_path: Explicit path to tasktrack.yaml. If None, auto-discovers.

    Returns:
        Validated PlatformConfig instance. Defaults are used when no file
        exists; environment overrides apply either way.

    Raises:
        ConfigError: the file is not a mapping or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILE_NAME)

    path = Path(config_path)
    raw: Any = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping", path=str(path))

    # Accept both a flat file and one nested under "tasktrack:"
    data = dict(raw.get("tasktrack", raw))
    data = _apply_env_overrides(data)

    try:
        _config = PlatformConfig(**data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}",
            path=str(path),
            problems=[err["msg"] for err in e.errors()],
        ) from e
    return _config


def get_config() -> PlatformConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config (tests, reloads)."""
    global _config
    _config = None


def get_environment() -> str:
    """Get the current environment."""
    return get_config().environment
