"""Application configuration: session storage, cookie, HTTP server, sweep."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from sessionkeeper.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.json")


class SessionConfig(BaseModel):
    """Settings for session storage and expiry."""

    backend: str = "memory"  # "memory" | "file"
    expires_in_minutes: int = 60
    storage_dir: str = "storage/sessions"

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.expires_in_minutes)


class CookieConfig(BaseModel):
    """Settings for the cookie carrying the session id."""

    name: str = "session_id"
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "Lax"


class ServerConfig(BaseModel):
    """Settings for the HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080


class SweepConfig(BaseModel):
    """Settings for the periodic expired-session sweep."""

    enabled: bool = False
    interval_seconds: int = 600


class AppConfig(BaseModel):
    """Top-level configuration loaded from config.json."""

    log_level: str = "INFO"
    log_dir: str | None = None
    session: SessionConfig = Field(default_factory=SessionConfig)
    cookie: CookieConfig = Field(default_factory=CookieConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)


def deep_merge_config(
    user: dict[str, object],
    defaults: dict[str, object],
) -> tuple[dict[str, object], bool]:
    """Recursively merge *defaults* into *user*, preserving user values.

    Returns ``(merged_dict, changed)`` where *changed* is True when new keys were added.
    """
    result: dict[str, object] = dict(user)
    changed = False
    new_keys = 0
    for key, default_val in defaults.items():
        if key not in result:
            result[key] = default_val
            changed = True
            new_keys += 1
        elif isinstance(default_val, dict) and isinstance(result[key], dict):
            sub_merged, sub_changed = deep_merge_config(
                result[key],  # type: ignore[arg-type]
                default_val,
            )
            result[key] = sub_merged
            changed = changed or sub_changed
    if new_keys:
        logger.info("Config deep-merge: %d new keys added", new_keys)
    return result, changed


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load and smart-merge the config file.

    A missing file yields Pydantic defaults.  An existing file is deep-merged
    with the current defaults and rewritten when new fields were added, so
    user settings survive upgrades.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.info("No config at %s, using defaults", path)
        return AppConfig()

    try:
        user_data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        msg = f"Failed to read config at {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(user_data, dict):
        msg = f"Config at {path} must be a JSON object"
        raise ConfigError(msg)

    defaults = AppConfig().model_dump(mode="json")
    merged, changed = deep_merge_config(user_data, defaults)

    try:
        config = AppConfig.model_validate(merged)
    except ValidationError as exc:
        msg = f"Invalid config at {path}: {exc}"
        raise ConfigError(msg) from exc

    if changed:
        path.write_text(
            json.dumps(merged, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        logger.info("Extended config with new default fields")
    return config
