"""Application settings for Typerace."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

log = logging.getLogger(__name__)

SETTINGS_FILE = Path("settings.json")
ENV_PREFIX = "TYPERACE_"


class AppSettings(BaseModel):
    """Application settings with validation."""

    server_url: str = Field(
        default="ws://localhost:4000", description="Room server WebSocket URL"
    )
    stats_api_url: str = Field(
        default="",
        description="Leaderboard HTTP endpoint; empty keeps records in the local database",
    )
    db_path: str = Field(default="data/leaderboard.db", description="Local leaderboard database")
    countdown_seconds: int = Field(
        default=5, ge=0, le=60, description="Pre-race countdown length (s)"
    )
    settle_delay_ms: int = Field(
        default=1000, ge=0, description="Pause between race start and countdown (ms)"
    )
    request_timeout_ms: int = Field(
        default=10000, gt=0, description="Wait for a server reply before giving up (ms)"
    )
    http_timeout_sec: float = Field(
        default=5.0, gt=0, description="Leaderboard HTTP timeout (s)"
    )
    sound_enabled: bool = Field(default=True, description="Play key sounds")
    sfx_dir: str = Field(default="assets/sfx", description="Directory with key sounds")
    passages_file: str = Field(
        default="assets/texts/passages.txt", description="Extra race passages"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    model_config = ConfigDict(extra="ignore")

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v):
        if not v.startswith(("ws://", "wss://")):
            raise ValueError(f"server_url must be a ws:// or wss:// URL, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return level


def _read_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Ignoring unreadable settings file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Ignoring settings file %s: expected an object", path)
        return {}
    return data


def _read_env(environ) -> Dict[str, Any]:
    out = {}
    for name in AppSettings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            out[name] = environ[key]
    return out


def load_settings(path: Optional[Path] = None, environ=None) -> AppSettings:
    """
    Settings from defaults, then ``settings.json``, then TYPERACE_* env vars.
    A field that fails validation falls back to its default and is logged.
    """
    raw = _read_file(path or SETTINGS_FILE)
    raw.update(_read_env(os.environ if environ is None else environ))
    try:
        return AppSettings(**raw)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        for name in sorted(bad):
            log.warning("Invalid setting %s=%r, using default", name, raw.get(name))
        return AppSettings(**{k: v for k, v in raw.items() if k not in bad})
