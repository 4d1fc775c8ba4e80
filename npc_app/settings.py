"""
npc_app/settings.py -- Editor settings.

Settings are read from ``settings.json`` in the user data directory and
validated with pydantic.  Two environment variables override the file:

    NPC_EDITOR_DATA_DIR     root directory for zone documents
    NPC_EDITOR_LOG_LEVEL    logging level name (DEBUG, INFO, ...)

A missing or invalid settings file falls back to the defaults.

Usage::

    from npc_app.settings import load_settings

    settings = load_settings()
    settings.zones_dir
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from npc_app.paths import get_settings_path, get_user_data_dir, get_zones_dir
from npc_engine.utils import safe_read_json, safe_write_json

logger = logging.getLogger(__name__)

ENV_DATA_DIR = "NPC_EDITOR_DATA_DIR"
ENV_LOG_LEVEL = "NPC_EDITOR_LOG_LEVEL"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class EditorSettings(BaseModel):
    """Validated editor settings."""

    model_config = ConfigDict(extra="ignore")

    data_dir: Optional[str] = None
    default_scope: str = "default"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def zones_dir(self) -> str:
        return get_zones_dir(self.data_dir or get_user_data_dir())


def load_settings(path: Optional[str] = None,
                  environ: Optional[dict] = None) -> EditorSettings:
    """Read settings from *path* (default: the user settings file) plus env overrides."""
    environ = os.environ if environ is None else environ
    path = path or get_settings_path()

    raw = safe_read_json(path, default={})
    if not isinstance(raw, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", path)
        raw = {}
    try:
        settings = EditorSettings.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Invalid settings in %s, using defaults: %s", path, exc)
        settings = EditorSettings()

    overrides = {}
    if environ.get(ENV_DATA_DIR):
        overrides["data_dir"] = environ[ENV_DATA_DIR]
    if environ.get(ENV_LOG_LEVEL):
        overrides["log_level"] = environ[ENV_LOG_LEVEL]
    if overrides:
        try:
            settings = EditorSettings.model_validate({**settings.model_dump(), **overrides})
        except ValidationError as exc:
            logger.warning("Ignoring invalid environment overrides: %s", exc)
    return settings


def save_settings(settings: EditorSettings, path: Optional[str] = None) -> None:
    safe_write_json(path or get_settings_path(), settings.model_dump())
