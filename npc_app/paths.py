"""
npc_app/paths.py -- Path resolution for editor data.

Uses platformdirs for the per-user data directory.  Zone documents live
under ``<data dir>/zones`` unless the settings point somewhere else.
"""

from __future__ import annotations

import os

from platformdirs import user_data_dir

_APP_NAME = "NpcEditor"
_APP_AUTHOR = "NpcEditor"

SETTINGS_FILENAME = "settings.json"
ZONES_DIRNAME = "zones"


def get_user_data_dir() -> str:
    """Return the platform-appropriate user data directory (created if missing)."""
    path = user_data_dir(_APP_NAME, _APP_AUTHOR)
    os.makedirs(path, exist_ok=True)
    return path


def get_settings_path() -> str:
    return os.path.join(get_user_data_dir(), SETTINGS_FILENAME)


def get_zones_dir(data_dir: str | None = None) -> str:
    """Directory holding one ``<zone>.json`` per scope."""
    return os.path.join(data_dir or get_user_data_dir(), ZONES_DIRNAME)
