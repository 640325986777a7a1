"""Path utilities for the OneDrive sync plugin.

- Resolves the user-scope application data directory
- Provides the canonical path for the plugin configuration file
- Normalizes local database paths used as settings keys

Note: the host runs on Windows. Avoids extra deps and uses %APPDATA%.
"""
from __future__ import annotations

import os
from pathlib import Path


_APP_DIR_NAME = "KeePassOneDriveSync"
_CONFIG_FILENAME = "plugin_config.json"


def get_user_app_data_dir() -> Path:
    """Return the user-scope application data directory for the plugin.

    Prefers %APPDATA% (Roaming). Falls back to ~/AppData/Roaming if unset.
    """
    appdata = os.getenv("APPDATA")
    if appdata:
        base = Path(appdata)
    else:
        base = Path.home() / "AppData" / "Roaming"
    return base / _APP_DIR_NAME


def ensure_user_app_data_dir() -> Path:
    """Ensure the user app data directory exists and return it."""
    p = get_user_app_data_dir()
    p.mkdir(parents=True, exist_ok=True)
    return p


def plugin_config_path() -> Path:
    """Return the full path to the plugin configuration JSON file."""
    return ensure_user_app_data_dir() / _CONFIG_FILENAME


def normalize_database_path(p: str | os.PathLike[str]) -> str:
    """Normalize a local database path for use as a settings key.

    - Expands user (~)
    - Makes absolute (without requiring the path to exist)
    - Normalizes case on Windows (via os.path.normcase)
    """
    abs_path = Path(p).expanduser().resolve(strict=False)
    return os.path.normcase(str(abs_path))
