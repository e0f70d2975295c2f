"""MySteamLibrary file path constants and utilities."""

import os
from pathlib import Path


# Data directory (override with STEAM_LIBRARY_DATA_DIR)
DEFAULT_DATA_DIR = os.path.expanduser("~/.local/share/mysteamlibrary")

# Cache and data files
LIBRARY_CACHE_FILE = "library_cache.json"
SYNC_STATE_FILE = "sync_state.json"
SETTINGS_FILE = "settings.json"
IMAGES_DIR_NAME = "cache"


def get_data_dir() -> Path:
    """Get the data directory, honouring the STEAM_LIBRARY_DATA_DIR override."""
    override = os.environ.get("STEAM_LIBRARY_DATA_DIR")
    if override:
        return Path(os.path.expanduser(override))
    return Path(DEFAULT_DATA_DIR)


def get_settings_path(data_dir: Path = None) -> Path:
    """Get path to the settings file."""
    return (data_dir or get_data_dir()) / SETTINGS_FILE
