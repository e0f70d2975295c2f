"""User settings: Steam Web API credentials and local Steam path.

Persisted as settings.json in the data directory. STEAM_API_KEY and STEAM_ID
environment variables override the stored credentials.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from steam_library.utils.paths import get_settings_path

logger = logging.getLogger(__name__)

DEFAULT_STEAM_PATH = os.path.expanduser("~/.steam/steam")


@dataclass
class Settings:
    """Configuration needed to talk to the Steam Web API"""
    api_key: str = ""
    steam_id: str = ""
    steam_path: str = DEFAULT_STEAM_PATH

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key.strip()) and bool(self.steam_id.strip())


def load_settings(path: Optional[Path] = None, use_env: bool = True) -> Settings:
    """Load settings, falling back to defaults if the file is missing or broken."""
    settings_path = path or get_settings_path()
    settings = Settings()

    try:
        if settings_path.exists():
            with open(settings_path, 'r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                known = {f.name for f in fields(Settings)}
                for key, value in data.items():
                    if key in known and isinstance(value, str):
                        setattr(settings, key, value)
    except Exception as e:
        logger.error(f"[Settings] Error loading settings: {e}")

    if use_env:
        settings.api_key = os.environ.get("STEAM_API_KEY", settings.api_key)
        settings.steam_id = os.environ.get("STEAM_ID", settings.steam_id)

    return settings


def save_settings(settings: Settings, path: Optional[Path] = None) -> bool:
    """Save settings, keeping unrelated keys already in the file."""
    settings_path = path or get_settings_path()
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)

        existing = {}
        if settings_path.exists():
            try:
                with open(settings_path, 'r') as f:
                    existing = json.load(f)
            except ValueError:
                existing = {}
        if not isinstance(existing, dict):
            existing = {}

        existing.update(asdict(settings))
        with open(settings_path, 'w') as f:
            json.dump(existing, f, indent=2)

        logger.info("[Settings] Saved settings")
        return True
    except Exception as e:
        logger.error(f"[Settings] Error saving settings: {e}")
        return False
