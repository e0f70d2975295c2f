"""
Base types shared by the library core.

LibraryItem is the record for one owned game. LibrarySource defines the
interface every remote library client implements so the reconciliation and
enrichment code can run against the real Steam client or a fake.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from steam_library.utils.metadata import format_playtime


logger = logging.getLogger(__name__)

# Sentinel descriptions. Anything else non-empty is real text.
DESCRIPTION_LOADING = "Loading description..."
DESCRIPTION_UNAVAILABLE = "No description available."
DESCRIPTION_SENTINELS = frozenset({DESCRIPTION_LOADING, DESCRIPTION_UNAVAILABLE})

# Keys written by the previous (C#) cache format
_LEGACY_KEYS = {
    "AppId": "app_id",
    "Title": "title",
    "PlaytimeMinutes": "playtime_minutes",
    "Description": "description",
    "ImagePath": "image_path",
}


@dataclass
class LibraryItem:
    """Represents one owned game"""
    app_id: int
    title: str
    playtime_minutes: int = 0
    description: str = ""
    image_path: str = ""  # Local file, empty means placeholder

    @property
    def has_description(self) -> bool:
        """True once real description text has been fetched."""
        return bool(self.description) and self.description not in DESCRIPTION_SENTINELS

    @property
    def has_image(self) -> bool:
        return bool(self.image_path) and Path(self.image_path).is_file()

    @property
    def playtime_display(self) -> str:
        return format_playtime(self.playtime_minutes)

    def update_base_fields(self, title: str, playtime_minutes: int) -> None:
        """Refresh the remote-owned fields, leaving enrichment untouched."""
        self.title = title
        self.playtime_minutes = max(0, int(playtime_minutes or 0))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["LibraryItem"]:
        """Build an item from a cache entry. Returns None if it has no usable id."""
        if not isinstance(data, dict):
            return None

        normalized = {_LEGACY_KEYS.get(k, k): v for k, v in data.items()}
        try:
            app_id = int(normalized.get("app_id"))
        except (TypeError, ValueError):
            return None

        try:
            playtime = max(0, int(normalized.get("playtime_minutes") or 0))
        except (TypeError, ValueError):
            playtime = 0

        return cls(
            app_id=app_id,
            title=str(normalized.get("title") or ""),
            playtime_minutes=playtime,
            description=str(normalized.get("description") or ""),
            image_path=str(normalized.get("image_path") or ""),
        )


class LibrarySource(ABC):
    """
    Abstract base class for remote library clients.

    Implementations never raise for transient failures: they return an empty
    list, the unavailable sentinel or None so callers can fall back to cache.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the source identifier (e.g., 'steam')"""
        pass

    @abstractmethod
    async def fetch_owned_list(self, api_key: str, steam_id: str) -> List[LibraryItem]:
        """
        Get the skeleton list of owned games.

        Returns:
            List of LibraryItem with id, title and playtime set, or [] on failure.
        """
        pass

    @abstractmethod
    async def fetch_description(self, app_id: int) -> str:
        """
        Get the plain-text description for a game.

        Returns:
            Description text, or DESCRIPTION_UNAVAILABLE on any failure.
        """
        pass

    @abstractmethod
    async def fetch_image_bytes(self, app_id: int) -> Optional[bytes]:
        """
        Download cover art, trying each fallback source in order.

        Returns:
            Image bytes, or None if every source failed.
        """
        pass

    async def close(self) -> None:
        """Release network resources. Default implementation does nothing."""
        return None
