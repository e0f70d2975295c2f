"""Library cache.

Stores the full owned-games collection, the sync-complete flag and one cover
image per game. This lives in user data (~/.local/share/mysteamlibrary) so it
survives reinstalls.

All disk access goes through one asyncio.Lock so a load never observes a save
in progress. Blocking file I/O runs in the default executor.
"""

import asyncio
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from steam_library.stores.base import LibraryItem
from steam_library.utils.paths import (
    IMAGES_DIR_NAME,
    LIBRARY_CACHE_FILE,
    SYNC_STATE_FILE,
    get_data_dir,
)

logger = logging.getLogger(__name__)

CACHE_VERSION = 1

Collection = Dict[int, LibraryItem]


def _atomic_write_text(path: Path, text: str) -> None:
    """Write to a temp file in the same directory, fsync, then replace."""
    _atomic_write_bytes(path, text.encode("utf-8"))


def _atomic_write_bytes(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        tmp_path.replace(path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


class LibraryCache:
    """Persistent store for the game collection, sync state and cover art."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir = Path(data_dir) if data_dir else get_data_dir()
        self.cache_path = self.data_dir / LIBRARY_CACHE_FILE
        self.sync_state_path = self.data_dir / SYNC_STATE_FILE
        self.images_dir = self.data_dir / IMAGES_DIR_NAME
        self._lock = asyncio.Lock()

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # --- Collection ---

    def _read_collection(self) -> Collection:
        if not self.cache_path.exists():
            return {}

        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"[Cache] Error loading library cache, treating as empty: {e}")
            return {}

        # Older caches were a bare list of games
        entries = data.get("games", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            logger.error("[Cache] Library cache has unexpected layout, treating as empty")
            return {}

        collection: Collection = {}
        for entry in entries:
            item = LibraryItem.from_dict(entry)
            if item is None:
                logger.debug(f"[Cache] Skipping cache entry without app id: {entry!r}")
                continue
            # Image deleted behind our back: show placeholder and refetch
            if item.image_path and not Path(item.image_path).is_file():
                item.image_path = ""
            collection[item.app_id] = item
        return collection

    def _write_collection(self, items: Iterable[LibraryItem]) -> int:
        games = [item.to_dict() for item in items]
        payload = {"version": CACHE_VERSION, "games": games}
        _atomic_write_text(self.cache_path, json.dumps(payload, indent=2))
        return len(games)

    async def load(self) -> Collection:
        """Load the cached collection. Returns {} if absent or malformed."""
        async with self._lock:
            try:
                collection = await self._run(self._read_collection)
            except Exception as e:
                logger.error(f"[Cache] Unexpected error loading library cache: {e}")
                return {}
        logger.info(f"[Cache] Loaded {len(collection)} games from cache")
        return collection

    async def save(self, collection: Union[Collection, Iterable[LibraryItem]]) -> bool:
        """Overwrite the cached collection. Errors are logged, not raised."""
        items = list(collection.values()) if isinstance(collection, dict) else list(collection)
        async with self._lock:
            try:
                count = await self._run(self._write_collection, items)
            except Exception as e:
                logger.error(f"[Cache] Error saving library cache: {e}")
                return False
        logger.debug(f"[Cache] Saved {count} games to cache")
        return True

    # --- Sync state ---

    def _read_sync_state(self) -> bool:
        if not self.sync_state_path.exists():
            return False
        try:
            with open(self.sync_state_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"[Cache] Error loading sync state: {e}")
            return False
        if isinstance(data, dict):
            return data.get("sync_complete") is True
        return data is True

    def _write_sync_state(self, complete: bool) -> None:
        payload = {
            "sync_complete": bool(complete),
            "updated_at": datetime.now().isoformat(),
        }
        _atomic_write_text(self.sync_state_path, json.dumps(payload, indent=2))

    async def load_sync_state(self) -> bool:
        """Return True if the last enrichment pass ran to completion."""
        async with self._lock:
            try:
                return await self._run(self._read_sync_state)
            except Exception as e:
                logger.error(f"[Cache] Unexpected error loading sync state: {e}")
                return False

    async def save_sync_state(self, complete: bool) -> bool:
        async with self._lock:
            try:
                await self._run(self._write_sync_state, complete)
            except Exception as e:
                logger.error(f"[Cache] Error saving sync state: {e}")
                return False
        logger.info(f"[Cache] Sync state set to {'complete' if complete else 'incomplete'}")
        return True

    # --- Images ---

    def resolve_image_path(self, app_id: int) -> Path:
        """Path of the cover image for a game (may not exist yet)."""
        return self.images_dir / f"{app_id}_cover.jpg"

    def _write_image(self, app_id: int, content: bytes) -> str:
        path = self.resolve_image_path(app_id)
        _atomic_write_bytes(path, content)
        return str(path)

    async def save_image(self, app_id: int, content: bytes) -> Optional[str]:
        """Store cover art for a game. Returns the local path, or None on error."""
        try:
            return await self._run(self._write_image, app_id, content)
        except Exception as e:
            logger.error(f"[Cache] Error saving image for {app_id}: {e}")
            return None

    def _copy_image(self, app_id: int, source: Path) -> str:
        path = self.resolve_image_path(app_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, path)
        return str(path)

    async def import_image(self, app_id: int, source: Union[str, Path]) -> Optional[str]:
        """Copy a user-supplied image into the cache. Returns the local path."""
        try:
            return await self._run(self._copy_image, app_id, Path(source))
        except Exception as e:
            logger.error(f"[Cache] Error importing image {source} for {app_id}: {e}")
            return None

    async def delete_image(self, app_id: int) -> bool:
        path = self.resolve_image_path(app_id)
        try:
            await self._run(lambda: path.unlink(missing_ok=True))
            return True
        except Exception as e:
            logger.error(f"[Cache] Failed to delete image {path}: {e}")
            return False

    # --- Reset ---

    def _remove_all(self) -> int:
        removed = 0
        for path in (self.cache_path, self.sync_state_path):
            if path.exists():
                path.unlink()
                removed += 1
        if self.images_dir.exists():
            for file in self.images_dir.glob("*"):
                if file.is_file():
                    file.unlink()
                    removed += 1
        return removed

    async def clear(self) -> bool:
        """Delete the cache document, sync state and all cached images."""
        async with self._lock:
            try:
                removed = await self._run(self._remove_all)
            except Exception as e:
                logger.error(f"[Cache] Error clearing cache: {e}")
                return False
        logger.info(f"[Cache] Cleared {removed} cached files")
        return True
