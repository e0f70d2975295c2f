"""
CustomImageService - User supplied cover images.

Responsibilities:
- Validate and copy a user-selected image into the cover cache
- Remove a custom cover and try to restore the store cover art
"""

import logging
from pathlib import Path
from typing import Union

from steam_library.stores.base import LibraryItem

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.bmp', '.gif'}

# Larger files are accepted but logged
MAX_RECOMMENDED_SIZE = 10 * 1024 * 1024


class CustomImageService:
    """Service for custom cover images chosen by the user."""

    def __init__(self, cache, source=None):
        """Initialize CustomImageService.

        Args:
            cache: LibraryCache that owns the cover image files
            source: Optional LibrarySource used to restore store art on removal
        """
        self.cache = cache
        self.source = source

    async def set_custom_image(self, item: LibraryItem, source_path: Union[str, Path]) -> bool:
        """Copy an image file into the cache as the game's cover.

        Returns:
            True if the image was stored and the item's image path updated
        """
        path = Path(source_path)
        if not path.is_file():
            logger.warning(f"[CustomImage] Source file not found: {path}")
            return False

        extension = path.suffix.lower()
        if extension not in VALID_EXTENSIONS:
            logger.warning(f"[CustomImage] Invalid image extension: {extension}")
            return False

        size = path.stat().st_size
        if size > MAX_RECOMMENDED_SIZE:
            logger.warning(f"[CustomImage] Image file is large: {size:,} bytes (max recommended: {MAX_RECOMMENDED_SIZE:,})")

        stored = await self.cache.import_image(item.app_id, path)
        if not stored:
            return False

        item.image_path = stored
        logger.info(f"[CustomImage] Custom cover set for {item.title}: {stored}")
        return True

    async def remove_custom_image(self, item: LibraryItem) -> bool:
        """Delete the cached cover and try to download the store art again.

        The item shows the placeholder if no store art is available.
        """
        if not await self.cache.delete_image(item.app_id):
            return False

        item.image_path = ""
        logger.info(f"[CustomImage] Removed cover for {item.title}")

        if self.source is None:
            return True

        try:
            content = await self.source.fetch_image_bytes(item.app_id)
        except Exception as e:
            logger.error(f"[CustomImage] Error re-downloading cover for {item.title}: {e}")
            return True

        if content:
            path = await self.cache.save_image(item.app_id, content)
            if path:
                item.image_path = path
                logger.info(f"[CustomImage] Restored store cover for {item.title}")
        else:
            logger.info(f"[CustomImage] No store cover for {item.title}, showing placeholder")
        return True
