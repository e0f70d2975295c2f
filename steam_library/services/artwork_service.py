"""
ArtworkService - Handles cover art fetching and caching.

Responsibilities:
- Find games without a local cover image
- Download cover art with bounded parallelism and per-game timeout
- Store images through the library cache and update the game's image path
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from steam_library.stores.base import LibraryItem

logger = logging.getLogger(__name__)

# Image CDN is not rate limited, so downloads run in parallel
IMAGE_CONCURRENCY = 8

# Seconds per game across all fallback sources
IMAGE_FETCH_TIMEOUT = 60


class ArtworkService:
    """Service for fetching and caching cover art."""

    def __init__(self, source, cache, sync_progress, concurrency: int = IMAGE_CONCURRENCY):
        """Initialize ArtworkService.

        Args:
            source: LibrarySource used to download image bytes
            cache: LibraryCache that stores the images
            sync_progress: SyncProgress instance for tracking progress
            concurrency: Maximum parallel downloads
        """
        self.source = source
        self.cache = cache
        self.sync_progress = sync_progress
        self.concurrency = concurrency

    def get_missing(self, items: Iterable[LibraryItem]) -> List[LibraryItem]:
        """Games without a usable local image."""
        return [item for item in items if not item.has_image]

    async def fetch_for_game(self, item: LibraryItem) -> Dict[str, Any]:
        """Fetch and store cover art for one game (caller manages concurrency).

        Returns:
            dict: {success: bool, item: LibraryItem, timed_out: bool, error: str}
        """
        try:
            content = await asyncio.wait_for(
                self.source.fetch_image_bytes(item.app_id),
                timeout=IMAGE_FETCH_TIMEOUT
            )
        except asyncio.TimeoutError:
            logger.warning(f"[Artwork] Timed out for {item.title} after {IMAGE_FETCH_TIMEOUT}s")
            return {'success': False, 'timed_out': True, 'item': item}

        if not content:
            return {'success': False, 'item': item, 'error': 'No image available'}

        path = await self.cache.save_image(item.app_id, content)
        if not path:
            return {'success': False, 'item': item, 'error': 'Could not save image'}

        item.image_path = path
        return {'success': True, 'item': item}

    async def fetch_with_progress(
        self,
        item: LibraryItem,
        semaphore: asyncio.Semaphore,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, Any]:
        """Fetch art for one game under the semaphore and count it as attempted.

        Games reached after should_continue turns False are skipped uncounted.
        """
        async with semaphore:
            if should_continue is not None and not should_continue():
                return {'success': False, 'skipped': True, 'item': item}

            self.sync_progress.current_game = {
                "label": "images.downloading",
                "values": {"game": item.title}
            }
            try:
                result = await self.fetch_for_game(item)
            except Exception as e:
                logger.error(f"[Artwork] Error fetching cover for {item.title}: {e}")
                result = {'success': False, 'error': str(e), 'item': item}

            # Counters belong to the newer run once this one is stopped
            if should_continue is not None and not should_continue():
                return result

            count = await self.sync_progress.increment_images(item.title)
            status = "ok" if result['success'] else "placeholder"
            logger.debug(f"[Artwork] [{count}/{self.sync_progress.image_total}] {item.title}: {status}")
            return result

    async def fetch_missing(
        self,
        items: Iterable[LibraryItem],
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, int]:
        """Download cover art for every game lacking a local image.

        Failures leave the placeholder and never stop the batch. Once
        should_continue returns False the remaining downloads are skipped.

        Returns:
            dict: {attempted, downloaded, failed}
        """
        missing = self.get_missing(items)
        if not missing:
            logger.info("[Artwork] All games already have cover art")
            return {'attempted': 0, 'downloaded': 0, 'failed': 0}

        logger.info(f"[Artwork] Downloading cover art for {len(missing)} games...")
        semaphore = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(
            *(self.fetch_with_progress(item, semaphore, should_continue) for item in missing)
        )

        attempted = sum(1 for r in results if not r.get('skipped'))
        downloaded = sum(1 for r in results if r['success'])
        if attempted < len(missing):
            logger.info(f"[Artwork] Stopped, skipped {len(missing) - attempted} covers")
        logger.info(f"[Artwork] Downloaded {downloaded}/{attempted} covers")
        return {
            'attempted': attempted,
            'downloaded': downloaded,
            'failed': attempted - downloaded,
        }
