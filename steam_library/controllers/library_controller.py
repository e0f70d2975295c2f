"""
LibraryController - Presentation boundary of the library core.

Responsibilities:
- Load the cached library on startup and resume unfinished enrichment
- Refresh from Steam: skeleton fetch, reconcile, save, background enrichment
- Own the master collection and the filtered/sorted projection
- Expose progress counters, the focused game and a user-facing error message
- Custom cover images and clearing all local data
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from steam_library.controllers.enrichment_scheduler import EnrichmentScheduler
from steam_library.controllers.projector import LibraryProjector, Listener, SortMode
from steam_library.controllers.sync_progress_tracker import SyncProgress
from steam_library.services.artwork_service import ArtworkService
from steam_library.services.custom_image_service import CustomImageService
from steam_library.services.description_service import DescriptionService
from steam_library.services.reconcile import count_enriched, reconcile
from steam_library.stores.base import LibraryItem

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = (
    "Steam API Key and Steam ID are required. "
    "Please update them in Settings before refreshing."
)
REFRESH_FAILED_MESSAGE = (
    "Could not fetch your library from Steam. Showing your cached library."
)


class ViewMode(Enum):
    LIST = "list"
    GRID = "grid"
    COVER = "cover"
    CAROUSEL = "carousel"

    @property
    def requires_focus(self) -> bool:
        """Centered presentations always have one focused game."""
        return self in (ViewMode.COVER, ViewMode.CAROUSEL)


class LibraryController:
    """Orchestrates cache, remote source, enrichment and projection."""

    def __init__(
        self,
        cache,
        source,
        settings,
        sync_progress: Optional[SyncProgress] = None,
        scheduler: Optional[EnrichmentScheduler] = None,
        projector: Optional[LibraryProjector] = None,
        custom_images: Optional[CustomImageService] = None,
    ):
        """Initialize LibraryController with its collaborators.

        Args:
            cache: LibraryCache instance
            source: LibrarySource (normally SteamLibraryClient)
            settings: Settings holding the API key and Steam ID
            sync_progress: Progress tracker, created if omitted
            scheduler: EnrichmentScheduler, built from the default services if omitted
            projector: LibraryProjector, created if omitted
            custom_images: CustomImageService, created if omitted
        """
        self.cache = cache
        self.source = source
        self.settings = settings
        self.sync_progress = sync_progress or SyncProgress()
        self.projector = projector or LibraryProjector()
        self.scheduler = scheduler or EnrichmentScheduler(
            cache,
            ArtworkService(source, cache, self.sync_progress),
            DescriptionService(source, self.sync_progress),
            self.sync_progress,
        )
        self.custom_images = custom_images or CustomImageService(cache, source)

        self._master: Dict[int, LibraryItem] = {}
        self.view_mode = ViewMode.LIST
        self.error_message = ""
        self._refresh_lock = asyncio.Lock()
        self._is_refreshing = False

    # --- State exposed to the presentation layer ---

    @property
    def master(self) -> Mapping[int, LibraryItem]:
        return MappingProxyType(self._master)

    @property
    def items(self) -> List[LibraryItem]:
        return self.projector.items

    @property
    def focused_item(self) -> Optional[LibraryItem]:
        return self.projector.focused

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def progress(self) -> Dict[str, Any]:
        return self.sync_progress.to_dict()

    def add_listener(self, listener: Listener) -> None:
        """Register a callback receiving (items, focused) after each change."""
        self.projector.add_listener(listener)

    def get_item(self, app_id: int) -> Optional[LibraryItem]:
        return self._master.get(app_id)

    def _apply(self) -> None:
        self.projector.recompute(self._master)

    # --- Startup ---

    async def initialize(self) -> Dict[str, Any]:
        """Show the cached library and resume enrichment if the last run was cut short."""
        self._master = await self.cache.load()
        self._apply()

        resumed = False
        if self._master:
            complete = await self.cache.load_sync_state()
            if not complete:
                with_image, with_description = count_enriched(self._master)
                logger.info(
                    f"[Library] Previous enrichment incomplete "
                    f"({with_image}/{len(self._master)} covers, "
                    f"{with_description}/{len(self._master)} descriptions), resuming"
                )
                self.sync_progress.seed(len(self._master), with_image, with_description)
                self.scheduler.start(self._master)
                resumed = True

        return {'success': True, 'game_count': len(self._master), 'resumed': resumed}

    # --- Commands ---

    async def refresh(self) -> Dict[str, Any]:
        """Fetch the owned list from Steam and merge it into the library."""
        if self._is_refreshing:
            logger.warning("[Library] Refresh already in progress, ignoring request")
            return {'success': False, 'error': 'Refresh already in progress'}

        if not self.settings.has_credentials:
            self.error_message = MISSING_CREDENTIALS_MESSAGE
            logger.warning("[Library] Refresh skipped: missing Steam credentials")
            return {'success': False, 'error': self.error_message}

        async with self._refresh_lock:
            self._is_refreshing = True
            self.error_message = ""
            try:
                self.sync_progress.status = "fetching"
                remote = await self.source.fetch_owned_list(
                    self.settings.api_key, self.settings.steam_id
                )

                if not remote:
                    # Keep showing the cache rather than wiping it
                    self.error_message = REFRESH_FAILED_MESSAGE
                    self.sync_progress.status = self.scheduler.phase.value
                    logger.warning("[Library] Remote list empty or unavailable, keeping cached library")
                    return {'success': False, 'error': self.error_message,
                            'game_count': len(self._master)}

                self.scheduler.supersede()
                self._master = reconcile(remote, self._master)
                self._apply()

                await self.cache.save(self._master)
                await self.cache.save_sync_state(False)
                self.scheduler.start(self._master)

                return {'success': True, 'game_count': len(self._master)}

            except Exception as e:
                logger.error(f"[Library] Error during refresh: {e}")
                self.error_message = f"Failed to refresh library: {e}"
                return {'success': False, 'error': self.error_message}
            finally:
                self._is_refreshing = False

    def set_search_text(self, text: str) -> None:
        self.projector.search_text = text or ""
        self._apply()

    def set_played_only_filter(self, played_only: bool) -> None:
        self.projector.played_only = bool(played_only)
        self._apply()

    def set_sort_mode(self, mode: Union[SortMode, str]) -> None:
        self.projector.sort_mode = SortMode.parse(mode)
        self._apply()

    def select_focus(self, item: Optional[LibraryItem]) -> bool:
        return self.projector.select_focus(item)

    def set_view_mode(self, mode: Union[ViewMode, str]) -> None:
        self.view_mode = mode if isinstance(mode, ViewMode) else ViewMode(str(mode).lower())
        self.projector.set_requires_focus(self.view_mode.requires_focus)

    async def clear_all_data(self) -> Dict[str, Any]:
        """Delete every cached file and empty the library."""
        await self.scheduler.stop()
        self.scheduler.supersede()
        cleared = await self.cache.clear()

        self._master = {}
        self.sync_progress.reset()
        self.error_message = ""
        self._apply()

        logger.info("[Library] All local data cleared")
        return {'success': cleared}

    async def set_custom_image(self, item: LibraryItem, source_path: Union[str, Path]) -> bool:
        if not await self.custom_images.set_custom_image(item, source_path):
            return False
        await self.cache.save(self._master)
        self._apply()
        return True

    async def remove_custom_image(self, item: LibraryItem) -> bool:
        if not await self.custom_images.remove_custom_image(item):
            return False
        await self.cache.save(self._master)
        self._apply()
        return True

    async def close(self) -> None:
        """Stop background work and release network resources."""
        await self.scheduler.stop()
        await self.source.close()
