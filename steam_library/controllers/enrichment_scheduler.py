"""Background enrichment of the game library.

Runs after the skeleton list is shown:

    IDLE -> IMAGES_IN_FLIGHT -> IMAGES_DONE -> DESCRIPTIONS_IN_FLIGHT -> COMPLETE

with FAILED reachable from either in-flight phase. The sync-complete flag is
only set once both phases finished for every game, so an interrupted run is
resumed on the next start. Fields already filled are skipped on resume.
"""

import asyncio
import logging
from enum import Enum
from typing import Mapping, Optional, Set

from steam_library.services.reconcile import count_enriched
from steam_library.stores.base import LibraryItem

logger = logging.getLogger(__name__)


class EnrichmentPhase(Enum):
    IDLE = "idle"
    IMAGES_IN_FLIGHT = "images"
    IMAGES_DONE = "images_done"
    DESCRIPTIONS_IN_FLIGHT = "descriptions"
    COMPLETE = "complete"
    FAILED = "failed"


class EnrichmentScheduler:
    """Drives the two-phase background fill of cover art and descriptions.

    Not preemptively cancellable: a refresh bumps the generation instead, and
    a superseded run stops before its next game without touching the
    sync-complete flag.
    """

    def __init__(self, cache, artwork_service, description_service, sync_progress):
        """Initialize EnrichmentScheduler.

        Args:
            cache: LibraryCache used for flushes and the sync-complete flag
            artwork_service: ArtworkService for the image phase
            description_service: DescriptionService for the description phase
            sync_progress: SyncProgress shared with the presentation layer
        """
        self.cache = cache
        self.artwork_service = artwork_service
        self.description_service = description_service
        self.sync_progress = sync_progress
        self.phase = EnrichmentPhase.IDLE
        self.generation = 0
        self._task: Optional[asyncio.Task] = None
        self._task_generation = -1
        # Every run not yet finished, superseded ones included
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def supersede(self) -> int:
        """Mark any in-flight run as stale. Returns the new generation."""
        self.generation += 1
        self._set_phase(EnrichmentPhase.IDLE)
        return self.generation

    def start(self, collection: Mapping[int, LibraryItem]) -> Optional[asyncio.Task]:
        """Start a background run (non-blocking)."""
        if self.is_running and self._task_generation == self.generation:
            logger.warning("[Scheduler] Enrichment already running, not starting another")
            return self._task

        if not collection:
            logger.info("[Scheduler] Library is empty, nothing to enrich")
            return None

        # A superseded task winds down on its own before its next game
        self._task_generation = self.generation
        self._task = asyncio.create_task(self.run(collection, self.generation))
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)
        return self._task

    async def stop(self):
        """Stop every background run, superseded ones included.

        The sync-complete flag is left as it is (False while a run was active).
        """
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._task = None
        logger.info("[Scheduler] Stopped")

    def _set_phase(self, phase: EnrichmentPhase):
        self.phase = phase
        self.sync_progress.status = phase.value
        logger.debug(f"[Scheduler] Phase -> {phase.value}")

    def _is_current(self, generation: int) -> bool:
        return generation == self.generation

    async def run(self, collection: Mapping[int, LibraryItem], generation: Optional[int] = None) -> EnrichmentPhase:
        """Run both phases to completion or failure.

        Args:
            collection: Master collection; its items are mutated in place
            generation: Generation this run belongs to (defaults to current)

        Returns:
            The phase the run ended in
        """
        if generation is None:
            generation = self.generation

        items = list(collection.values())
        with_image, with_description = count_enriched(collection)
        self.sync_progress.error = None
        self.sync_progress.seed(len(items), with_image, with_description)

        async def flush():
            # A superseded run must not overwrite the refreshed cache
            if self._is_current(generation):
                await self.cache.save(collection)

        try:
            self._set_phase(EnrichmentPhase.IMAGES_IN_FLIGHT)
            logger.info(f"[Scheduler] Enriching {len(items)} games "
                        f"({with_image} with art, {with_description} with descriptions)")
            await self.artwork_service.fetch_missing(
                items,
                should_continue=lambda: self._is_current(generation),
            )

            if not self._is_current(generation):
                logger.info("[Scheduler] Run superseded after image phase")
                return self.phase

            await flush()
            self._set_phase(EnrichmentPhase.IMAGES_DONE)

            self._set_phase(EnrichmentPhase.DESCRIPTIONS_IN_FLIGHT)
            result = await self.description_service.fetch_missing(
                items,
                flush=flush,
                should_continue=lambda: self._is_current(generation),
            )

            if result.get('stopped') or not self._is_current(generation):
                logger.info("[Scheduler] Run superseded during description phase")
                return self.phase

            self._set_phase(EnrichmentPhase.COMPLETE)
            await self.cache.save_sync_state(True)
            logger.info("[Scheduler] Enrichment complete")
            return self.phase

        except asyncio.CancelledError:
            if self._is_current(generation):
                self._set_phase(EnrichmentPhase.FAILED)
            raise
        except Exception as e:
            logger.error(f"[Scheduler] Enrichment failed: {e}")
            if self._is_current(generation):
                self._set_phase(EnrichmentPhase.FAILED)
                self.sync_progress.error = str(e)
                await self.cache.save_sync_state(False)
            return EnrichmentPhase.FAILED
