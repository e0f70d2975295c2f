"""
DescriptionService - Fetches store descriptions under the rate limit.

The store details endpoint blocks clients that call it too quickly, so
descriptions are fetched one at a time with at least DESCRIPTION_FETCH_DELAY
between consecutive requests. The spacing is tracked on the service, so it
holds across enrichment runs sharing it. The collection is flushed to disk
every FLUSH_EVERY fetches so a crash loses little work.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from steam_library.stores.base import LibraryItem

logger = logging.getLogger(__name__)

# Seconds between consecutive appdetails requests
DESCRIPTION_FETCH_DELAY = 1.5

FLUSH_EVERY = 5


class DescriptionService:
    """Sequential, rate-limited description enrichment."""

    def __init__(
        self,
        source,
        sync_progress,
        delay: float = DESCRIPTION_FETCH_DELAY,
        flush_every: int = FLUSH_EVERY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.sync_progress = sync_progress
        self.delay = delay
        self.flush_every = flush_every
        self._sleep = sleep
        self._clock = clock
        self._last_fetch: Optional[float] = None
        # Held while waiting for the next request slot
        self._slot_lock = asyncio.Lock()

    def get_missing(self, items: Iterable[LibraryItem]) -> List[LibraryItem]:
        """Games whose description is empty or a sentinel."""
        return [item for item in items if not item.has_description]

    async def _wait_for_slot(self) -> None:
        if self._last_fetch is None:
            return
        remaining = self.delay - (self._clock() - self._last_fetch)
        if remaining > 0:
            await self._sleep(remaining)

    async def fetch_missing(
        self,
        items: Iterable[LibraryItem],
        flush: Optional[Callable[[], Awaitable[Any]]] = None,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, int]:
        """Fetch descriptions for every game without real text.

        Args:
            items: Games to enrich, visited in the given order
            flush: Coroutine function that persists the collection
            should_continue: Checked before and after waiting for each request;
                False stops the run early

        Returns:
            dict: {attempted, fetched, unavailable, stopped}
        """
        pending = self.get_missing(items)
        attempted = 0
        fetched = 0

        def stopped() -> Dict[str, int]:
            logger.info(f"[Descriptions] Stopped after {attempted}/{len(pending)} games")
            return {'attempted': attempted, 'fetched': fetched,
                    'unavailable': attempted - fetched, 'stopped': 1}

        if pending:
            logger.info(f"[Descriptions] Fetching descriptions for {len(pending)} games...")

        for item in pending:
            if should_continue is not None and not should_continue():
                return stopped()

            async with self._slot_lock:
                await self._wait_for_slot()
                if should_continue is not None and not should_continue():
                    return stopped()
                self._last_fetch = self._clock()

            self.sync_progress.current_game = {
                "label": "descriptions.fetching",
                "values": {"game": item.title}
            }
            item.description = await self.source.fetch_description(item.app_id)
            attempted += 1
            if item.has_description:
                fetched += 1

            await self.sync_progress.increment_descriptions(item.title)

            if flush is not None and attempted % self.flush_every == 0:
                await flush()

        if flush is not None:
            await flush()

        logger.info(f"[Descriptions] Fetched {fetched}/{attempted} descriptions")
        return {'attempted': attempted, 'fetched': fetched,
                'unavailable': attempted - fetched, 'stopped': 0}
