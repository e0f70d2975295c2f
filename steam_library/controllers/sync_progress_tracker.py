"""Sync progress tracking for library enrichment.

Tracks overall progress through the enrichment phases with percentage-based
progress calculation for smooth progress bar updates.
"""

import asyncio
from typing import Dict, Any, Tuple


class SyncProgress:
    """Track library refresh and enrichment progress.

    Each phase has an allocated percentage range for smooth progress bar updates.
    """

    # Phase percentage allocations: (start_pct, end_pct)
    PHASE_RANGES = {
        'idle': (0, 0),
        'fetching': (0, 5),
        'images': (5, 50),
        'images_done': (50, 50),
        'descriptions': (50, 100),
        'complete': (100, 100),
        'failed': (100, 100),
    }

    def __init__(self):
        self.status = "idle"  # idle, fetching, images, images_done, descriptions, complete, failed
        self.current_game = {
            "label": None,
            "values": {}
        }
        self.error = None

        self.image_total = 0
        self.image_completed = 0
        self.description_total = 0
        self.description_completed = 0

        # Lock for updates during parallel downloads
        self._lock = asyncio.Lock()

    def reset(self):
        self.status = "idle"
        self.current_game = {"label": None, "values": {}}
        self.error = None
        self.image_total = 0
        self.image_completed = 0
        self.description_total = 0
        self.description_completed = 0

    def seed(self, total: int, images_done: int, descriptions_done: int):
        """Seed counters from what the loaded cache already has."""
        self.image_total = total
        self.image_completed = images_done
        self.description_total = total
        self.description_completed = descriptions_done

    async def increment_images(self, game_title: str) -> int:
        async with self._lock:
            self.image_completed += 1
            self.current_game = {
                "label": "images.downloadProgress",
                "values": {
                    "completed": self.image_completed,
                    "total": self.image_total,
                    "game_title": game_title
                }
            }
            return self.image_completed

    async def increment_descriptions(self, game_title: str) -> int:
        async with self._lock:
            self.description_completed += 1
            self.current_game = {
                "label": "descriptions.fetchProgress",
                "values": {
                    "completed": self.description_completed,
                    "total": self.description_total,
                    "game_title": game_title
                }
            }
            return self.description_completed

    def phase_counters(self, phase: str) -> Tuple[int, int, bool]:
        """Return (current, total, completed) for 'images' or 'descriptions'."""
        if phase == 'images':
            current, total = self.image_completed, self.image_total
        elif phase == 'descriptions':
            current, total = self.description_completed, self.description_total
        else:
            raise ValueError(f"Unknown phase: {phase}")
        return current, total, current >= total

    def _calculate_progress(self) -> int:
        """Calculate progress based on current phase and its percentage allocation."""
        start_pct, end_pct = self.PHASE_RANGES.get(self.status, (0, 0))

        if self.status == 'images' and self.image_total > 0:
            sub_progress = self.image_completed / self.image_total
            return int(start_pct + (end_pct - start_pct) * sub_progress)
        if self.status == 'descriptions' and self.description_total > 0:
            sub_progress = self.description_completed / self.description_total
            return int(start_pct + (end_pct - start_pct) * sub_progress)

        return start_pct

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'current_game': self.current_game,
            'progress_percent': self._calculate_progress(),
            'error': self.error,
            'images': self.phase_counters('images'),
            'descriptions': self.phase_counters('descriptions'),
        }
