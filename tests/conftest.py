from __future__ import annotations

from pathlib import Path
import sys
from typing import Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from steam_library.cache.library_cache import LibraryCache
from steam_library.controllers.sync_progress_tracker import SyncProgress
from steam_library.stores.base import DESCRIPTION_UNAVAILABLE, LibraryItem, LibrarySource

# Big enough to pass the error-page size check
VALID_IMAGE = b"\xff\xd8\xff\xe0" + b"\x00" * 2048


class FakeSource(LibrarySource):
    """In-memory LibrarySource that records every call."""

    def __init__(
        self,
        owned: Optional[List[LibraryItem]] = None,
        descriptions: Optional[Dict[int, str]] = None,
        images: Optional[Dict[int, bytes]] = None,
        default_image: Optional[bytes] = VALID_IMAGE,
    ):
        self.owned = owned or []
        self.descriptions = descriptions or {}
        self.images = images or {}
        self.default_image = default_image
        self.owned_calls = []
        self.description_calls = []
        self.image_calls = []
        self.closed = False

    @property
    def source_name(self) -> str:
        return "fake"

    async def fetch_owned_list(self, api_key: str, steam_id: str) -> List[LibraryItem]:
        self.owned_calls.append((api_key, steam_id))
        return [
            LibraryItem(app_id=i.app_id, title=i.title, playtime_minutes=i.playtime_minutes)
            for i in self.owned
        ]

    async def fetch_description(self, app_id: int) -> str:
        self.description_calls.append(app_id)
        return self.descriptions.get(app_id, DESCRIPTION_UNAVAILABLE)

    async def fetch_image_bytes(self, app_id: int) -> Optional[bytes]:
        self.image_calls.append(app_id)
        return self.images.get(app_id, self.default_image)

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays.

    clock() is a matching fake monotonic clock advanced only by sleeps.
    """

    def __init__(self):
        self.calls = []
        self.now = 0.0

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.now += seconds

    def clock(self) -> float:
        return self.now

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def cache(tmp_path: Path) -> LibraryCache:
    return LibraryCache(tmp_path / "data")


@pytest.fixture
def sync_progress() -> SyncProgress:
    return SyncProgress()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
