"""Filtered and sorted view of the master collection.

The projection is disposable: it is rebuilt from the master collection on
every change to the collection, search text, played-only toggle or sort mode.
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional, Union

from steam_library.stores.base import LibraryItem

logger = logging.getLogger(__name__)


class SortMode(Enum):
    ALPHABETICAL = "alphabetical"
    PLAYTIME = "playtime"
    APP_ID = "app_id"

    @classmethod
    def parse(cls, value: Union["SortMode", str]) -> "SortMode":
        """Accept an enum member or its value/name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for mode in cls:
            if key in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown sort mode: {value!r}")


Listener = Callable[[List[LibraryItem], Optional[LibraryItem]], None]


def project(
    master: Union[Mapping[int, LibraryItem], Iterable[LibraryItem]],
    search_text: str = "",
    played_only: bool = False,
    sort_mode: SortMode = SortMode.ALPHABETICAL,
) -> List[LibraryItem]:
    """Filter and sort the master collection.

    Ties in PLAYTIME and APP_ID keep alphabetical order, so identical inputs
    always give identical output.
    """
    items = list(master.values()) if isinstance(master, Mapping) else list(master)
    sort_mode = SortMode.parse(sort_mode)

    needle = (search_text or "").strip().casefold()
    if needle:
        items = [item for item in items if needle in item.title.casefold()]
    if played_only:
        items = [item for item in items if item.playtime_minutes > 0]

    # Base order; the sorts below are stable
    items.sort(key=lambda item: (item.title.casefold(), item.app_id))

    if sort_mode is SortMode.PLAYTIME:
        items.sort(key=lambda item: item.playtime_minutes, reverse=True)
    elif sort_mode is SortMode.APP_ID:
        items.sort(key=lambda item: item.app_id)

    return items


class LibraryProjector:
    """Holds the current projection and the focused item."""

    def __init__(self):
        self.search_text = ""
        self.played_only = False
        self.sort_mode = SortMode.ALPHABETICAL
        self.requires_focus = False
        self.items: List[LibraryItem] = []
        self.focused: Optional[LibraryItem] = None
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.items, self.focused)
            except Exception as e:
                logger.error(f"[Library] Projection listener failed: {e}")

    def _find(self, app_id: int) -> Optional[LibraryItem]:
        for item in self.items:
            if item.app_id == app_id:
                return item
        return None

    def recompute(self, master: Mapping[int, LibraryItem]) -> List[LibraryItem]:
        """Rebuild the projection and re-anchor the focus."""
        self.items = project(master, self.search_text, self.played_only, self.sort_mode)

        previous = self.focused
        self.focused = self._find(previous.app_id) if previous is not None else None
        if self.focused is None and self.requires_focus and self.items:
            self.focused = self.items[0]

        self._notify()
        return self.items

    def select_focus(self, item: Optional[LibraryItem]) -> bool:
        """Focus an item in the projection. None clears the focus."""
        if item is None:
            self.focused = None
        else:
            found = self._find(item.app_id)
            if found is None:
                logger.warning(f"[Library] Cannot focus {item.title}: not in current view")
                return False
            self.focused = found
        self._notify()
        return True

    def set_requires_focus(self, required: bool) -> None:
        """Centered presentations (cover, carousel) always need a focused item."""
        self.requires_focus = required
        if required and self.focused is None and self.items:
            self.focused = self.items[0]
            self._notify()
