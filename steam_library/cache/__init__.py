"""Local cache for the game collection, sync state and cover art."""

from .library_cache import CACHE_VERSION, Collection, LibraryCache

__all__ = [
    "CACHE_VERSION",
    "Collection",
    "LibraryCache",
]
