"""Remote library sources and the shared LibraryItem record."""

from .base import (
    DESCRIPTION_LOADING,
    DESCRIPTION_SENTINELS,
    DESCRIPTION_UNAVAILABLE,
    LibraryItem,
    LibrarySource,
)
from .steam import SteamLibraryClient

__all__ = [
    "DESCRIPTION_LOADING",
    "DESCRIPTION_SENTINELS",
    "DESCRIPTION_UNAVAILABLE",
    "LibraryItem",
    "LibrarySource",
    "SteamLibraryClient",
]
