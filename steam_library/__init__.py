"""MySteamLibrary core: Steam library sync, local cache and enrichment."""

__version__ = "1.0.0"
