"""Controllers for library state, projection and background enrichment."""

from .enrichment_scheduler import EnrichmentPhase, EnrichmentScheduler
from .library_controller import (
    MISSING_CREDENTIALS_MESSAGE,
    REFRESH_FAILED_MESSAGE,
    LibraryController,
    ViewMode,
)
from .projector import LibraryProjector, SortMode, project
from .sync_progress_tracker import SyncProgress

__all__ = [
    'EnrichmentPhase',
    'EnrichmentScheduler',
    'LibraryController',
    'LibraryProjector',
    'MISSING_CREDENTIALS_MESSAGE',
    'REFRESH_FAILED_MESSAGE',
    'SortMode',
    'SyncProgress',
    'ViewMode',
    'project',
]
