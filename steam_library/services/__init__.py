"""Services for reconciling and enriching the game library."""

from .artwork_service import ArtworkService
from .custom_image_service import CustomImageService
from .description_service import DescriptionService
from .reconcile import count_enriched, reconcile

__all__ = [
    'ArtworkService',
    'CustomImageService',
    'DescriptionService',
    'count_enriched',
    'reconcile',
]
