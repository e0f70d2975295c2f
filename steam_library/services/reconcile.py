"""
Reconciliation of a fresh remote game list against the local cache.

The remote list decides membership and owns title/playtime. The cache owns
description and cover image, which only background enrichment overwrites.
"""

import logging
from typing import Dict, Iterable, Mapping, Tuple

from steam_library.stores.base import DESCRIPTION_LOADING, LibraryItem

logger = logging.getLogger(__name__)


def reconcile(
    remote_items: Iterable[LibraryItem],
    cached: Mapping[int, LibraryItem],
) -> Dict[int, LibraryItem]:
    """Merge the remote list into the cached collection by app id.

    Items still owned keep their cached object (and so its enrichment) with
    title and playtime refreshed. New items start with the loading sentinel and
    no image. Cache-only items are dropped.

    Args:
        remote_items: Skeleton items from the remote source
        cached: Current collection keyed by app id

    Returns:
        Merged collection keyed by app id
    """
    merged: Dict[int, LibraryItem] = {}
    added = 0

    for remote in remote_items:
        existing = merged.get(remote.app_id) or cached.get(remote.app_id)
        if existing is not None:
            existing.update_base_fields(remote.title, remote.playtime_minutes)
            merged[remote.app_id] = existing
            continue

        merged[remote.app_id] = LibraryItem(
            app_id=remote.app_id,
            title=remote.title,
            playtime_minutes=max(0, remote.playtime_minutes),
            description=DESCRIPTION_LOADING,
            image_path="",
        )
        added += 1

    dropped = sum(1 for app_id in cached if app_id not in merged)
    logger.info(
        f"[Library] Reconciled {len(merged)} games "
        f"({added} new, {len(merged) - added} kept, {dropped} no longer owned)"
    )
    return merged


def count_enriched(collection: Mapping[int, LibraryItem]) -> Tuple[int, int]:
    """Count items that already have a local image and real description text.

    Returns:
        (with_image, with_description)
    """
    with_image = sum(1 for item in collection.values() if item.has_image)
    with_description = sum(1 for item in collection.values() if item.has_description)
    return with_image, with_description
