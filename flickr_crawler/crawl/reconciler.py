"""
Collection reconciler.

Flickr lists photosets and their contents, and separately every photo of a
user. Photos that belong to no photoset would never be walked, so they are
gathered into a synthetic "Unsorted" collection.

Invariants:
    - Unsorted = all items - union(collection items), by item id.
    - Unsorted plus the real collections covers every item of the user.
      Unsorted itself holds no duplicates.
    - The returned collection list starts with Unsorted.

Usage:
    from flickr_crawler.crawl.reconciler import organize_collections

    ordered = organize_collections(collections, all_items)
"""

from flickr_crawler.core.logger import get_logger
from flickr_crawler.flickr.models import Collection, MediaItem

logger = get_logger(__name__)


def extract_unsorted_items(
    collections: list[Collection],
    all_items: list[MediaItem]
) -> list[MediaItem]:
    """
    Return the items of all_items that belong to no collection.

    The order of all_items is preserved and an id listed twice in
    all_items appears only once in the result.
    """
    organized_ids = {
        item.item_id
        for collection in collections
        for item in collection.items
    }

    unsorted: list[MediaItem] = []
    seen: set[str] = set()

    for item in all_items:
        if item.item_id in organized_ids or item.item_id in seen:
            continue
        seen.add(item.item_id)
        unsorted.append(item)

    return unsorted


def build_unsorted_collection(
    collections: list[Collection],
    all_items: list[MediaItem]
) -> Collection:
    """Build the synthetic Unsorted collection for a user."""
    return Collection.unsorted(extract_unsorted_items(collections, all_items))


def organize_collections(
    collections: list[Collection],
    all_items: list[MediaItem]
) -> list[Collection]:
    """
    Return the full walk order: Unsorted first, then the real collections
    in the order the API listed them.

    An empty Unsorted collection is still included; walking it is a no-op.
    """
    unsorted = build_unsorted_collection(collections, all_items)

    logger.info(
        f"{len(collections)} albums, {len(all_items)} items in total, "
        f"{len(unsorted.items)} not in any album"
    )

    return [unsorted, *collections]
