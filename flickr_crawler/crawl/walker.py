"""
Newest-first collection walk with early termination.

New uploads always carry an upload date at or after everything seen by
an earlier completed pass. Walking a collection newest-first therefore
means that the first item uploaded strictly before the watermark marks
the point from which everything else was already covered, and the walk
can stop there.

Early termination is controlled by CrawlerConfig.check_last_crawl_date;
turning it off forces a full re-crawl (already recorded items are still
skipped by the lookup step).
"""

from dataclasses import dataclass
from datetime import datetime

from flickr_crawler.core.config import CrawlerConfig
from flickr_crawler.core.exceptions import ItemNotFoundError
from flickr_crawler.core.logger import get_logger
from flickr_crawler.crawl.processor import ItemProcessor
from flickr_crawler.flickr.models import Collection, MediaItem

logger = get_logger(__name__)


@dataclass
class WalkStats:
    """
    Statistics from walking one collection.

    Attributes:
        total: Items in the collection.
        processed: Items newly processed.
        skipped: Items handed to the processor but skipped.
        not_found: Items that vanished from Flickr during the walk.
        stopped_early: True if the walk stopped at the watermark.
    """

    total: int = 0
    processed: int = 0
    skipped: int = 0
    not_found: int = 0
    stopped_early: bool = False


def ordered_items(collection: Collection) -> list[MediaItem]:
    """Items of a collection, newest upload first. Ties keep their listing order."""
    return sorted(collection.items, key=lambda item: item.date_upload, reverse=True)


class CollectionWalker:
    """Walks one collection at a time through an ItemProcessor."""

    def __init__(self, config: CrawlerConfig, processor: ItemProcessor) -> None:
        self._config = config
        self._processor = processor

    def walk(self, collection: Collection, watermark: datetime) -> WalkStats:
        """
        Process a collection's items newest-first until the watermark.

        Args:
            collection: The collection, items populated.
            watermark: The user's last completed crawl date.

        Returns:
            WalkStats for the collection.

        Raises:
            FlickrCrawlerError: Any fatal error from the processor. Only
                                ItemNotFoundError is absorbed here.
        """
        stats = WalkStats(total=len(collection.items))

        for item in ordered_items(collection):
            if self._config.check_last_crawl_date and item.date_upload < watermark:
                logger.info(
                    f"Stopping '{collection.title}' at item {item.item_id}: uploaded "
                    f"{item.date_upload:%Y/%m/%d %H:%M:%S}, before last crawl "
                    f"{watermark:%Y/%m/%d %H:%M:%S}"
                )
                stats.stopped_early = True
                break

            try:
                if self._processor.process(item):
                    stats.processed += 1
                else:
                    stats.skipped += 1
            except ItemNotFoundError as e:
                logger.warning(f"Item {item.item_id} not found, skipping: {e.message}")
                stats.not_found += 1

        logger.debug(
            f"Walked '{collection.title}': {stats.processed} processed, "
            f"{stats.skipped} skipped, {stats.not_found} not found"
        )
        return stats
