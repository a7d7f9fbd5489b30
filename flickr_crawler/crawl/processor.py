"""
Per-item processing for flickr-crawler.

ItemProcessor runs the steps for a single MediaItem in strict order:

    1. Admission:  media kind enabled?            no  -> skipped
    2. Lookup:     already recorded? (optional)   yes -> skipped
    3. Download:   (optional)
                   OK_ORIGINAL -> is_original_available = True
                   OK_FALLBACK -> is_original_available = False, warning
                   FAILED      -> skipped, nothing recorded
    4. Insert:     record the item (optional)

Skipped items leave no side effect behind: the record is only inserted
after every enabled earlier step succeeded.

Not-found:
    ItemNotFoundError raised by the downloader is NOT handled here. It
    propagates to the CollectionWalker, which logs it and moves on to the
    next item.
"""

from flickr_crawler.core.config import CrawlerConfig
from flickr_crawler.core.logger import get_logger, log_quality_fallback
from flickr_crawler.crawl.admission import is_admitted
from flickr_crawler.crawl.interfaces import MediaDownloader, RecordStore
from flickr_crawler.download.downloader import DownloadStatus
from flickr_crawler.flickr.models import MediaItem

logger = get_logger(__name__)


class ItemProcessor:
    """
    Runs admission, lookup, download and insert for one item at a time.

    Attributes:
        _config: Feature toggles (read-only).
        _store: Record store for lookups and inserts.
        _downloader: Downloader for the download stage.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        store: RecordStore,
        downloader: MediaDownloader
    ) -> None:
        self._config = config
        self._store = store
        self._downloader = downloader

    def process(self, item: MediaItem) -> bool:
        """
        Process one item.

        Args:
            item: The item to process. Its is_original_available field is
                  set when a download succeeds.

        Returns:
            True if the item was newly processed, False if it was skipped
            for any reason.

        Raises:
            ItemNotFoundError: The item no longer exists on Flickr.
            FlickrError: Invalid API call during the download stage (fatal).
            DatabaseError: Record store failure (fatal).
        """
        config = self._config

        if not is_admitted(item.media, config.crawl_pictures, config.crawl_videos):
            logger.debug(f"Item {item.item_id} ({item.media.value}) not admitted")
            return False

        if config.enable_db_lookups and self._store.exists_record(item.item_id):
            logger.debug(f"Item {item.item_id} already processed")
            return False

        if config.enable_download:
            status = self._downloader.download(item)

            if status is DownloadStatus.FAILED:
                return False

            if status is DownloadStatus.OK_FALLBACK:
                item.is_original_available = False
                log_quality_fallback(logger, item.item_id)
            else:
                item.is_original_available = True

        if config.enable_db_inserts:
            self._store.insert_record(item)

        logger.debug(f"Processed item {item.item_id}")
        return True
