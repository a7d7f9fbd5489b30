"""
Incremental crawl orchestrator.

One crawl pass for one user goes through the states

    RESOLVE_USER -> BUILD_COLLECTIONS -> WALK_COLLECTIONS -> ADVANCE_WATERMARK -> DONE

Any FlickrCrawlerError raised before the watermark is advanced moves the
pass to ABORTED and is re-raised. The watermark is then left untouched, so
the next run retries from the same checkpoint; items already recorded are
skipped by the lookup step.

Watermark:
    The watermark written at the end of a pass is the time the pass
    STARTED. Items uploaded while the pass was running are newer than that
    and are picked up by the next run.

Not found:
    A user that no longer exists ends the pass the same way, but is
    logged as a warning: only that user is skipped.

Usage:
    crawler = Crawler(api=FlickrClient(), config=config.crawler,
                      downloader=downloader, store=database)
    report = crawler.crawl_all("someuser")
    crawler.close()
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto

from flickr_crawler.core.config import CrawlerConfig
from flickr_crawler.core.database import NEVER_CRAWLED
from flickr_crawler.core.exceptions import FlickrCrawlerError, FlickrError
from flickr_crawler.core.logger import get_logger
from flickr_crawler.crawl.interfaces import MediaApi, MediaDownloader, RecordStore
from flickr_crawler.crawl.processor import ItemProcessor
from flickr_crawler.crawl.reconciler import organize_collections
from flickr_crawler.crawl.walker import CollectionWalker, WalkStats
from flickr_crawler.flickr.models import Collection, User
from flickr_crawler.utils import collection_folder_name, is_user_id, user_folder_name

logger = get_logger(__name__)


class CrawlState(Enum):
    """States of one user's crawl pass. DONE and ABORTED are terminal."""
    RESOLVE_USER = auto()
    BUILD_COLLECTIONS = auto()
    WALK_COLLECTIONS = auto()
    ADVANCE_WATERMARK = auto()
    DONE = auto()
    ABORTED = auto()


@dataclass
class CrawlReport:
    """
    Outcome of one user's crawl pass.

    Attributes:
        user_id: NSID of the crawled user.
        state: Current state of the pass, DONE once it completed.
        watermark: Watermark the pass compared against.
        collections: Per-collection walk statistics, keyed by title.
        started_at: Pass start time, the next watermark.
    """

    user_id: str
    state: CrawlState = CrawlState.RESOLVE_USER
    watermark: datetime = NEVER_CRAWLED
    collections: list[tuple[str, WalkStats]] = field(default_factory=list)
    started_at: datetime | None = None

    @property
    def processed(self) -> int:
        return sum(stats.processed for _, stats in self.collections)

    @property
    def skipped(self) -> int:
        return sum(stats.skipped for _, stats in self.collections)

    @property
    def not_found(self) -> int:
        return sum(stats.not_found for _, stats in self.collections)


class Crawler:
    """
    Crawls users' Flickr libraries into the record store and the output folder.

    Attributes:
        _api: Remote media library.
        _config: Feature toggles.
        _downloader: Downloader (namespaces are set here).
        _store: Record store (records and watermarks).
        _processor: ItemProcessor shared by all walks.
        _walker: CollectionWalker shared by all walks.
    """

    def __init__(
        self,
        api: MediaApi,
        config: CrawlerConfig,
        downloader: MediaDownloader,
        store: RecordStore
    ) -> None:
        self._api = api
        self._config = config
        self._downloader = downloader
        self._store = store
        self._processor = ItemProcessor(config, store, downloader)
        self._walker = CollectionWalker(config, self._processor)

    # =========================================================================
    # Entry Points
    # =========================================================================

    def crawl_all(self, user_identification: str) -> CrawlReport:
        """
        Crawl a user given either an NSID or a screen name.

        Raises:
            UserNotFoundError: If the user does not exist.
            FlickrCrawlerError: On any fatal error (pass aborted).
        """
        user_identification = user_identification.strip()
        if is_user_id(user_identification):
            return self.crawl_by_user_id(user_identification)
        return self.crawl_by_username(user_identification)

    def crawl_by_username(self, username: str) -> CrawlReport:
        """Resolve a screen name to an NSID, then crawl."""
        user_id = self._api.resolve_user_id(username)
        logger.debug(f"Resolved username {username} to {user_id}")
        return self.crawl_by_user_id(user_id)

    def crawl_by_user_id(self, user_id: str) -> CrawlReport:
        """
        Run one full crawl pass for a user.

        Behavior:
            1. RESOLVE_USER: fetch the profile, select the user folder,
               record the user if inserts are enabled, read the watermark.
            2. BUILD_COLLECTIONS: list photosets and their items, list all
               items, put Unsorted first.
            3. WALK_COLLECTIONS: walk every collection in order, each in
               its own sub-folder.
            4. ADVANCE_WATERMARK: store the pass start time.

        Returns:
            CrawlReport with state DONE.

        Raises:
            UserNotFoundError: The user no longer exists (logged as a warning).
            FlickrCrawlerError: Fatal error; the watermark is not advanced.
        """
        report = CrawlReport(user_id=user_id, started_at=datetime.now(timezone.utc))

        try:
            user = self._resolve_user(user_id)
            report.watermark = self._read_watermark(user_id)

            report.state = CrawlState.BUILD_COLLECTIONS
            collections = self._build_collections(user)

            report.state = CrawlState.WALK_COLLECTIONS
            for collection in collections:
                self._downloader.set_sub_namespace(collection_folder_name(collection))
                stats = self._walker.walk(collection, report.watermark)
                report.collections.append((collection.title, stats))

            report.state = CrawlState.ADVANCE_WATERMARK
            self._store.set_watermark(user_id, report.started_at)

        except FlickrCrawlerError as e:
            if isinstance(e, FlickrError) and e.is_not_found:
                logger.warning(f"Crawl of user {user_id} skipped during {report.state.name}: {e.message}")
            else:
                logger.error(f"Crawl of user {user_id} aborted during {report.state.name}: {e.message}")
            report.state = CrawlState.ABORTED
            raise

        report.state = CrawlState.DONE
        logger.info(
            f"Crawl of user {user_id} done: {report.processed} processed, "
            f"{report.skipped} skipped, {report.not_found} not found"
        )
        return report

    def crawl_item(self, item_id: str) -> bool:
        """
        Process a single item by id, outside of any collection.

        The item is saved under its owner's folder, without a collection
        sub-folder. The watermark is not touched.

        Returns:
            True if the item was newly processed.

        Raises:
            ItemNotFoundError: If the item does not exist.
            FlickrCrawlerError: On any other fatal error.
        """
        item = self._api.get_item(item_id)

        if item.owner:
            owner = self._api.get_user(item.owner)
            self._downloader.set_namespace(user_folder_name(owner))
        else:
            self._downloader.set_namespace("")

        return self._processor.process(item)

    def close(self) -> None:
        """Release the record store."""
        self._store.close()

    # =========================================================================
    # Pass Steps
    # =========================================================================

    def _resolve_user(self, user_id: str) -> User:
        user = self._api.get_user(user_id)
        namespace = user_folder_name(user)
        self._downloader.set_namespace(namespace)

        if self._config.enable_db_inserts and self._store.insert_user_if_absent(user):
            logger.debug(f"New user {user.user_id} recorded")

        logger.info(f"Crawling user {user.username or user.user_id} into '{namespace}'")
        return user

    def _read_watermark(self, user_id: str) -> datetime:
        watermark = self._store.get_watermark(user_id)
        if watermark is None:
            logger.info(f"User {user_id} never crawled to the end, full crawl")
            return NEVER_CRAWLED
        logger.info(f"Last completed crawl of user {user_id}: {watermark:%Y/%m/%d %H:%M:%S}")
        return watermark

    def _build_collections(self, user: User) -> list[Collection]:
        collections = self._api.get_collections(user.user_id)
        for collection in collections:
            collection.items = self._api.get_collection_items(collection, user.user_id)

        all_items = self._api.get_user_items(user.user_id)
        return organize_collections(collections, all_items)
