"""
Collaborator interfaces consumed by the crawl core.

The crawler, walker and item processor only talk to the outside world
through these three capabilities. FlickrClient, Database and Downloader
are the production implementations; the in-memory fakes used by the tests
satisfy the same Protocols.
"""

from datetime import datetime
from typing import Protocol

from flickr_crawler.download.downloader import DownloadStatus
from flickr_crawler.flickr.models import Collection, MediaItem, User


class MediaApi(Protocol):
    """Read access to the remote media library."""

    def resolve_user_id(self, username: str) -> str: ...

    def get_user(self, user_id: str) -> User: ...

    def get_collections(self, user_id: str) -> list[Collection]: ...

    def get_collection_items(self, collection: Collection, user_id: str = "") -> list[MediaItem]: ...

    def get_user_items(self, user_id: str) -> list[MediaItem]: ...

    def get_item(self, item_id: str) -> MediaItem: ...


class RecordStore(Protocol):
    """Persistent processed-item records and per-user watermarks."""

    def exists_record(self, item_id: str) -> bool: ...

    def insert_record(self, item: MediaItem) -> bool: ...

    def get_watermark(self, user_id: str) -> datetime | None: ...

    def set_watermark(self, user_id: str, when: datetime) -> None: ...

    def insert_user_if_absent(self, user: User) -> bool: ...

    def close(self) -> None: ...


class MediaDownloader(Protocol):
    """Saves item content under a per-user, per-collection namespace."""

    def download(self, item: MediaItem) -> DownloadStatus: ...

    def set_namespace(self, name: str) -> None: ...

    def set_sub_namespace(self, name: str) -> None: ...
