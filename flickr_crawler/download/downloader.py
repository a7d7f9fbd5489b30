"""
Media downloader for flickr-crawler.

This module saves the binary content of Flickr photos and videos to disk,
picking the best size Flickr offers for each item.

Architecture:
    output_directory/
    ├── database.db
    ├── logs/
    └── someuser_12345678@N00/            # namespace (one per user)
        ├── Unsorted/                     # sub-namespace (one per collection)
        │   └── 52345678901.jpg
        └── Holidays_2019_72157600000000001/
            ├── 52345678902.jpg
            └── 52345678903.mp4

Quality Ladder:
    Sizes are requested with flickr.photos.getSizes and tried in order.
    Pictures: Original, Large 2048, Large 1600, Large
    Videos:   Video Original, 1080p, 720p, Site MP4, Mobile MP4
    The first rung is the original quality. Saving any later rung is a
    quality fallback (DownloadStatus.OK_FALLBACK), which is not an error.

Transfer:
    Content is streamed with requests into "<item_id>.part" and renamed to
    "<item_id>.<ext>" once complete, so an interrupted run never leaves a
    truncated file under the final name. A tqdm bar shows the bytes transferred.

Usage:
    from flickr_crawler.download.downloader import Downloader, DownloadStatus

    downloader = Downloader(client, output_dir=Path("/photos"))
    downloader.set_namespace("someuser_12345678@N00")
    downloader.set_sub_namespace("Holidays_2019_72157600000000001")

    status = downloader.download(item)
    if status is DownloadStatus.OK_FALLBACK:
        ...
"""

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests
from tqdm import tqdm

from flickr_crawler.core.exceptions import DownloadError
from flickr_crawler.core.logger import get_logger, log_download_failure
from flickr_crawler.flickr.client import FlickrClient
from flickr_crawler.flickr.models import MediaItem, MediaKind
from flickr_crawler.utils import ensure_directory

logger = get_logger(__name__)


PICTURE_SIZES = ("Original", "Large 2048", "Large 1600", "Large")
VIDEO_SIZES = ("Video Original", "1080p", "720p", "Site MP4", "Mobile MP4")

CHUNK_SIZE = 64 * 1024

DEFAULT_EXTENSIONS = {
    MediaKind.PICTURE: "jpg",
    MediaKind.VIDEO: "mp4",
}

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/tiff": "tif",
    "image/heic": "heic",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/x-matroska": "mkv",
    "video/x-m4v": "m4v",
    "video/x-ms-wmv": "wmv",
    "video/mpeg": "mpg",
    "video/3gpp": "3gp",
    "video/webm": "webm",
}


class DownloadStatus(Enum):
    """Outcome of a single download attempt."""
    OK_ORIGINAL = auto()  # Original quality saved
    OK_FALLBACK = auto()  # Saved in a lower quality
    FAILED = auto()       # Nothing saved


@dataclass
class DownloadStats:
    """
    Statistics of the downloads made by one Downloader.

    Attributes:
        original: Saved in original quality.
        fallback: Saved in a lower quality.
        failed: Not saved.
    """

    original: int = 0
    fallback: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.original + self.fallback + self.failed

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total == 0:
            return 0.0
        return ((self.original + self.fallback) / self.total) * 100

    def record(self, status: DownloadStatus) -> None:
        if status is DownloadStatus.OK_ORIGINAL:
            self.original += 1
        elif status is DownloadStatus.OK_FALLBACK:
            self.fallback += 1
        else:
            self.failed += 1


def select_size(
    sizes: list[dict[str, Any]],
    media: MediaKind
) -> tuple[dict[str, Any], bool] | None:
    """
    Pick the best entry of a getSizes listing.

    Args:
        sizes: Entries of flickr.photos.getSizes (each with 'label' and 'source').
        media: Kind of the item, selects the quality ladder.

    Returns:
        (size entry, is_original) for the highest available rung, or None
        if no rung of the ladder is offered.
    """
    ladder = VIDEO_SIZES if media is MediaKind.VIDEO else PICTURE_SIZES
    by_label = {
        size.get("label"): size
        for size in sizes
        if size.get("source")
    }

    for rank, label in enumerate(ladder):
        if label in by_label:
            return by_label[label], rank == 0

    return None


class Downloader:
    """
    Downloads Flickr items into per-user, per-collection folders.

    Attributes:
        _client: FlickrClient used to list the sizes of an item.
        _output_dir: Base output directory.
        _timeout: Per-request timeout in seconds.
        _namespace: Current user folder name.
        _sub_namespace: Current collection folder name.
        stats: Counters for every download() call.

    Note:
        Namespace and sub-namespace are set by the crawler before each
        user and each collection. The downloader never creates folders
        outside output_dir/namespace/sub_namespace.
    """

    def __init__(
        self,
        client: FlickrClient,
        output_dir: Path,
        timeout: int = 60,
        session: requests.Session | None = None,
        show_progress: bool = True
    ) -> None:
        """
        Initialize the Downloader.

        Args:
            client: Initialized FlickrClient.
            output_dir: Base output directory.
            timeout: Connect/read timeout for each HTTP request.
            session: Optional requests session (a new one by default).
            show_progress: Show a tqdm byte progress bar per file.
        """
        self._client = client
        self._output_dir = output_dir
        self._timeout = timeout
        self._session = session or requests.Session()
        self._show_progress = show_progress
        self._namespace = ""
        self._sub_namespace = ""
        self.stats = DownloadStats()

    def set_namespace(self, name: str) -> None:
        """Select the user folder for subsequent downloads."""
        self._namespace = name
        self._sub_namespace = ""

    def set_sub_namespace(self, name: str) -> None:
        """Select the collection folder (inside the user folder) for subsequent downloads."""
        self._sub_namespace = name

    @property
    def target_dir(self) -> Path:
        path = self._output_dir
        if self._namespace:
            path = path / self._namespace
        if self._sub_namespace:
            path = path / self._sub_namespace
        return path

    def download(self, item: MediaItem) -> DownloadStatus:
        """
        Download one item in the best available quality.

        Args:
            item: The item to save.

        Returns:
            OK_ORIGINAL, OK_FALLBACK, or FAILED (also logged to
            download_failures.log).

        Raises:
            ItemNotFoundError: If the item vanished from Flickr. The
                               walker logs it and moves on.
            FlickrError: On an invalid size-listing call (fatal for the pass).
        """
        sizes = self._client.get_sizes(item.item_id)

        selected = select_size(sizes, item.media)
        if selected is None:
            log_download_failure(
                logger,
                item_id=item.item_id,
                media=item.media.value,
                reason="No downloadable size offered",
                collection=self._sub_namespace
            )
            status = DownloadStatus.FAILED
            self.stats.record(status)
            return status

        size, is_original = selected
        url = size["source"]

        try:
            destination = self._fetch(url, item, is_original)
        except DownloadError as e:
            log_download_failure(
                logger,
                item_id=item.item_id,
                media=item.media.value,
                reason=e.message,
                collection=self._sub_namespace
            )
            status = DownloadStatus.FAILED
            self.stats.record(status)
            return status

        logger.debug(f"Saved {item.item_id} ({size.get('label')}) -> {destination}")

        status = DownloadStatus.OK_ORIGINAL if is_original else DownloadStatus.OK_FALLBACK
        self.stats.record(status)
        return status

    def _extension(self, url: str, content_type: str, item: MediaItem, is_original: bool) -> str:
        """
        File extension for a download.

        Tried in order: the URL suffix, the response Content-Type, the
        original format Flickr reports (picture originals only), then the
        media default. Video sources are /play/ URLs without a suffix.
        """
        suffix = Path(urlparse(url).path).suffix.lstrip(".").lower()
        if suffix and suffix.isalnum() and len(suffix) <= 4:
            return suffix

        mime = content_type.split(";")[0].strip().lower()
        if mime in CONTENT_TYPE_EXTENSIONS:
            return CONTENT_TYPE_EXTENSIONS[mime]

        if is_original and item.media is MediaKind.PICTURE and item.original_format.isalnum():
            return item.original_format

        return DEFAULT_EXTENSIONS[item.media]

    def _fetch(self, url: str, item: MediaItem, is_original: bool) -> Path:
        """
        Stream a URL into the target folder through a .part file.

        Returns:
            Path of the saved file, "<item_id>.<ext>".

        Raises:
            DownloadError: On any HTTP, network or filesystem failure.
                           The .part file is removed.
        """
        target_dir = self.target_dir
        part_path = target_dir / f"{item.item_id}.part"

        try:
            ensure_directory(target_dir)
            with self._session.get(url, stream=True, timeout=self._timeout) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length", 0)) or None
                extension = self._extension(
                    url, response.headers.get("content-type", ""), item, is_original
                )
                destination = target_dir / f"{item.item_id}.{extension}"

                with open(part_path, "wb") as fh, tqdm(
                    total=total,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    desc=destination.name,
                    leave=False,
                    disable=not self._show_progress,
                ) as bar:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
                            bar.update(len(chunk))

            if part_path.stat().st_size == 0:
                raise DownloadError(
                    f"Empty file received from {url}",
                    details={"url": url}
                )

            part_path.replace(destination)
            return destination

        except requests.RequestException as e:
            self._discard(part_path)
            raise DownloadError(
                f"HTTP error fetching {url}: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e
        except OSError as e:
            self._discard(part_path)
            raise DownloadError(
                f"Cannot write {part_path}: {e}",
                details={"path": str(part_path), "original_error": str(e)}
            ) from e
        except DownloadError:
            self._discard(part_path)
            raise

    def _discard(self, part_path: Path) -> None:
        try:
            part_path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Failed to remove partial file {part_path}: {e}")
