# tests/test_downloader.py
"""Test the media downloader with a mocked HTTP session"""

from unittest.mock import Mock

import pytest
import requests

from flickr_crawler.core.exceptions import ItemNotFoundError
from flickr_crawler.download.downloader import (
    Downloader,
    DownloadStats,
    DownloadStatus,
    select_size,
)
from flickr_crawler.flickr.models import MediaKind

from fakes import make_item


class FakeResponse:
    def __init__(self, chunks=(b"data",), status_error=None, content_type=None):
        self.chunks = list(chunks)
        self.status_error = status_error
        self.headers = {"content-length": str(sum(len(c) for c in self.chunks))}
        if content_type:
            self.headers["content-type"] = content_type

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_error is not None:
            raise self.status_error

    def iter_content(self, chunk_size=1):
        yield from self.chunks


def _sizes(*labels, ext="jpg"):
    return [
        {"label": label, "source": f"https://live.staticflickr.com/1/9_{n}.{ext}"}
        for n, label in enumerate(labels)
    ]


def _downloader(temp_dir, sizes=None, response=None, sizes_error=None):
    client = Mock()
    if sizes_error is not None:
        client.get_sizes.side_effect = sizes_error
    else:
        client.get_sizes.return_value = sizes or []
    session = Mock()
    session.get.return_value = response or FakeResponse()
    downloader = Downloader(client, temp_dir, timeout=5, session=session, show_progress=False)
    downloader.set_namespace("someuser_12345678@N00")
    downloader.set_sub_namespace("Holidays")
    return downloader


class TestSelectSize:
    """Test the quality ladder"""

    def test_original_preferred(self):
        size, is_original = select_size(_sizes("Large", "Original", "Medium"), MediaKind.PICTURE)
        assert size["label"] == "Original"
        assert is_original

    def test_picture_fallback_order(self):
        size, is_original = select_size(_sizes("Large", "Large 1600", "Small"), MediaKind.PICTURE)
        assert size["label"] == "Large 1600"
        assert not is_original

    def test_video_ladder(self):
        size, is_original = select_size(_sizes("Original", "720p", "Site MP4"), MediaKind.VIDEO)
        assert size["label"] == "720p"
        assert not is_original

    def test_video_original(self):
        _, is_original = select_size(_sizes("Video Original", "1080p"), MediaKind.VIDEO)
        assert is_original

    def test_nothing_usable(self):
        assert select_size(_sizes("Small", "Thumbnail"), MediaKind.PICTURE) is None
        assert select_size([{"label": "Original"}], MediaKind.PICTURE) is None


class TestDownload:
    """Test download outcomes"""

    def test_original_saved(self, temp_dir):
        downloader = _downloader(temp_dir, _sizes("Original", "Large"), FakeResponse([b"ab", b"cd"]))

        status = downloader.download(make_item("9", 1))

        target = temp_dir / "someuser_12345678@N00" / "Holidays" / "9.jpg"
        assert status is DownloadStatus.OK_ORIGINAL
        assert target.read_bytes() == b"abcd"
        assert not target.with_name("9.part").exists()
        assert downloader.stats.original == 1

    def test_fallback_saved(self, temp_dir):
        downloader = _downloader(temp_dir, _sizes("Large 2048"))

        assert downloader.download(make_item("9", 1)) is DownloadStatus.OK_FALLBACK
        assert downloader.stats.fallback == 1

    def test_video_extension(self, temp_dir):
        sizes = [{"label": "Video Original", "source": "https://www.flickr.com/photos/x/9/play/orig/abc/"}]
        downloader = _downloader(temp_dir, sizes)

        downloader.download(make_item("9", 1, media=MediaKind.VIDEO))

        assert (temp_dir / "someuser_12345678@N00" / "Holidays" / "9.mp4").exists()

    def test_video_extension_from_content_type(self, temp_dir):
        sizes = [{"label": "Video Original", "source": "https://www.flickr.com/photos/x/9/play/orig/abc/"}]
        downloader = _downloader(temp_dir, sizes, FakeResponse(content_type="video/quicktime"))

        downloader.download(make_item("9", 1, media=MediaKind.VIDEO))

        folder = temp_dir / "someuser_12345678@N00" / "Holidays"
        assert [p.name for p in folder.iterdir()] == ["9.mov"]

    def test_content_type_parameters_ignored(self, temp_dir):
        sizes = [{"label": "Original", "source": "https://x/download/9"}]
        downloader = _downloader(temp_dir, sizes, FakeResponse(content_type="image/png; charset=binary"))

        downloader.download(make_item("9", 1))

        assert (temp_dir / "someuser_12345678@N00" / "Holidays" / "9.png").exists()

    def test_picture_extension_from_original_format(self, temp_dir):
        sizes = [{"label": "Original", "source": "https://x/download/9"}]
        downloader = _downloader(temp_dir, sizes)
        item = make_item("9", 1)
        item.original_format = "gif"

        downloader.download(item)

        assert (temp_dir / "someuser_12345678@N00" / "Holidays" / "9.gif").exists()

    def test_no_size_fails(self, temp_dir):
        downloader = _downloader(temp_dir, _sizes("Thumbnail"))

        assert downloader.download(make_item("9", 1)) is DownloadStatus.FAILED
        assert downloader.stats.failed == 1

    def test_http_error_fails_and_cleans_up(self, temp_dir):
        response = FakeResponse(status_error=requests.HTTPError("404 Client Error"))
        downloader = _downloader(temp_dir, _sizes("Original"), response)

        assert downloader.download(make_item("9", 1)) is DownloadStatus.FAILED
        assert list((temp_dir / "someuser_12345678@N00" / "Holidays").iterdir()) == []

    def test_connection_error_fails(self, temp_dir):
        downloader = _downloader(temp_dir, _sizes("Original"))
        downloader._session.get.side_effect = requests.ConnectionError("reset")

        assert downloader.download(make_item("9", 1)) is DownloadStatus.FAILED

    def test_empty_body_fails(self, temp_dir):
        downloader = _downloader(temp_dir, _sizes("Original"), FakeResponse([]))

        assert downloader.download(make_item("9", 1)) is DownloadStatus.FAILED
        assert not (temp_dir / "someuser_12345678@N00" / "Holidays" / "9.jpg").exists()

    def test_failure_logged_with_item_id(self, temp_dir, caplog):
        response = FakeResponse(status_error=requests.HTTPError("500 Server Error"))
        downloader = _downloader(temp_dir, _sizes("Original"), response)

        downloader.download(make_item("9", 1))

        records = [r for r in caplog.records if getattr(r, "download_failed_item_id", None) == "9"]
        assert len(records) == 1
        assert records[0].download_failed_collection == "Holidays"

    def test_not_found_propagates(self, temp_dir):
        downloader = _downloader(temp_dir, sizes_error=ItemNotFoundError("Photo not found: 9"))

        with pytest.raises(ItemNotFoundError):
            downloader.download(make_item("9", 1))

    def test_timeout_passed(self, temp_dir):
        downloader = _downloader(temp_dir, _sizes("Original"))
        downloader.download(make_item("9", 1))
        assert downloader._session.get.call_args.kwargs["timeout"] == 5


class TestNamespaces:
    """Test output folder routing"""

    def test_new_namespace_resets_sub_namespace(self, temp_dir):
        downloader = _downloader(temp_dir)
        downloader.set_namespace("other_1@N00")
        assert downloader.target_dir == temp_dir / "other_1@N00"


class TestDownloadStats:
    def test_success_rate(self):
        stats = DownloadStats()
        for status in (DownloadStatus.OK_ORIGINAL, DownloadStatus.OK_FALLBACK, DownloadStatus.FAILED, DownloadStatus.FAILED):
            stats.record(status)
        assert stats.total == 4
        assert stats.success_rate == 50.0

    def test_empty(self):
        assert DownloadStats().success_rate == 0.0
