# tests/test_walker.py
"""Test the newest-first collection walk"""

import logging

import pytest

from flickr_crawler.core.config import CrawlerConfig
from flickr_crawler.core.database import NEVER_CRAWLED
from flickr_crawler.core.exceptions import DatabaseError, ItemNotFoundError
from flickr_crawler.crawl.processor import ItemProcessor
from flickr_crawler.crawl.walker import CollectionWalker, ordered_items
from flickr_crawler.flickr.models import Collection, MediaKind

from fakes import InMemoryStore, ScriptedDownloader, at, make_item


def _walker(config, store, downloader):
    return CollectionWalker(config, ItemProcessor(config, store, downloader))


def _ids(downloader):
    return [item_id for _, _, item_id in downloader.downloaded]


class TestOrderedItems:
    """Test the walk order"""

    def test_newest_first(self):
        collection = Collection("x", "", "x", items=[make_item(i, i) for i in (3, 1, 5)])
        assert [item.item_id for item in ordered_items(collection)] == ["5", "3", "1"]

    def test_ties_keep_listing_order(self):
        items = [make_item("a", 7), make_item("b", 7), make_item("c", 9)]
        collection = Collection("x", "", "x", items=items)
        assert [item.item_id for item in ordered_items(collection)] == ["c", "a", "b"]

    def test_does_not_reorder_collection(self):
        items = [make_item(1, 1), make_item(2, 2)]
        collection = Collection("x", "", "x", items=list(items))
        ordered_items(collection)
        assert collection.items == items


class TestEarlyTermination:
    """Test stopping at the watermark"""

    def test_stops_before_older_item(self, crawler_config, store, downloader):
        collection = Collection("x", "", "x", items=[make_item(i, i) for i in (1, 5, 3)])

        stats = _walker(crawler_config, store, downloader).walk(collection, at(2))

        assert _ids(downloader) == ["5", "3"]
        assert stats.processed == 2
        assert stats.stopped_early

    def test_stop_ignores_admission_of_stopped_item(self, store, downloader):
        """A not-admitted item below the watermark still ends the walk"""
        config = CrawlerConfig(crawl_videos=False)
        items = [make_item(5, 5), make_item(3, 3), make_item(1, 1, media=MediaKind.VIDEO), make_item(0, 0)]

        stats = _walker(config, store, downloader).walk(Collection("x", "", "x", items=items), at(2))

        assert _ids(downloader) == ["5", "3"]
        assert stats.stopped_early
        assert stats.skipped == 0

    def test_item_at_watermark_is_processed(self, crawler_config, store, downloader):
        collection = Collection("x", "", "x", items=[make_item(2, 2)])

        stats = _walker(crawler_config, store, downloader).walk(collection, at(2))

        assert _ids(downloader) == ["2"]
        assert not stats.stopped_early

    def test_disabled_walks_everything(self, store, downloader):
        config = CrawlerConfig(check_last_crawl_date=False)
        collection = Collection("x", "", "x", items=[make_item(i, i) for i in (5, 3, 1)])

        stats = _walker(config, store, downloader).walk(collection, at(2))

        assert _ids(downloader) == ["5", "3", "1"]
        assert not stats.stopped_early

    def test_never_crawled_walks_everything(self, crawler_config, store, downloader):
        collection = Collection("x", "", "x", items=[make_item(i, i) for i in (5, 3, 1)])

        _walker(crawler_config, store, downloader).walk(collection, NEVER_CRAWLED)

        assert _ids(downloader) == ["5", "3", "1"]

    def test_stop_point_logged(self, crawler_config, store, downloader, caplog):
        collection = Collection("x", "", "Holidays", items=[make_item(9, 9), make_item(1, 1)])

        with caplog.at_level(logging.INFO):
            _walker(crawler_config, store, downloader).walk(collection, at(2))

        assert any(
            "Holidays" in r.getMessage() and "1" in r.getMessage() and r.levelno == logging.INFO
            for r in caplog.records
        )


class TestWalkErrors:
    """Test error handling during a walk"""

    def test_not_found_skips_item(self, crawler_config, store, caplog):
        downloader = ScriptedDownloader({"3": ItemNotFoundError("Photo not found: 3")})
        collection = Collection("x", "", "x", items=[make_item(i, i) for i in (5, 3, 1)])

        with caplog.at_level(logging.WARNING):
            stats = _walker(crawler_config, store, downloader).walk(collection, NEVER_CRAWLED)

        assert set(store.records) == {"5", "1"}
        assert stats.not_found == 1
        assert stats.processed == 2
        assert any("3" in r.getMessage() and r.levelno == logging.WARNING for r in caplog.records)

    def test_fatal_error_propagates(self, crawler_config, downloader):
        store = InMemoryStore()
        store.fail_on_insert = "3"
        collection = Collection("x", "", "x", items=[make_item(i, i) for i in (5, 3, 1)])

        with pytest.raises(DatabaseError):
            _walker(crawler_config, store, downloader).walk(collection, NEVER_CRAWLED)

        assert "1" not in _ids(downloader)

    def test_empty_collection(self, crawler_config, store, downloader):
        stats = _walker(crawler_config, store, downloader).walk(Collection.unsorted([]), NEVER_CRAWLED)
        assert stats.total == 0
        assert downloader.downloaded == []

    def test_skipped_counted(self, crawler_config, store, downloader):
        store.records["5"] = True
        collection = Collection("x", "", "x", items=[make_item(5, 5), make_item(4, 4)])

        stats = _walker(crawler_config, store, downloader).walk(collection, NEVER_CRAWLED)

        assert stats.skipped == 1
        assert stats.processed == 1
