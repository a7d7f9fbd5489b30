# tests/test_models.py
"""Test Flickr data models"""

from datetime import datetime, timezone

import pytest

from flickr_crawler.core.exceptions import FlickrError
from flickr_crawler.flickr.models import (
    Collection,
    MediaItem,
    MediaKind,
    User,
    parse_upload_date,
)

from fakes import make_item


class TestMediaKind:
    """Test media kind parsing"""

    def test_video(self):
        assert MediaKind.from_flickr("video") is MediaKind.VIDEO
        assert MediaKind.from_flickr(" Video ") is MediaKind.VIDEO

    def test_everything_else_is_picture(self):
        assert MediaKind.from_flickr("photo") is MediaKind.PICTURE
        assert MediaKind.from_flickr(None) is MediaKind.PICTURE


class TestParseUploadDate:
    """Test upload date conversion"""

    def test_unix_seconds_string(self):
        assert parse_upload_date("1700000000") == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_int(self):
        assert parse_upload_date(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_invalid_is_invalid_call(self, value):
        with pytest.raises(FlickrError) as exc_info:
            parse_upload_date(value, "123")
        assert exc_info.value.is_invalid_call
        assert not exc_info.value.is_not_found


class TestMediaItem:
    """Test MediaItem construction and identity"""

    def test_from_listing_entry(self):
        item = MediaItem.from_flickr_api(
            {"id": "52345678901", "secret": "abc", "title": "Sunset",
             "media": "video", "dateupload": "1700000000"},
            owner="12345678@N00"
        )
        assert item.item_id == "52345678901"
        assert item.media is MediaKind.VIDEO
        assert item.is_video
        assert item.owner == "12345678@N00"
        assert item.title == "Sunset"
        assert item.is_original_available is None
        assert item.original_format == ""

    def test_original_format(self):
        item = MediaItem.from_flickr_api({"id": "1", "dateupload": "1700000000", "originalformat": "PNG"})
        assert item.original_format == "png"

    def test_from_get_info(self):
        """photos.getInfo nests title and owner and uses dateuploaded"""
        item = MediaItem.from_flickr_api({
            "id": "1",
            "media": "photo",
            "dateuploaded": "1700000000",
            "title": {"_content": "Nested"},
            "owner": {"nsid": "99@N01", "username": "x"},
        })
        assert item.title == "Nested"
        assert item.owner == "99@N01"
        assert item.media is MediaKind.PICTURE

    def test_missing_id(self):
        with pytest.raises(FlickrError):
            MediaItem.from_flickr_api({"dateupload": "1"})

    def test_missing_date(self):
        with pytest.raises(FlickrError) as exc_info:
            MediaItem.from_flickr_api({"id": "1"})
        assert exc_info.value.is_invalid_call

    def test_identity_is_item_id(self):
        a = make_item("1", 10)
        b = make_item("1", 99, media=MediaKind.VIDEO)
        assert a == b
        assert len({a, b}) == 1
        assert a != make_item("2", 10)


class TestCollection:
    """Test Collection helpers"""

    def test_unsorted(self):
        items = [make_item("1", 1)]
        unsorted = Collection.unsorted(items)
        assert unsorted.collection_id == ""
        assert unsorted.secret == ""
        assert unsorted.title == "Unsorted"
        assert unsorted.is_unsorted
        assert unsorted.items == items
        assert unsorted.items is not items

    def test_from_get_list_entry(self):
        collection = Collection.from_flickr_api(
            {"id": "721", "secret": "s", "title": {"_content": "Holidays"}}
        )
        assert collection.collection_id == "721"
        assert collection.title == "Holidays"
        assert collection.items == []
        assert not collection.is_unsorted

    def test_untitled_uses_id(self):
        assert Collection.from_flickr_api({"id": "721"}).title == "721"


class TestUser:
    """Test User construction"""

    def test_from_person(self):
        user = User.from_flickr_api({
            "nsid": "12345678@N00",
            "username": {"_content": "someuser"},
            "realname": {"_content": " Some User "},
        })
        assert user == User("12345678@N00", "someuser", "Some User")

    def test_missing_names(self):
        user = User.from_flickr_api({"id": "12345678@N00"})
        assert user.username == ""
        assert user.realname == ""

    def test_missing_id(self):
        with pytest.raises(FlickrError):
            User.from_flickr_api({"username": {"_content": "x"}})
