# tests/test_database.py
"""Test the SQLite record store"""

import sqlite3
from datetime import datetime, timezone

import pytest

from flickr_crawler.core.database import (
    Database,
    format_watermark,
    parse_watermark,
)
from flickr_crawler.core.exceptions import DatabaseError, WatermarkError
from flickr_crawler.flickr.models import MediaKind, User

from fakes import USER_ID, at, make_item


@pytest.fixture
def db(temp_dir):
    database = Database(temp_dir / "database.db")
    yield database
    database.close()


class TestWatermarkFormat:
    """Test the date_crawled text format"""

    def test_format(self):
        assert format_watermark(datetime(2024, 3, 9, 7, 5, 1, tzinfo=timezone.utc)) == "2024/03/09 07:05:01"

    def test_naive_is_utc(self):
        assert format_watermark(datetime(2024, 3, 9, 7, 5, 1)) == "2024/03/09 07:05:01"

    def test_parse(self):
        assert parse_watermark("2024/03/09 07:05:01") == datetime(2024, 3, 9, 7, 5, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "2024-03-09", "yesterday"])
    def test_parse_corrupt(self, value):
        with pytest.raises(WatermarkError):
            parse_watermark(value, USER_ID)


class TestDatabaseInit:
    """Test database creation"""

    def test_missing_parent(self, temp_dir):
        with pytest.raises(DatabaseError):
            Database(temp_dir / "nope" / "database.db")

    def test_reopen(self, temp_dir):
        path = temp_dir / "database.db"
        with Database(path) as first:
            first.insert_record(make_item("1", 1))
        with Database(path) as second:
            assert second.exists_record("1")

    def test_version_mismatch(self, temp_dir):
        path = temp_dir / "database.db"
        Database(path).close()
        with sqlite3.connect(path) as conn:
            conn.execute("UPDATE schema_version SET version = 99")
        with pytest.raises(DatabaseError, match="version"):
            Database(path)


class TestMediaRecords:
    """Test processed-item records"""

    def test_insert_and_lookup(self, db):
        item = make_item("1", 1700000000, media=MediaKind.VIDEO)
        item.is_original_available = False

        assert not db.exists_record("1")
        assert db.insert_record(item) is True
        assert db.exists_record("1")

        record = db.get_record("1")
        assert record["media"] == "video"
        assert record["owner"] == USER_ID
        assert record["is_original_available"] is False

    def test_duplicate_insert_ignored(self, db):
        first = make_item("1", 1)
        first.is_original_available = True
        second = make_item("1", 1)
        second.is_original_available = False

        assert db.insert_record(first) is True
        assert db.insert_record(second) is False
        assert db.count_records() == 1
        assert db.get_record("1")["is_original_available"] is True

    def test_unknown_quality(self, db):
        db.insert_record(make_item("1", 1))
        assert db.get_record("1")["is_original_available"] is None

    def test_count_by_owner(self, db):
        db.insert_record(make_item("1", 1))
        db.insert_record(make_item("2", 1, owner="other@N01"))
        assert db.count_records(USER_ID) == 1
        assert db.count_records() == 2

    def test_missing_record(self, db):
        assert db.get_record("404") is None


class TestUsersAndWatermarks:
    """Test users and last crawl dates"""

    def test_insert_user_if_absent(self, db):
        user = User(USER_ID, "someuser", "Some User")
        assert db.insert_user_if_absent(user) is True
        assert db.insert_user_if_absent(User(USER_ID, "renamed", "")) is False
        assert db.get_user_record(USER_ID)["username"] == "someuser"

    def test_never_crawled(self, db):
        assert db.get_watermark(USER_ID) is None
        db.insert_user_if_absent(User(USER_ID))
        assert db.get_watermark(USER_ID) is None

    def test_set_and_get(self, db):
        db.insert_user_if_absent(User(USER_ID))
        when = datetime(2024, 3, 9, 7, 5, 1, tzinfo=timezone.utc)

        db.set_watermark(USER_ID, when)

        assert db.get_watermark(USER_ID) == when
        assert db.get_user_record(USER_ID)["date_crawled"] == "2024/03/09 07:05:01"

    def test_set_creates_user(self, db):
        db.set_watermark(USER_ID, at(100))
        assert db.get_watermark(USER_ID) == at(100)

    def test_never_moves_backwards(self, db):
        db.set_watermark(USER_ID, at(1000))
        db.set_watermark(USER_ID, at(10))
        assert db.get_watermark(USER_ID) == at(1000)

    def test_corrupt_value_raises(self, db, temp_dir):
        db.insert_user_if_absent(User(USER_ID))
        db.close()
        with sqlite3.connect(temp_dir / "database.db") as conn:
            conn.execute("UPDATE users SET date_crawled = 'garbage'")

        with pytest.raises(WatermarkError):
            db.get_watermark(USER_ID)
