"""
Thread-safe SQLite database for flickr-crawler.

The database is the crawler's persistent record store: it remembers which
Flickr items were already processed (so repeated runs never download the
same item twice) and, per user, the last time a crawl pass completed
(the watermark used for early termination).

Schema:
    users:  One row per crawled Flickr user (user_id, username, realname,
            date_crawled watermark)
    media:  One row per processed photo/video (item_id, owner, media kind,
            upload date, original-quality flag)

Watermark Format:
    users.date_crawled holds "YYYY/MM/DD HH:MM:SS" in UTC. NULL means the
    user was never crawled to the end. A value that cannot be parsed raises
    WatermarkError instead of being treated as NULL.

Usage:
    db = Database(output_dir / "database.db")

    if not db.exists_record(item.item_id):
        db.insert_record(item)

    watermark = db.get_watermark(user.user_id) or NEVER_CRAWLED
    db.set_watermark(user.user_id, datetime.now(timezone.utc))
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

from flickr_crawler.core.exceptions import DatabaseError, WatermarkError
from flickr_crawler.core.logger import get_logger
from flickr_crawler.flickr.models import MediaItem, User

logger = get_logger(__name__)


DATABASE_VERSION = 1
DATE_CRAWLED_FORMAT = "%Y/%m/%d %H:%M:%S"

# Sentinel watermark for users never crawled to the end
NEVER_CRAWLED = datetime(1900, 1, 1, tzinfo=timezone.utc)


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    username TEXT,
    realname TEXT,
    date_crawled TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS media (
    item_id TEXT PRIMARY KEY,
    owner TEXT,
    media TEXT NOT NULL,
    title TEXT,
    date_upload TEXT,
    is_original_available INTEGER,
    inserted_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_media_owner ON media(owner);
"""


def format_watermark(when: datetime) -> str:
    """Render a datetime in the users.date_crawled format (converted to UTC)."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).strftime(DATE_CRAWLED_FORMAT)


def parse_watermark(value: str, user_id: str = "") -> datetime:
    """
    Parse a users.date_crawled value.

    Raises:
        WatermarkError: If the value does not match DATE_CRAWLED_FORMAT.
    """
    try:
        parsed = datetime.strptime(value, DATE_CRAWLED_FORMAT)
    except (TypeError, ValueError) as e:
        raise WatermarkError(
            f"Corrupt last crawl date for user {user_id}: {value!r}",
            details={"user_id": user_id, "date_crawled": value}
        ) from e
    return parsed.replace(tzinfo=timezone.utc)


class Database:
    """
    Thread-safe SQLite record store.

    Uses a single persistent connection with thread locking for safety.
    All public methods acquire self._lock before executing, and every
    sqlite3.Error is re-raised as DatabaseError so the crawler can abort
    the pass without advancing the watermark.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        if not db_path.parent.exists():
            raise DatabaseError(
                f"Parent directory does not exist: {db_path.parent}",
                details={"path": str(db_path.parent)}
            )

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                details={"path": str(db_path)}
            ) from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get the persistent database connection as a context manager.

        The connection is created once and reused for all operations.
        sqlite3 errors raised inside the block are wrapped in DatabaseError.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # We handle thread safety with _lock
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
        try:
            yield self._conn
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Database operation failed: {e}",
                details={"path": str(self.db_path), "original_error": str(e)}
            ) from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(_SCHEMA_SQL)

            cursor = conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = cursor.fetchone()

            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,))
            elif row[0] != DATABASE_VERSION:
                raise DatabaseError(
                    f"Database version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )
            conn.commit()

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    # =========================================================================
    # Media Records
    # =========================================================================

    def exists_record(self, item_id: str) -> bool:
        """Return True if the item was already processed in some earlier run."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT 1 FROM media WHERE item_id = ?", (item_id,))
                return cursor.fetchone() is not None

    def insert_record(self, item: MediaItem) -> bool:
        """
        Record a processed item.

        The insert is atomic on the primary key: inserting an item that is
        already recorded leaves the existing row untouched.

        Returns:
            True if a new row was written, False if the item was already recorded.
        """
        original = None if item.is_original_available is None else int(item.is_original_available)

        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO media
                        (item_id, owner, media, title, date_upload, is_original_available, inserted_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        item.item_id,
                        item.owner,
                        item.media.value,
                        item.title,
                        item.date_upload.isoformat(),
                        original,
                        self._now_iso(),
                    )
                )
                conn.commit()
                inserted = cursor.rowcount > 0

        if not inserted:
            logger.debug(f"Item {item.item_id} already recorded")
        return inserted

    def get_record(self, item_id: str) -> dict[str, Any] | None:
        """Return the stored row for an item as a dict, or None."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT * FROM media WHERE item_id = ?", (item_id,))
                row = cursor.fetchone()

        if row is None:
            return None

        data = dict(row)
        if data["is_original_available"] is not None:
            data["is_original_available"] = bool(data["is_original_available"])
        return data

    def count_records(self, owner: str | None = None) -> int:
        """Count recorded items, optionally only those of one owner."""
        with self._lock:
            with self._get_connection() as conn:
                if owner is None:
                    cursor = conn.execute("SELECT COUNT(*) FROM media")
                else:
                    cursor = conn.execute("SELECT COUNT(*) FROM media WHERE owner = ?", (owner,))
                return cursor.fetchone()[0]

    # =========================================================================
    # Users and Watermarks
    # =========================================================================

    def insert_user_if_absent(self, user: User) -> bool:
        """
        Record a user unless already known. Never touches an existing row.

        Returns:
            True if the user was newly inserted.
        """
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO users (user_id, username, realname, date_crawled, created_at)
                    VALUES (?, ?, ?, NULL, ?)
                    """,
                    (user.user_id, user.username, user.realname, self._now_iso())
                )
                conn.commit()
                return cursor.rowcount > 0

    def get_user_record(self, user_id: str) -> dict[str, Any] | None:
        """Return the stored row for a user as a dict, or None."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
                row = cursor.fetchone()
        return dict(row) if row else None

    def get_watermark(self, user_id: str) -> datetime | None:
        """
        Read the user's last completed crawl date.

        Returns:
            The watermark as a UTC datetime, or None if the user is unknown
            or was never crawled to the end.

        Raises:
            WatermarkError: If the stored value is corrupt.
        """
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT date_crawled FROM users WHERE user_id = ?", (user_id,))
                row = cursor.fetchone()

        if row is None or row[0] is None:
            return None
        return parse_watermark(row[0], user_id)

    def set_watermark(self, user_id: str, when: datetime) -> None:
        """
        Store the user's last completed crawl date.

        The watermark never moves backwards: an older value than the one
        stored is ignored. Users not yet known are created.

        Raises:
            WatermarkError: If the currently stored value is corrupt.
        """
        new_value = format_watermark(when)

        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute("SELECT date_crawled FROM users WHERE user_id = ?", (user_id,))
                row = cursor.fetchone()

                if row is None:
                    conn.execute(
                        "INSERT INTO users (user_id, date_crawled, created_at) VALUES (?, ?, ?)",
                        (user_id, new_value, self._now_iso())
                    )
                else:
                    if row[0] is not None and parse_watermark(row[0], user_id) > parse_watermark(new_value):
                        logger.debug(f"Keeping newer crawl date {row[0]} for user {user_id}")
                        return
                    conn.execute(
                        "UPDATE users SET date_crawled = ? WHERE user_id = ?",
                        (new_value, user_id)
                    )
                conn.commit()
