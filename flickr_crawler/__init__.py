"""
flickr-crawler: Incrementally mirror Flickr users' photos and videos.

This package crawls a Flickr user's whole library (every album plus the
photos that belong to no album) into a local folder and a SQLite record
store. Repeated runs only download what is new.

Architecture:
    One crawl pass per user:

    RESOLVE_USER (flickr/):
        - Resolve a screen name to an NSID if needed
        - Fetch the profile, derive the user folder name
        - Read the last completed crawl date (the watermark)

    BUILD_COLLECTIONS (crawl/reconciler.py):
        - List albums and their items
        - List all items, gather the ones in no album into "Unsorted"
        - Unsorted is walked first

    WALK_COLLECTIONS (crawl/walker.py, crawl/processor.py):
        - Newest-first per album, stop at the first item older than
          the watermark
        - Per item: media-kind admission, lookup, download, insert

    ADVANCE_WATERMARK (core/database.py):
        - Only after the whole pass succeeded

Modules:
    core/       - Configuration, database, logging, exceptions
    flickr/     - Flickr API client and data models
    download/   - Best-quality media download
    crawl/      - Reconciler, admission filter, processor, walker, crawler
    utils/      - Folder naming and filesystem helpers
    cli.py      - Command-line interface

Usage:
    Command Line:
        flickr-crawl --user someuser
        flickr-crawl --user 12345678@N00 --full
        flickr-crawl --photo 52345678901

    Python API:
        from flickr_crawler.core import load_config, Database, setup_logging
        from flickr_crawler.flickr import FlickrClient
        from flickr_crawler.download import Downloader
        from flickr_crawler.crawl import Crawler

        config = load_config()
        setup_logging(config.output.directory)
        database = Database(config.output.directory / "database.db")

        client = FlickrClient.init(config.flickr.api_key, config.flickr.api_secret)
        downloader = Downloader(client, config.output.directory)

        crawler = Crawler(client, config.crawler, downloader, database)
        crawler.crawl_all("someuser")
        crawler.close()

Dependencies:
    - flickr_api: Flickr REST API access
    - requests: Media download
    - yt-dlp: Filename sanitization
    - click: CLI framework
    - rich-click: CLI colors
    - tqdm: Progress bars
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "flickr-crawler"
__license__ = "MIT"

# Convenience imports for common usage
from flickr_crawler.core import (
    Config,
    ConfigError,
    Database,
    DatabaseError,
    DownloadError,
    FlickrCrawlerError,
    FlickrError,
    get_logger,
    load_config,
    setup_logging,
)
from flickr_crawler.flickr import Collection, FlickrClient, MediaItem, User

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "Database",
    "setup_logging",
    "get_logger",
    # Exceptions
    "FlickrCrawlerError",
    "ConfigError",
    "DatabaseError",
    "FlickrError",
    "DownloadError",
    # Models
    "FlickrClient",
    "MediaItem",
    "Collection",
    "User",
]
