"""
Core module for flickr-crawler.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - database: Thread-safe SQLite record store and watermarks
    - logger: Logging system with multiple outputs

Usage:
    from flickr_crawler.core import (
        Config, load_config,
        Database,
        setup_logging, get_logger,
        FlickrCrawlerError, ConfigError, DatabaseError
    )
"""

from flickr_crawler.core.config import (
    Config,
    CrawlerConfig,
    DownloadConfig,
    FlickrConfig,
    OutputConfig,
    load_config,
)
from flickr_crawler.core.database import Database, NEVER_CRAWLED
from flickr_crawler.core.exceptions import (
    ConfigError,
    DatabaseError,
    DownloadError,
    FlickrCrawlerError,
    FlickrError,
    ItemNotFoundError,
    UserNotFoundError,
    WatermarkError,
)
from flickr_crawler.core.logger import (
    get_logger,
    log_download_failure,
    log_quality_fallback,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "FlickrConfig",
    "OutputConfig",
    "CrawlerConfig",
    "DownloadConfig",
    "load_config",
    # Database
    "Database",
    "NEVER_CRAWLED",
    # Exceptions
    "FlickrCrawlerError",
    "ConfigError",
    "DatabaseError",
    "WatermarkError",
    "FlickrError",
    "UserNotFoundError",
    "ItemNotFoundError",
    "DownloadError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_download_failure",
    "log_quality_fallback",
    "shutdown_logging",
]
