"""
Configuration management for flickr-crawler.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Flickr API credentials (api_key, api_secret)
    - Output directory for downloaded files, logs and database.db
    - Crawler toggles (download stage, database inserts/lookups,
      early termination at the last crawl date, media kinds)
    - Download timeout

Example config.yaml:
    flickr:
      api_key: "your_api_key_here"
      api_secret: "your_api_secret_here"

    output:
      directory: "~/Pictures/FlickrCrawler"

    crawler:
      enable_download_handler: true
      enable_db_inserts: true
      enable_db_lookups: true
      check_last_crawl_date: true
      crawl_pictures: true
      crawl_videos: true

    download:
      timeout: 60
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from flickr_crawler.core.exceptions import ConfigError


# Default configuration file name (always in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_TIMEOUT = 60


@dataclass(frozen=True)
class FlickrConfig:
    """
    Flickr API credentials.

    Attributes:
        api_key: The Flickr application key.
        api_secret: The Flickr application secret.
    """
    api_key: str
    api_secret: str


@dataclass(frozen=True)
class OutputConfig:
    """
    Output directory configuration.

    Attributes:
        directory: Absolute path where user folders, logs/ and database.db
                   are created. ~ is expanded.
    """
    directory: Path


@dataclass(frozen=True)
class CrawlerConfig:
    """
    Crawler behaviour toggles.

    Read once at startup and passed by reference into the crawler,
    the item processor and the collection walker. Never mutated.

    Attributes:
        enable_download: Run the download stage for admitted items.
        enable_db_inserts: Record processed items (and users) in the database.
        enable_db_lookups: Skip items already recorded in the database.
        check_last_crawl_date: Stop walking a collection at the first item
                               uploaded before the user's last crawl date.
        crawl_pictures: Admit photos.
        crawl_videos: Admit videos.
    """
    enable_download: bool = True
    enable_db_inserts: bool = True
    enable_db_lookups: bool = True
    check_last_crawl_date: bool = True
    crawl_pictures: bool = True
    crawl_videos: bool = True


@dataclass(frozen=True)
class DownloadConfig:
    """
    Download behaviour configuration.

    Attributes:
        timeout: Seconds before an HTTP request to the file host times out.
    """
    timeout: int = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Saving to: {config.output.directory}")
        if not config.crawler.crawl_videos:
            print("Videos are skipped")
    """
    flickr: FlickrConfig
    output: OutputConfig
    crawler: CrawlerConfig
    download: DownloadConfig

    def with_crawler(self, **changes: bool) -> "Config":
        """Return a copy with some crawler toggles overridden (CLI flags)."""
        return replace(self, crawler=replace(self.crawler, **changes))


# Mapping of config.yaml keys to CrawlerConfig fields
_CRAWLER_KEYS = {
    "enable_download_handler": "enable_download",
    "enable_db_inserts": "enable_db_inserts",
    "enable_db_lookups": "enable_db_lookups",
    "check_last_crawl_date": "check_last_crawl_date",
    "crawl_pictures": "crawl_pictures",
    "crawl_videos": "crawl_videos",
}


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. Read and parse YAML content
        3. Validate structure (required sections exist)
        4. Parse flickr credentials and output directory
        5. Parse crawler toggles and download settings with defaults
        6. Create and return frozen Config object
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    return Config(
        flickr=_parse_flickr_config(raw_config["flickr"]),
        output=_parse_output_config(raw_config["output"]),
        crawler=_parse_crawler_config(raw_config.get("crawler")),
        download=_parse_download_config(raw_config.get("download"))
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check that required sections exist and optional ones are dictionaries.

    Raises:
        ConfigError: If validation fails.
    """
    for section in ["flickr", "output"]:
        if raw_config.get(section) is None:
            raise ConfigError(
                f"Missing required section: '{section}'",
                details={"missing_section": section}
            )

    for section in ["flickr", "output", "crawler", "download"]:
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _parse_flickr_config(flickr_section: dict[str, Any]) -> FlickrConfig:
    """
    Parse the Flickr credentials section.

    Raises:
        ConfigError: If api_key or api_secret is missing or empty.
    """
    api_key = flickr_section.get("api_key", "")
    api_secret = flickr_section.get("api_secret", "")

    if not isinstance(api_key, str) or not api_key.strip():
        raise ConfigError(
            "'flickr.api_key' must be a non-empty string",
            details={"field": "flickr.api_key"}
        )

    if not isinstance(api_secret, str) or not api_secret.strip():
        raise ConfigError(
            "'flickr.api_secret' must be a non-empty string",
            details={"field": "flickr.api_secret"}
        )

    return FlickrConfig(api_key=api_key.strip(), api_secret=api_secret.strip())


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse the output section.

    Expands ~ to home directory and converts to absolute Path.
    Does NOT create the directory.

    Raises:
        ConfigError: If directory is missing or empty.
    """
    directory = output_section.get("directory", "")

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'output.directory' must be a non-empty string",
            details={"field": "output.directory"}
        )

    return OutputConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_crawler_config(crawler_section: dict[str, Any] | None) -> CrawlerConfig:
    """
    Parse the crawler toggles. Missing keys keep their defaults (all enabled).

    Raises:
        ConfigError: If a toggle is not a boolean or the key is unknown.
    """
    if crawler_section is None:
        return CrawlerConfig()

    values: dict[str, bool] = {}
    for key, value in crawler_section.items():
        if key not in _CRAWLER_KEYS:
            raise ConfigError(
                f"Unknown crawler option: 'crawler.{key}'",
                details={"field": f"crawler.{key}"}
            )
        if not isinstance(value, bool):
            raise ConfigError(
                f"'crawler.{key}' must be true or false",
                details={"field": f"crawler.{key}", "value": value}
            )
        values[_CRAWLER_KEYS[key]] = value

    return CrawlerConfig(**values)


def _parse_download_config(download_section: dict[str, Any] | None) -> DownloadConfig:
    """
    Parse the download section, applying defaults.

    Raises:
        ConfigError: If timeout is not a positive integer.
    """
    timeout = DEFAULT_TIMEOUT

    if download_section is not None:
        raw_timeout = download_section.get("timeout")
        if raw_timeout is not None:
            if isinstance(raw_timeout, bool) or not isinstance(raw_timeout, int) or raw_timeout < 1:
                raise ConfigError(
                    "'download.timeout' must be a positive integer",
                    details={"field": "download.timeout", "value": raw_timeout}
                )
            timeout = raw_timeout

    return DownloadConfig(timeout=timeout)
