"""
Command-line interface for flickr-crawler.

This module implements the CLI using Click. rich-click is used for the
output colors.

Commands:
    flickr-crawl --user <name-or-nsid>          Crawl one user
    flickr-crawl --user a --user b              Crawl several users in turn
    flickr-crawl --photo <photo-id>             Process a single photo/video

Options:
    --full                                      Ignore the last crawl date
    --no-download                               Record items without downloading
    --config <path>                             Use another config.yaml

Usage:
    # Incremental crawl (only what was uploaded since the last run)
    flickr-crawl --user someuser

    # Full re-crawl (already recorded items are still skipped)
    flickr-crawl --user 12345678@N00 --full

Configuration:
    The CLI requires a config.yaml file in the current directory (or the
    file given with --config) with:
    - Flickr API credentials (api_key, api_secret)
    - Output directory path
    - Optional crawler toggles and download timeout

Exit Codes:
    0   success
    1   configuration error or unexpected error
    2   database error
    3   Flickr API error
    4   other crawler error
    130 interrupted by user

    When several users are requested, a fatal error only aborts that
    user's pass; the remaining users are still crawled and the exit code
    reflects the first failure.

    A user or photo that no longer exists is skipped with a warning and
    does not change the exit code.
"""

import sys
from pathlib import Path
from typing import Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Targets",
            "options": ["--user", "--photo"],
        },
        {
            "name": "Crawl Options",
            "options": ["--full", "--no-download", "--config"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from flickr_crawler import __version__
from flickr_crawler.core import (
    Config,
    ConfigError,
    Database,
    DatabaseError,
    FlickrCrawlerError,
    FlickrError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from flickr_crawler.crawl import Crawler, CrawlReport
from flickr_crawler.download import Downloader
from flickr_crawler.flickr import FlickrClient
from flickr_crawler.utils import ensure_directory

logger = get_logger(__name__)


EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_DATABASE = 2
EXIT_FLICKR = 3
EXIT_OTHER = 4
EXIT_INTERRUPTED = 130


@click.command()
@click.option(
    "--user", "users",
    type=str,
    multiple=True,
    metavar="<name-or-nsid>",
    help="Flickr screen name or NSID to crawl (repeatable)"
)
@click.option(
    "--photo", "photo_id",
    type=str,
    default=None,
    metavar="<photo-id>",
    help="Process a single photo or video by id"
)
@click.option(
    "--full",
    is_flag=True,
    help="Ignore the last crawl date and walk every album completely"
)
@click.option(
    "--no-download",
    is_flag=True,
    help="Record items in the database without downloading them"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    users: tuple[str, ...],
    photo_id: Optional[str],
    full: bool,
    no_download: bool,
    config_path: Optional[Path],
    version: bool
) -> None:
    """
    flickr-crawler: Incrementally mirror Flickr photos and videos.

    Walks every album of a user (plus the photos in no album) newest-first
    and stops at the last completed crawl, so repeated runs only fetch
    what is new.

    \b
    BASIC USAGE:
        flickr-crawl --user someuser              # Incremental crawl
        flickr-crawl --user 12345678@N00 --full   # Walk everything again
        flickr-crawl --photo 52345678901          # Single photo
    """
    if version:
        click.echo(f"flickr-crawler {__version__}")
        ctx.exit(0)

    if not users and not photo_id:
        click.echo(ctx.get_help())
        ctx.exit(0)

    exit_code = _run_crawl(
        users=list(users),
        photo_id=photo_id,
        full=full,
        no_download=no_download,
        config_path=config_path
    )
    sys.exit(exit_code)


def _run_crawl(
    users: list[str],
    photo_id: str | None,
    full: bool,
    no_download: bool,
    config_path: Path | None
) -> int:
    """
    Execute the crawl based on CLI options.

    This is the main orchestration function that:
    1. Loads configuration
    2. Sets up logging
    3. Initializes database, Flickr client and downloader
    4. Crawls every requested user, then the requested photo
    5. Reports results

    Returns:
        Process exit code.
    """
    crawler: Crawler | None = None
    exit_code = EXIT_OK

    try:
        config = _load_configuration(config_path, full, no_download)

        ensure_directory(config.output.directory)
        setup_logging(config.output.directory)
        logger.info(f"flickr-crawler {__version__} starting")

        database = _initialize_database(config.output.directory)
        client = _initialize_flickr(config)
        downloader = Downloader(
            client,
            output_dir=config.output.directory,
            timeout=config.download.timeout
        )
        crawler = Crawler(client, config.crawler, downloader, database)

        for user in users:
            try:
                report = crawler.crawl_all(user)
                _print_report(report)
            except FlickrCrawlerError as e:
                if _is_not_found(e):
                    click.echo(f"Skipping {user}: {e.message}", err=True)
                    logger.warning(f"Skipping {user}: {e.message}")
                    continue
                code = _exit_code_for(e)
                click.echo(f"Crawl of {user} failed: {e.message}", err=True)
                logger.error(f"Crawl of {user} failed: {e.message}", exc_info=True)
                if exit_code == EXIT_OK:
                    exit_code = code

        if photo_id:
            _crawl_photo(crawler, photo_id)

        _print_download_stats(downloader)

        if exit_code == EXIT_OK:
            logger.info("flickr-crawler completed successfully")
        return exit_code

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        return EXIT_CONFIG

    except FlickrCrawlerError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        return _exit_code_for(e)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        return EXIT_CONFIG

    finally:
        if crawler is not None:
            crawler.close()
        shutdown_logging()


def _is_not_found(error: FlickrCrawlerError) -> bool:
    """True for a user or photo that no longer exists (skipped, not fatal)."""
    return isinstance(error, FlickrError) and error.is_not_found


def _crawl_photo(crawler: Crawler, photo_id: str) -> None:
    """
    Process a single photo.

    Raises:
        FlickrCrawlerError: On any fatal error. A missing photo is only
                            logged as a warning.
    """
    try:
        processed = crawler.crawl_item(photo_id)
    except FlickrCrawlerError as e:
        if not _is_not_found(e):
            raise
        click.echo(f"Skipping photo {photo_id}: {e.message}", err=True)
        logger.warning(f"Skipping photo {photo_id}: {e.message}")
        return

    if processed:
        logger.info(f"Photo {photo_id} processed")
    else:
        logger.info(f"Photo {photo_id} skipped")


def _exit_code_for(error: FlickrCrawlerError) -> int:
    """Map a fatal error to the process exit code."""
    if isinstance(error, ConfigError):
        return EXIT_CONFIG
    if isinstance(error, DatabaseError):
        return EXIT_DATABASE
    if isinstance(error, FlickrError):
        return EXIT_FLICKR
    return EXIT_OTHER


def _load_configuration(config_path: Path | None, full: bool, no_download: bool) -> Config:
    """
    Load config.yaml and apply the command-line overrides.

    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    config = load_config(config_path)

    overrides: dict[str, bool] = {}
    if full:
        overrides["check_last_crawl_date"] = False
    if no_download:
        overrides["enable_download"] = False

    if overrides:
        config = config.with_crawler(**overrides)
    return config


def _initialize_database(output_dir: Path) -> Database:
    """
    Initialize the SQLite database.

    Raises:
        DatabaseError: If database cannot be initialized.
    """
    return Database(output_dir / "database.db")


def _initialize_flickr(config: Config) -> FlickrClient:
    """Initialize the FlickrClient singleton (once per process)."""
    if FlickrClient.is_initialized():
        return FlickrClient()
    return FlickrClient.init(config.flickr.api_key, config.flickr.api_secret)


def _print_report(report: CrawlReport) -> None:
    """Log a per-album summary of one user's pass."""
    logger.info("=" * 60)
    logger.info(f"USER {report.user_id}")
    logger.info("=" * 60)
    for title, stats in report.collections:
        marker = " (stopped at last crawl)" if stats.stopped_early else ""
        logger.info(
            f"{title[:30]:<30} {stats.processed:>5} new {stats.skipped:>5} skipped"
            f"{marker}"
        )
    logger.info(f"Total new:         {report.processed}")
    logger.info(f"Total skipped:     {report.skipped}")
    logger.info(f"Not found:         {report.not_found}")
    logger.info("=" * 60)


def _print_download_stats(downloader: Downloader) -> None:
    """Log the download counters of this run."""
    stats = downloader.stats
    if stats.total == 0:
        return
    logger.info(f"Downloads:         {stats.total}")
    logger.info(f"Original quality:  {stats.original}")
    logger.info(f"Lower quality:     {stats.fallback}")
    logger.info(f"Failed:            {stats.failed}")


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `flickr-crawl` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
