"""
Logging configuration for flickr-crawler.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - download_failures.log: Items whose download failed, with the reason
    - quality_fallbacks.log: Items saved in a lower quality than the original

The logging system follows the principle: everything to screen is also saved
to file, then filtered into specialized files.

Log File Locations:
    All log files are created in output_dir/logs, one set per run
    (file names carry the run timestamp).

Usage:
    from flickr_crawler.core.logger import setup_logging, get_logger

    setup_logging(output_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Starting crawl")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name on the console.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to the console without breaking tqdm progress bars.

    tqdm progress bars write to stderr and use carriage returns to update
    in-place. This handler uses tqdm.write() which prints above any active
    progress bar (the downloader shows one per transferred file).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ReportFileHandler(logging.Handler):
    """
    Base handler for human-readable report files.

    Subclasses declare the `extra=` field that marks a record as belonging
    to their report (MARKER_FIELD) and render one entry per record in
    format_entry(). Records without the marker field are ignored.

    Attributes:
        report_path: Path to the report file.
        report_file: Open file handle (None until open() is called).
    """

    MARKER_FIELD = ""

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def format_entry(self, record: logging.LogRecord) -> str:
        raise NotImplementedError

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, self.MARKER_FIELD):
            return

        if self.report_file is None:
            return

        try:
            self.report_file.write(self.format_entry(record))
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class DownloadFailedItemHandler(ReportFileHandler):
    """
    Captures failed downloads for download_failures.log:

        52345678901 (photo) in Holidays 2019
        Reason: HTTP 404 from https://live.staticflickr.com/...

    Fed by log_download_failure().
    """

    MARKER_FIELD = "download_failed_item_id"

    def format_entry(self, record: logging.LogRecord) -> str:
        item_id = getattr(record, "download_failed_item_id", "Unknown")
        media = getattr(record, "download_failed_media", "")
        collection = getattr(record, "download_failed_collection", "")
        reason = getattr(record, "download_failed_reason", "")

        header = f"{item_id} ({media})" if media else f"{item_id}"
        if collection:
            header += f" in {collection}"
        return f"{header}\nReason: {reason}\n\n"


class QualityFallbackHandler(ReportFileHandler):
    """
    Captures items saved below original quality for quality_fallbacks.log:

        52345678901
        Saved size: Large 1600

    Fed by log_quality_fallback().
    """

    MARKER_FIELD = "quality_fallback_item_id"

    def format_entry(self, record: logging.LogRecord) -> str:
        item_id = getattr(record, "quality_fallback_item_id", "Unknown")
        size_label = getattr(record, "quality_fallback_size", "") or "unknown"
        return f"{item_id}\nSaved size: {size_label}\n\n"


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(output_dir: Path) -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        output_dir: Directory where log files will be created.
                    Logs are stored in a 'logs' subdirectory.

    Behavior:
        1. Create output_dir/logs if it doesn't exist
        2. Configure root logger level to DEBUG, drop existing handlers
        3. Console handler (TqdmLoggingHandler), INFO, colored
        4. log_full_{timestamp}.log, DEBUG
        5. log_errors_{timestamp}.log, ERROR+ (ErrorOnlyFilter)
        6. download_failures_{timestamp}.log report
        7. quality_fallbacks_{timestamp}.log report
    """
    logs_dir = output_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"log_full_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"log_errors_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    download_handler = DownloadFailedItemHandler(logs_dir / f"download_failures_{timestamp}.log")
    download_handler.open()
    root_logger.addHandler(download_handler)

    fallback_handler = QualityFallbackHandler(logs_dir / f"quality_fallbacks_{timestamp}.log")
    fallback_handler.open()
    root_logger.addHandler(fallback_handler)

    # Third-party loggers: warnings and above only
    for noisy in ("urllib3", "requests", "flickr_api"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        of their own and propagate to whatever the root logger has.
    """
    return logging.getLogger(name)


def log_download_failure(
    logger: logging.Logger,
    item_id: str,
    media: str,
    reason: str,
    collection: str = ""
) -> None:
    """
    Log an item whose download failed.

    Logs a WARNING (the item is skipped, the crawl continues) and attaches
    the extra fields DownloadFailedItemHandler writes to download_failures.log.

    Example:
        log_download_failure(logger, "52345678901", "photo", "HTTP 404", "Holidays")
    """
    logger.warning(
        f"Download failed for item {item_id}: {reason}",
        extra={
            "download_failed_item_id": item_id,
            "download_failed_media": media,
            "download_failed_reason": reason,
            "download_failed_collection": collection,
        }
    )


def log_quality_fallback(
    logger: logging.Logger,
    item_id: str,
    size_label: str | None = None
) -> None:
    """
    Log an item for which the original quality was not available.

    Emits exactly one WARNING naming the item id, and feeds
    QualityFallbackHandler.
    """
    logger.warning(
        f"Original quality not available for item {item_id}. "
        f"Downloaded the next best quality version"
        + (f" ({size_label})." if size_label else "."),
        extra={
            "quality_fallback_item_id": item_id,
            "quality_fallback_size": size_label,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove all root handlers.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
