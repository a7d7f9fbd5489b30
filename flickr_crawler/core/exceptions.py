"""
Exception classes for flickr-crawler.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, and the hierarchy tells the crawler which failures are fatal
for a user's crawl pass and which only skip a single item.

Exception Hierarchy:
    FlickrCrawlerError (base)
        ConfigError - Configuration file issues
        DatabaseError - SQLite database issues (FATAL for a pass)
            WatermarkError - Corrupt last-crawled timestamp (FATAL)
        FlickrError - Flickr API issues (FATAL when is_invalid_call)
            UserNotFoundError - User no longer exists (recoverable)
            ItemNotFoundError - Photo/video no longer exists (recoverable)
        DownloadError - Transfer failures inside the downloader
"""


class FlickrCrawlerError(Exception):
    """
    Base exception for all flickr-crawler errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., photo id, URL).

    Example:
        try:
            crawler.crawl_all("some_user")
        except FlickrCrawlerError as e:
            logger.error(f"Crawl failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'item_id': Flickr photo ID involved in the error
                     - 'user_id': Flickr user NSID
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(FlickrCrawlerError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - Required fields missing (api_key, output directory)
        - Invalid field values (e.g., a crawler toggle that is not a boolean)
    """
    pass


class DatabaseError(FlickrCrawlerError):
    """
    Raised when there's an issue with the SQLite database.

    This is a CRITICAL error for the current crawl pass: the pass is
    aborted and the user's watermark is NOT advanced, so the next run
    retries from the same checkpoint.

    Common causes:
        - Permission denied when reading/writing database.db
        - Disk full
        - Schema version mismatch
    """
    pass


class WatermarkError(DatabaseError):
    """
    Raised when a stored last-crawled timestamp cannot be parsed.

    A corrupt watermark must never be treated as "never crawled" (that
    would re-download everything) nor as "crawled now" (that would skip
    everything), so it surfaces as a fatal database error instead.
    """
    pass


class FlickrError(FlickrCrawlerError):
    """
    Raised when there's an issue with the Flickr API.

    Attributes:
        is_not_found: True if the referenced user or item no longer exists.
                      Recoverable: only the affected unit is skipped.
        is_invalid_call: True if the request or response was malformed.
                         CRITICAL: aborts the current crawl pass.

    Example:
        raise FlickrError(
            "Flickr API error 100: Invalid API Key",
            details={'method': 'flickr.people.getInfo', 'code': 100},
            is_invalid_call=True
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_not_found: bool = False,
        is_invalid_call: bool = False
    ) -> None:
        """
        Initialize Flickr error with classification flags.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            is_not_found: Set to True when the remote entity does not exist.
            is_invalid_call: Set to True when the call itself failed.
        """
        super().__init__(message, details)
        self.is_not_found = is_not_found
        self.is_invalid_call = is_invalid_call


class UserNotFoundError(FlickrError):
    """Raised when a Flickr user (by id or username) does not exist."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message, details, is_not_found=True)


class ItemNotFoundError(FlickrError):
    """
    Raised when a photo or video no longer exists at Flickr.

    This is a NON-CRITICAL error - the collection walker logs it as a
    warning and continues with the next item.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message, details, is_not_found=True)


class DownloadError(FlickrCrawlerError):
    """
    Raised when transferring a media file fails.

    This is a NON-CRITICAL error - the downloader converts it into a
    FAILED download status and the crawler skips the item.

    Common causes:
        - HTTP error status from the static file host
        - Connection dropped mid-transfer
        - Disk full or permission denied
    """
    pass
