"""
Download module for flickr-crawler.

Components:
    - Downloader: Saves items in the best size Flickr offers
    - DownloadStatus: OK_ORIGINAL / OK_FALLBACK / FAILED
    - DownloadStats: Counters per Downloader

Usage:
    from flickr_crawler.download import Downloader, DownloadStatus
"""

from flickr_crawler.download.downloader import (
    Downloader,
    DownloadStats,
    DownloadStatus,
)

__all__ = [
    "Downloader",
    "DownloadStats",
    "DownloadStatus",
]
