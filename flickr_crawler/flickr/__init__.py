"""
Flickr module for flickr-crawler.

Components:
    - FlickrClient: Singleton wrapper around the Flickr REST API
    - MediaItem, Collection, User: Data models built from API responses

Usage:
    from flickr_crawler.flickr import FlickrClient, MediaItem, Collection
"""

from flickr_crawler.flickr.models import (
    Collection,
    MediaItem,
    MediaKind,
    User,
)
from flickr_crawler.flickr.client import FlickrClient

__all__ = [
    "FlickrClient",
    "MediaItem",
    "MediaKind",
    "Collection",
    "User",
]
