"""
Crawl module for flickr-crawler.

Components:
    - Crawler: One pass per user, advances the watermark on success
    - CollectionWalker: Newest-first walk with early termination
    - ItemProcessor: Admission, lookup, download, insert per item
    - organize_collections: Builds the Unsorted collection, walk order
    - is_admitted: Media-kind admission filter

Usage:
    from flickr_crawler.crawl import Crawler

    crawler = Crawler(api, config.crawler, downloader, database)
    report = crawler.crawl_all("someuser")
"""

from flickr_crawler.crawl.admission import is_admitted
from flickr_crawler.crawl.crawler import Crawler, CrawlReport, CrawlState
from flickr_crawler.crawl.processor import ItemProcessor
from flickr_crawler.crawl.reconciler import (
    build_unsorted_collection,
    extract_unsorted_items,
    organize_collections,
)
from flickr_crawler.crawl.walker import CollectionWalker, WalkStats

__all__ = [
    "Crawler",
    "CrawlReport",
    "CrawlState",
    "CollectionWalker",
    "WalkStats",
    "ItemProcessor",
    "is_admitted",
    "organize_collections",
    "build_unsorted_collection",
    "extract_unsorted_items",
]
