"""
Media-kind admission filter.

Decides whether an item's media kind is enabled for processing. The
decision depends only on the kind and the two toggles of CrawlerConfig.
"""

from flickr_crawler.flickr.models import MediaKind


def is_admitted(media: MediaKind, crawl_pictures: bool, crawl_videos: bool) -> bool:
    """
    Return True iff the toggle matching the item's kind is enabled.

    Examples:
        is_admitted(MediaKind.PICTURE, True, False)  # True
        is_admitted(MediaKind.VIDEO, True, False)    # False
    """
    if media is MediaKind.VIDEO:
        return crawl_videos
    return crawl_pictures
