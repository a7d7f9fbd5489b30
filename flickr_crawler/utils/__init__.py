"""
Utility functions for flickr-crawler.

This module provides common helpers used across the application:
    - Filename sanitization (using yt-dlp's sanitize_filename)
    - Folder names for users and collections
    - Flickr user id detection
    - Path helpers

Usage:
    from flickr_crawler.utils import (
        sanitize_filename,
        user_folder_name,
        is_user_id
    )
"""

import re
from pathlib import Path

from yt_dlp.utils import sanitize_filename as yt_dlp_sanitize

from flickr_crawler.flickr.models import UNSORTED_TITLE, Collection, User


# Flickr NSIDs look like "12345678@N00"
_USER_ID_PATTERN = re.compile(r"^\d+@N\d{2}$")


def sanitize_filename(name: str, restricted: bool = True) -> str:
    """
    Sanitize a string for use as a file or folder name.

    Wraps yt_dlp.utils.sanitize_filename. Restricted mode (the default
    here) replaces spaces and special characters with underscores, which
    keeps user and album folders portable.

    Examples:
        sanitize_filename("Holidays 2019")   # "Holidays_2019"
        sanitize_filename("AC/DC live")      # "AC_DC_live"
    """
    return yt_dlp_sanitize(name.strip(), restricted=restricted)


def is_user_id(user_identification: str) -> bool:
    """
    Tell a Flickr NSID apart from a screen name.

    Examples:
        is_user_id("12345678@N00")   # True
        is_user_id("some_photographer")  # False
    """
    return bool(_USER_ID_PATTERN.match(user_identification.strip()))


def user_folder_name(user: User) -> str:
    """
    Folder name for a user's downloads.

    "{username}_{user_id}"; without a username, "{realname}_{user_id}";
    without either, the bare user id. Always sanitized.
    """
    if user.username:
        name = f"{user.username}_{user.user_id}"
    elif user.realname:
        name = f"{user.realname}_{user.user_id}"
    else:
        name = user.user_id
    return sanitize_filename(name)


def collection_folder_name(collection: Collection) -> str:
    """
    Folder name for a collection's downloads.

    Real photosets get "{title}_{photoset_id}", so two albums with the same
    title, or an album titled "Unsorted", never share a folder. The
    synthetic Unsorted collection is the only one without the id suffix.
    """
    if collection.is_unsorted:
        return sanitize_filename(collection.title) or UNSORTED_TITLE
    if collection.title and collection.title != collection.collection_id:
        return sanitize_filename(f"{collection.title}_{collection.collection_id}")
    return sanitize_filename(collection.collection_id)


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it (and its parents) if necessary.

    Returns:
        The same path (for chaining).
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
