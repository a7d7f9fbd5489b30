"""
Data models for Flickr entities.

This module defines the dataclasses that flow through the crawler:
photos/videos (MediaItem), photosets (Collection) and users (User).

Design Decisions:
    - User is frozen (immutable); it is only read after being fetched.
    - MediaItem is mutable in exactly one field, is_original_available,
      which the item processor sets after a download attempt.
    - MediaItem equality and hashing use the Flickr photo id only, so
      set arithmetic between photosets and the full photo list works on
      identity rather than on descriptive fields.
    - Collection.items is populated after construction, once the photoset
      contents have been fetched.

Usage:
    from flickr_crawler.flickr.models import MediaItem, Collection

    item = MediaItem.from_flickr_api({"id": "123", "media": "photo", "dateupload": "1700000000"})
    unsorted = Collection.unsorted([item])
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from flickr_crawler.core.exceptions import FlickrError


UNSORTED_TITLE = "Unsorted"


class MediaKind(Enum):
    """The two kinds of media Flickr hosts."""
    PICTURE = "photo"
    VIDEO = "video"

    @classmethod
    def from_flickr(cls, value: str | None) -> "MediaKind":
        """Map Flickr's 'media' field to a MediaKind. Anything but 'video' is a picture."""
        if value is not None and value.strip().lower() == cls.VIDEO.value:
            return cls.VIDEO
        return cls.PICTURE


def parse_upload_date(value: Any, item_id: str = "") -> datetime:
    """
    Convert Flickr's 'dateupload' (unix seconds, as string or int) to a UTC datetime.

    Raises:
        FlickrError: With is_invalid_call=True if the value is missing or not numeric.
                     The API response is malformed, which is fatal for the pass.
    """
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise FlickrError(
            f"Unparseable upload date for photo {item_id}: {value!r}",
            details={"item_id": item_id, "dateupload": value},
            is_invalid_call=True
        ) from e


@dataclass(eq=False)
class MediaItem:
    """
    A single crawlable Flickr photo or video.

    Attributes:
        item_id: Flickr photo id. Unique within Flickr.
                 Example: "52345678901"
        media: PICTURE or VIDEO.
        date_upload: When the item was uploaded (UTC). Assigned by Flickr,
                     never changes.
        owner: NSID of the owning user, if known.
        title: Item title, if known.
        secret: Flickr photo secret, if known.
        original_format: File format of the uploaded original ("jpg",
                         "png", ...), if Flickr reveals it.
        is_original_available: None until a download was attempted, then
                               True if the original quality was downloaded,
                               False if a fallback size was used.
    """

    item_id: str
    media: MediaKind
    date_upload: datetime
    owner: str = ""
    title: str = ""
    secret: str = ""
    original_format: str = ""
    is_original_available: bool | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MediaItem):
            return NotImplemented
        return self.item_id == other.item_id

    def __hash__(self) -> int:
        return hash(self.item_id)

    @property
    def is_video(self) -> bool:
        return self.media is MediaKind.VIDEO

    @classmethod
    def from_flickr_api(cls, photo_data: dict[str, Any], owner: str = "") -> "MediaItem":
        """
        Create a MediaItem from a Flickr photo listing entry.

        Works with entries of flickr.people.getPhotos and
        flickr.photosets.getPhotos requested with
        extras=date_upload,media,original_format, and with the 'photo'
        object of flickr.photos.getInfo (where the upload date is in
        'dateuploaded' and the title is nested).

        Args:
            photo_data: One photo dictionary from the API response.
            owner: Fallback owner NSID when the entry does not carry one
                   (photoset listings put the owner on the photoset).

        Raises:
            FlickrError: If the id is missing or the upload date is unparseable.
        """
        item_id = str(photo_data.get("id", "")).strip()
        if not item_id:
            raise FlickrError(
                "Photo entry without id in Flickr response",
                details={"photo_data": photo_data},
                is_invalid_call=True
            )

        raw_date = photo_data.get("dateupload", photo_data.get("dateuploaded"))

        title = photo_data.get("title", "")
        if isinstance(title, dict):
            title = title.get("_content", "")

        raw_owner = photo_data.get("owner", owner)
        if isinstance(raw_owner, dict):
            raw_owner = raw_owner.get("nsid", owner)

        return cls(
            item_id=item_id,
            media=MediaKind.from_flickr(photo_data.get("media")),
            date_upload=parse_upload_date(raw_date, item_id),
            owner=raw_owner or "",
            title=title or "",
            secret=photo_data.get("secret", "") or "",
            original_format=str(photo_data.get("originalformat", "") or "").lower(),
        )


@dataclass
class Collection:
    """
    A named grouping of media items (a Flickr photoset / album).

    Attributes:
        collection_id: Flickr photoset id, "" for the synthetic Unsorted collection.
        secret: Photoset secret, "" for Unsorted.
        title: Display title, "Unsorted" for the synthetic collection.
        items: Member items. Empty until populated from the API.
    """

    collection_id: str
    secret: str
    title: str
    items: list[MediaItem] = field(default_factory=list)

    @property
    def is_unsorted(self) -> bool:
        return self.collection_id == ""

    @classmethod
    def unsorted(cls, items: list[MediaItem]) -> "Collection":
        """Build the synthetic collection holding items that belong to no photoset."""
        return cls(collection_id="", secret="", title=UNSORTED_TITLE, items=list(items))

    @classmethod
    def from_flickr_api(cls, photoset_data: dict[str, Any]) -> "Collection":
        """
        Create an (unpopulated) Collection from a flickr.photosets.getList entry.

        Raises:
            FlickrError: If the photoset has no id.
        """
        collection_id = str(photoset_data.get("id", "")).strip()
        if not collection_id:
            raise FlickrError(
                "Photoset entry without id in Flickr response",
                details={"photoset_data": photoset_data},
                is_invalid_call=True
            )

        title = photoset_data.get("title", "")
        if isinstance(title, dict):
            title = title.get("_content", "")

        return cls(
            collection_id=collection_id,
            secret=photoset_data.get("secret", "") or "",
            title=title or collection_id,
        )


@dataclass(frozen=True)
class User:
    """
    A Flickr account.

    Attributes:
        user_id: Flickr NSID. Example: "12345678@N00"
        username: Flickr screen name, may be empty.
        realname: Display name from the profile, may be empty.
    """

    user_id: str
    username: str = ""
    realname: str = ""

    @classmethod
    def from_flickr_api(cls, person_data: dict[str, Any]) -> "User":
        """
        Create a User from the 'person' object of flickr.people.getInfo.

        Raises:
            FlickrError: If the person has no id.
        """
        user_id = str(person_data.get("nsid", person_data.get("id", ""))).strip()
        if not user_id:
            raise FlickrError(
                "Person entry without id in Flickr response",
                details={"person_data": person_data},
                is_invalid_call=True
            )

        def _content(key: str) -> str:
            value = person_data.get(key, "")
            if isinstance(value, dict):
                value = value.get("_content", "")
            return (value or "").strip()

        return cls(
            user_id=user_id,
            username=_content("username"),
            realname=_content("realname"),
        )
