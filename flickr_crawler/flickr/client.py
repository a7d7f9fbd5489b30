"""
Flickr API client singleton for flickr-crawler.

This module provides a singleton wrapper around the flickr_api library's
raw REST interface (flickr_api.api.flickr), ensuring that only one client
instance exists throughout the application lifetime.

Singleton Pattern:
    FlickrClient must be initialized once with init(), and subsequent calls
    to FlickrClient() return the same instance. Attempting to call init()
    twice raises an error.

Responses:
    Every call is made with format=json and returns the decoded payload.
    Flickr signals failures with {"stat": "fail", "code": N, "message": ...};
    code 1 means "not found" for the user/photo lookups used here. Any other
    failure, and any malformed payload, is an invalid call.

Usage:
    from flickr_crawler.flickr.client import FlickrClient

    FlickrClient.init(api_key="...", api_secret="...")

    client = FlickrClient()
    user = client.get_user("12345678@N00")
    items = client.get_user_items(user.user_id)
"""

import json
from typing import Any

import flickr_api
from flickr_api.api import flickr
from flickr_api.flickrerrors import FlickrAPIError
from flickr_api.flickrerrors import FlickrError as FlickrLibraryError

from flickr_crawler.core.exceptions import (
    FlickrError,
    ItemNotFoundError,
    UserNotFoundError,
)
from flickr_crawler.core.logger import get_logger
from flickr_crawler.flickr.models import Collection, MediaItem, User

logger = get_logger(__name__)


# Flickr error code for "User not found" / "Photo not found" / "Photoset not found"
NOT_FOUND_CODE = 1

# Largest page size Flickr accepts for listing calls
PER_PAGE = 500

# Extras needed to build MediaItem objects from listing calls
LISTING_EXTRAS = "date_upload,media,original_format"


class FlickrClientMeta(type):
    """
    Metaclass implementing the singleton pattern for FlickrClient.

    Attributes:
        _instance: The singleton FlickrClient instance, or None.
    """

    _instance: "FlickrClient | None" = None

    def __call__(cls) -> "FlickrClient":
        """
        Get the FlickrClient singleton instance.

        Raises:
            FlickrError: If init() has not been called yet.
        """
        if cls._instance is None:
            raise FlickrError(
                "FlickrClient not initialized. Call FlickrClient.init("
                "api_key, api_secret) first.",
                is_invalid_call=True
            )
        return cls._instance

    def init(cls, api_key: str, api_secret: str, api: Any = None) -> "FlickrClient":
        """
        Initialize the FlickrClient singleton.

        Args:
            api_key: Flickr application key.
            api_secret: Flickr application secret.
            api: Raw method namespace to call. Defaults to flickr_api.api.flickr
                 after registering the keys with flickr_api.set_keys().

        Raises:
            FlickrError: If init() has already been called.
        """
        if cls._instance is not None:
            raise FlickrError(
                "FlickrClient already initialized. Call FlickrClient.reset() first.",
                is_invalid_call=True
            )

        if api is None:
            flickr_api.set_keys(api_key=api_key, api_secret=api_secret)
            api = flickr

        instance = type.__call__(cls, api)
        cls._instance = instance
        logger.debug("Flickr client initialized")
        return instance

    def is_initialized(cls) -> bool:
        """Check whether init() has been called."""
        return cls._instance is not None

    def reset(cls) -> None:
        """Drop the singleton instance (used by tests and re-initialization)."""
        cls._instance = None


class FlickrClient(metaclass=FlickrClientMeta):
    """
    Singleton Flickr API client.

    Implements the API side of the crawler: resolving users, listing
    photosets and their contents, listing all of a user's items, fetching
    single items, and listing the available download sizes of an item.

    Attributes:
        _api: Raw method namespace (attribute path -> callable), normally
              flickr_api.api.flickr.
    """

    def __init__(self, api: Any) -> None:
        """
        Note:
            Called by the metaclass init() method. Use FlickrClient.init().
        """
        self._api = api

    # =========================================================================
    # Raw Calls
    # =========================================================================

    def _call(self, method: str, **params: Any) -> dict[str, Any]:
        """
        Call a Flickr REST method and return the decoded JSON payload.

        Args:
            method: Full Flickr method name, e.g. "flickr.people.getInfo".
            **params: Method arguments.

        Raises:
            FlickrError: With details['code'] set when Flickr reports a
                         failure; is_invalid_call=True for every failure
                         (callers re-classify not-found codes).
        """
        func = self._api
        for part in method.split(".")[1:]:
            func = getattr(func, part)

        params["format"] = "json"
        params["nojsoncallback"] = 1

        try:
            result = func(**params)
        except FlickrAPIError as e:
            code = getattr(e, "code", None)
            raise FlickrError(
                f"Flickr API error {code} on {method}: {e}",
                details={"method": method, "code": code, "params": params},
                is_invalid_call=True
            ) from e
        except FlickrLibraryError as e:
            raise FlickrError(
                f"Flickr call {method} failed: {e}",
                details={"method": method, "params": params, "original_error": str(e)},
                is_invalid_call=True
            ) from e

        return self._decode(result, method)

    def _decode(self, result: Any, method: str) -> dict[str, Any]:
        """Turn a raw response (bytes, str or dict) into a checked payload."""
        if isinstance(result, bytes):
            result = result.decode("utf-8", errors="replace")

        if isinstance(result, str):
            try:
                result = json.loads(result)
            except json.JSONDecodeError as e:
                raise FlickrError(
                    f"Invalid response from {method}: {result[:200]}",
                    details={"method": method},
                    is_invalid_call=True
                ) from e

        if not isinstance(result, dict):
            raise FlickrError(
                f"Unexpected response type from {method}: {type(result).__name__}",
                details={"method": method},
                is_invalid_call=True
            )

        if result.get("stat") == "fail":
            code = result.get("code")
            raise FlickrError(
                f"Flickr API error {code} on {method}: {result.get('message', 'Unknown error')}",
                details={"method": method, "code": code},
                is_invalid_call=True
            )

        return result

    def _paged(self, method: str, container: str, entry: str, **params: Any) -> list[dict[str, Any]]:
        """
        Collect all entries of a paged listing.

        Args:
            method: Flickr method name.
            container: Top-level key of the response ("photos", "photoset", ...).
            entry: Key of the entry list inside the container ("photo", ...).
        """
        entries: list[dict[str, Any]] = []
        page = 1

        while True:
            data = self._call(method, page=page, per_page=PER_PAGE, **params)
            try:
                block = data[container]
                page_entries = block.get(entry, [])
                pages = int(block.get("pages", 1))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise FlickrError(
                    f"Malformed '{container}' listing from {method}",
                    details={"method": method, "page": page},
                    is_invalid_call=True
                ) from e

            if not isinstance(page_entries, list) or not all(
                isinstance(item, dict) for item in page_entries
            ):
                raise FlickrError(
                    f"Malformed '{entry}' entries in '{container}' listing from {method}",
                    details={"method": method, "page": page},
                    is_invalid_call=True
                )
            entries.extend(page_entries)

            if page >= pages:
                break
            page += 1

        return entries

    @staticmethod
    def _is_not_found(error: FlickrError) -> bool:
        return error.details.get("code") in (NOT_FOUND_CODE, str(NOT_FOUND_CODE))

    # =========================================================================
    # Users
    # =========================================================================

    def resolve_user_id(self, username: str) -> str:
        """
        Look up a user's NSID by screen name.

        Raises:
            UserNotFoundError: If no user has this name.
            FlickrError: On any other API failure.
        """
        try:
            data = self._call("flickr.people.findByUsername", username=username)
        except FlickrError as e:
            if self._is_not_found(e):
                raise UserNotFoundError(
                    f"Flickr user not found: {username}",
                    details={"username": username}
                ) from e
            raise

        user_id = (data.get("user") or {}).get("nsid") or (data.get("user") or {}).get("id")
        if not user_id:
            raise FlickrError(
                f"No user id in findByUsername response for {username}",
                details={"username": username},
                is_invalid_call=True
            )
        return user_id

    def get_user(self, user_id: str) -> User:
        """
        Fetch a user's profile.

        Raises:
            UserNotFoundError: If the user does not exist.
            FlickrError: On any other API failure.
        """
        try:
            data = self._call("flickr.people.getInfo", user_id=user_id)
        except FlickrError as e:
            if self._is_not_found(e):
                raise UserNotFoundError(
                    f"Flickr user not found: {user_id}",
                    details={"user_id": user_id}
                ) from e
            raise

        person = data.get("person")
        if not isinstance(person, dict):
            raise FlickrError(
                f"No person in getInfo response for {user_id}",
                details={"user_id": user_id},
                is_invalid_call=True
            )
        return User.from_flickr_api(person)

    # =========================================================================
    # Collections
    # =========================================================================

    def get_collections(self, user_id: str) -> list[Collection]:
        """List a user's photosets. Items are NOT populated."""
        entries = self._paged("flickr.photosets.getList", "photosets", "photoset", user_id=user_id)
        return [Collection.from_flickr_api(entry) for entry in entries]

    def get_collection_items(self, collection: Collection, user_id: str = "") -> list[MediaItem]:
        """
        List the items of one photoset.

        A photoset deleted since it was listed yields an empty list (its
        photos are then picked up by the Unsorted collection).
        """
        params: dict[str, Any] = {"photoset_id": collection.collection_id, "extras": LISTING_EXTRAS}
        if user_id:
            params["user_id"] = user_id

        try:
            entries = self._paged("flickr.photosets.getPhotos", "photoset", "photo", **params)
        except FlickrError as e:
            if self._is_not_found(e):
                logger.warning(f"Photoset {collection.collection_id} ({collection.title}) not found")
                return []
            raise

        return [MediaItem.from_flickr_api(entry, owner=user_id) for entry in entries]

    def get_user_items(self, user_id: str) -> list[MediaItem]:
        """List every item of a user, whether or not it belongs to a photoset."""
        entries = self._paged(
            "flickr.people.getPhotos", "photos", "photo",
            user_id=user_id, extras=LISTING_EXTRAS
        )
        return [MediaItem.from_flickr_api(entry, owner=user_id) for entry in entries]

    # =========================================================================
    # Items
    # =========================================================================

    def get_item(self, item_id: str) -> MediaItem:
        """
        Fetch a single item.

        Raises:
            ItemNotFoundError: If the item does not exist (anymore).
            FlickrError: On any other API failure.
        """
        try:
            data = self._call("flickr.photos.getInfo", photo_id=item_id)
        except FlickrError as e:
            if self._is_not_found(e):
                raise ItemNotFoundError(
                    f"Photo not found: {item_id}",
                    details={"item_id": item_id}
                ) from e
            raise

        photo = data.get("photo")
        if not isinstance(photo, dict):
            raise FlickrError(
                f"No photo in getInfo response for {item_id}",
                details={"item_id": item_id},
                is_invalid_call=True
            )
        return MediaItem.from_flickr_api(photo)

    def get_sizes(self, item_id: str) -> list[dict[str, Any]]:
        """
        List the downloadable sizes of an item.

        Returns:
            Entries with at least 'label' and 'source' (download URL).

        Raises:
            ItemNotFoundError: If the item does not exist (anymore).
            FlickrError: On any other API failure.
        """
        try:
            data = self._call("flickr.photos.getSizes", photo_id=item_id)
        except FlickrError as e:
            if self._is_not_found(e):
                raise ItemNotFoundError(
                    f"Photo not found: {item_id}",
                    details={"item_id": item_id}
                ) from e
            raise

        try:
            return list(data["sizes"]["size"])
        except (KeyError, TypeError) as e:
            raise FlickrError(
                f"Malformed getSizes response for {item_id}",
                details={"item_id": item_id},
                is_invalid_call=True
            ) from e
