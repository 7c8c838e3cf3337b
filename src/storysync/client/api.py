"""HTTP client for the bookmarking service API.

This module provides:
- ServiceFolder, ServiceBookmark, BookmarkList: Records returned by the service
- FoldersClient, BookmarksClient: Protocols consumed by the sync core
- InstapaperClient: httpx implementation of both protocols

Every remote operation returns a ServiceResult; failures are classified
once here and never raised from the client methods.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

import httpx

from storysync.client.errors import (
    AuthenticationError,
    ContentsUnavailableError,
    DuplicateFolderError,
    NotFoundError,
    ServiceError,
    error_for_code,
)
from storysync.client.haves import HaveStatus
from storysync.client.results import ServiceResult
from storysync.client.store import Article
from storysync.core.config import ServiceConfig
from storysync.core.types import (
    ARCHIVE_SERVICE_FOLDER_ID,
    UNREAD_SERVICE_FOLDER_ID,
    ServiceFolderToken,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "AddBookmarkOptions",
    "AuthenticationError",
    "BookmarkList",
    "BookmarksClient",
    "ContentsUnavailableError",
    "DuplicateFolderError",
    "FolderSelector",
    "FoldersClient",
    "InstapaperClient",
    "NotFoundError",
    "ServiceBookmark",
    "ServiceError",
    "ServiceFolder",
    "folder_selector_for",
]

FolderSelector = ServiceFolderToken | int


@dataclass
class ServiceFolder:
    """Folder metadata from the service."""

    id: int
    title: str
    position: int
    sync_to_mobile: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServiceFolder:
        """Create from API response dictionary."""
        return cls(
            id=int(data["folder_id"]),
            title=data["title"],
            # The service reports positions as floats
            position=int(float(data.get("position") or 0)),
            sync_to_mobile=bool(int(data.get("sync_to_mobile", 1))),
        )


@dataclass
class ServiceBookmark:
    """Bookmark metadata from the service."""

    id: int
    url: str
    title: str
    description: str = ""
    progress: float = 0.0
    progress_timestamp: datetime | None = None
    hash: str = ""
    liked: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServiceBookmark:
        """Create from API response dictionary."""
        timestamp = int(data.get("progress_timestamp") or 0)
        return cls(
            id=int(data["bookmark_id"]),
            url=data.get("url", ""),
            title=data.get("title", ""),
            description=data.get("description") or "",
            progress=float(data.get("progress") or 0.0),
            progress_timestamp=(
                datetime.fromtimestamp(timestamp, tz=timezone.utc) if timestamp else None
            ),
            hash=data.get("hash") or "",
            liked=str(data.get("starred", "0")) == "1",
        )

    def to_article(self) -> Article:
        """Convert into the record the local store holds."""
        return Article(
            id=self.id,
            title=self.title,
            url=self.url,
            description=self.description,
            read_progress=min(max(self.progress, 0.0), 1.0),
            read_progress_timestamp=self.progress_timestamp,
            hash=self.hash,
            liked=self.liked,
        )


@dataclass
class BookmarkList:
    """Result of a diff listing: changed bookmarks plus vanished ids."""

    bookmarks: list[ServiceBookmark]
    deleted_ids: list[int]


@dataclass
class AddBookmarkOptions:
    """Optional metadata sent with a new bookmark."""

    title: str | None = None
    description: str | None = None
    folder_id: int | None = None


def folder_selector_for(service_id: int) -> FolderSelector:
    """Map a folder's service id to the selector the list call expects."""
    if service_id == UNREAD_SERVICE_FOLDER_ID:
        return ServiceFolderToken.UNREAD
    if service_id == ARCHIVE_SERVICE_FOLDER_ID:
        return ServiceFolderToken.ARCHIVE
    return service_id


class FoldersClient(Protocol):
    """Remote folder operations."""

    def list_folders(self) -> ServiceResult[list[ServiceFolder]]: ...

    def add_folder(self, title: str) -> ServiceResult[ServiceFolder]: ...

    def delete_folder(self, folder_id: int) -> ServiceResult[None]: ...


class BookmarksClient(Protocol):
    """Remote bookmark operations."""

    def add(
        self, url: str, options: AddBookmarkOptions | None = None
    ) -> ServiceResult[ServiceBookmark]: ...

    def delete(self, bookmark_id: int) -> ServiceResult[None]: ...

    def archive(self, bookmark_id: int) -> ServiceResult[ServiceBookmark]: ...

    def move(self, bookmark_id: int, folder_id: int) -> ServiceResult[ServiceBookmark]: ...

    def like(self, bookmark_id: int) -> ServiceResult[ServiceBookmark]: ...

    def unlike(self, bookmark_id: int) -> ServiceResult[ServiceBookmark]: ...

    def list(
        self,
        folder: FolderSelector,
        haves: Iterable[HaveStatus] | None = None,
        limit: int | None = None,
    ) -> ServiceResult[BookmarkList]: ...

    def get_text(self, bookmark_id: int) -> ServiceResult[str]: ...


def _items_of_type(payload: Any, item_type: str) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = [payload]
    return [
        item
        for item in payload
        if isinstance(item, dict) and item.get("type") == item_type
    ]


def _parse_delete_ids(raw: Any) -> list[int]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [int(part) for part in raw.split(",") if part.strip()]
    return [int(value) for value in raw]


def _first_bookmark(response: httpx.Response) -> ServiceBookmark:
    items = _items_of_type(response.json(), "bookmark")
    if not items:
        raise ServiceError("Response did not contain a bookmark", response.status_code)
    return ServiceBookmark.from_dict(items[0])


def _first_folder(response: httpx.Response) -> ServiceFolder:
    items = _items_of_type(response.json(), "folder")
    if not items:
        raise ServiceError("Response did not contain a folder", response.status_code)
    return ServiceFolder.from_dict(items[0])


def _bookmark_list(response: httpx.Response) -> BookmarkList:
    payload = response.json()
    if isinstance(payload, dict) and "bookmarks" in payload:
        return BookmarkList(
            bookmarks=[ServiceBookmark.from_dict(b) for b in payload["bookmarks"]],
            deleted_ids=_parse_delete_ids(payload.get("delete_ids")),
        )
    deleted: list[int] = []
    for meta in _items_of_type(payload, "meta"):
        deleted.extend(_parse_delete_ids(meta.get("delete_ids")))
    return BookmarkList(
        bookmarks=[
            ServiceBookmark.from_dict(b) for b in _items_of_type(payload, "bookmark")
        ],
        deleted_ids=deleted,
    )


def _nothing(response: httpx.Response) -> None:
    return None


class InstapaperClient:
    """HTTP client for the bookmarking service.

    Implements both FoldersClient and BookmarksClient. Authentication is
    supplied as an ``httpx.Auth`` so that credential storage stays with the
    application.
    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        auth: httpx.Auth | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Service configuration (URL, timeout, SSL settings).
            auth: Request signer for the user's account.
            transport: Optional transport, used to inject test doubles.
        """
        self._config = config or ServiceConfig()
        self._client = httpx.Client(
            base_url=self._config.base_url + "/",
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            auth=auth,
            transport=transport,
        )

    @property
    def config(self) -> ServiceConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> InstapaperClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _error_from_response(self, response: httpx.Response) -> ServiceError | None:
        """Translate an error response into an exception, or None on success."""
        if response.status_code in (401, 403):
            return AuthenticationError("Invalid credentials", response.status_code)
        error_item = None
        if "json" in response.headers.get("content-type", ""):
            try:
                errors = _items_of_type(response.json(), "error")
            except ValueError:
                errors = []
            error_item = errors[0] if errors else None
        if error_item is not None:
            return error_for_code(
                int(error_item.get("error_code", 0)),
                error_item.get("message", "Unknown error"),
                response.status_code,
            )
        if response.status_code >= 400:
            return ServiceError(
                f"Unexpected response: HTTP {response.status_code}",
                response.status_code,
            )
        return None

    def _call(
        self,
        endpoint: str,
        data: dict[str, Any],
        parse: Callable[[httpx.Response], T],
    ) -> ServiceResult[T]:
        try:
            response = self._client.post(endpoint, data=data)
        except httpx.RequestError as e:
            logger.warning("Request to %s failed: %s", endpoint, e)
            return ServiceResult.failed(ServiceError(f"Request failed: {e}"))

        error = self._error_from_response(response)
        if error is not None:
            logger.debug("%s returned error %s: %s", endpoint, error.error_code, error)
            return ServiceResult.from_error(error)

        try:
            return ServiceResult.ok(parse(response))
        except (ValueError, KeyError) as e:
            return ServiceResult.failed(
                ServiceError(f"Malformed response from {endpoint}: {e}")
            )
        except ServiceError as e:
            return ServiceResult.failed(e)

    # === Folder operations ===

    def list_folders(self) -> ServiceResult[list[ServiceFolder]]:
        """List the user's folders.

        Returns:
            Result carrying every user folder (the built-in collections are
            not included).
        """
        return self._call(
            "folders/list",
            {},
            lambda r: [ServiceFolder.from_dict(f) for f in _items_of_type(r.json(), "folder")],
        )

    def add_folder(self, title: str) -> ServiceResult[ServiceFolder]:
        """Create a folder.

        Args:
            title: Folder title. The service rejects duplicates.

        Returns:
            Result carrying the created folder, or DUPLICATE.
        """
        return self._call("folders/add", {"title": title}, _first_folder)

    def delete_folder(self, folder_id: int) -> ServiceResult[None]:
        return self._call("folders/delete", {"folder_id": folder_id}, _nothing)

    # === Bookmark operations ===

    def add(
        self, url: str, options: AddBookmarkOptions | None = None
    ) -> ServiceResult[ServiceBookmark]:
        """Add a URL to the unread folder, or to ``options.folder_id``.

        Adding a URL the service already holds returns the existing bookmark.
        """
        data: dict[str, Any] = {"url": url}
        if options is not None:
            if options.title:
                data["title"] = options.title
            if options.description:
                data["description"] = options.description
            if options.folder_id is not None:
                data["folder_id"] = options.folder_id
        return self._call("bookmarks/add", data, _first_bookmark)

    def delete(self, bookmark_id: int) -> ServiceResult[None]:
        return self._call("bookmarks/delete", {"bookmark_id": bookmark_id}, _nothing)

    def archive(self, bookmark_id: int) -> ServiceResult[ServiceBookmark]:
        return self._call("bookmarks/archive", {"bookmark_id": bookmark_id}, _first_bookmark)

    def move(self, bookmark_id: int, folder_id: int) -> ServiceResult[ServiceBookmark]:
        return self._call(
            "bookmarks/move",
            {"bookmark_id": bookmark_id, "folder_id": folder_id},
            _first_bookmark,
        )

    def like(self, bookmark_id: int) -> ServiceResult[ServiceBookmark]:
        return self._call("bookmarks/star", {"bookmark_id": bookmark_id}, _first_bookmark)

    def unlike(self, bookmark_id: int) -> ServiceResult[ServiceBookmark]:
        return self._call("bookmarks/unstar", {"bookmark_id": bookmark_id}, _first_bookmark)

    def list(
        self,
        folder: FolderSelector,
        haves: Iterable[HaveStatus] | None = None,
        limit: int | None = None,
    ) -> ServiceResult[BookmarkList]:
        """List bookmarks in a folder, diffed against what the client holds.

        Args:
            folder: Built-in collection token or numeric folder id.
            haves: Fingerprints of the articles held locally.
            limit: Maximum number of bookmarks to return.

        Returns:
            Result carrying changed bookmarks and the ids that vanished.
        """
        selector = folder.value if isinstance(folder, ServiceFolderToken) else str(folder)
        data: dict[str, Any] = {"folder_id": selector}
        if limit is not None:
            data["limit"] = limit
        if haves:
            data["have"] = ",".join(str(h) for h in haves)
        return self._call("bookmarks/list", data, _bookmark_list)

    def get_text(self, bookmark_id: int) -> ServiceResult[str]:
        """Fetch the processed HTML body of a bookmark."""
        return self._call("bookmarks/get_text", {"bookmark_id": bookmark_id}, lambda r: r.text)
