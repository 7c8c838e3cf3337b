"""Local store records and the interfaces the sync core consumes.

This module provides:
- Folder, Article: Records held by the local store
- Pending* records: Locally-originated changes awaiting upload
- LocalOnlyArticleState: Download bookkeeping for an article
- FolderStore, FolderChangesStore, ArticleStore, ArticleChangesStore:
  Protocols implemented by the application's storage layer
- Closeable: Resource handed out alongside a sync engine

The sync core only reads and deletes pending-change rows. Creating them is
the job of whoever performs the local mutation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from storysync.core.types import WELL_KNOWN_LOCAL_FOLDER_IDS


@dataclass(frozen=True)
class Folder:
    """A folder as known to the local store.

    ``service_id`` is None only while the folder's creation is still a
    pending change.
    """

    local_id: int
    title: str
    service_id: int | None = None
    position: int = 0
    should_sync: bool = True

    @property
    def is_well_known(self) -> bool:
        return self.local_id in WELL_KNOWN_LOCAL_FOLDER_IDS


@dataclass(frozen=True)
class Article:
    """An article as known to the local store."""

    id: int
    title: str
    url: str
    description: str = ""
    read_progress: float = 0.0
    read_progress_timestamp: datetime | None = None
    hash: str = ""
    liked: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.read_progress <= 1.0:
            raise ValueError(
                f"read_progress must be within [0, 1], got {self.read_progress}"
            )


@dataclass(frozen=True)
class PendingFolderAdd:
    """A folder created locally that the service has not seen yet."""

    folder_local_id: int
    title: str


@dataclass(frozen=True)
class PendingFolderDelete:
    """A folder deleted locally that still exists on the service."""

    service_id: int
    title: str


@dataclass(frozen=True)
class PendingArticleAdd:
    """A URL added locally that has not been uploaded."""

    url: str
    title: str | None = None


@dataclass(frozen=True)
class PendingArticleMove:
    """An article moved locally to another folder."""

    article_id: int
    destination_folder_local_id: int


@dataclass(frozen=True)
class PendingArticleStateChange:
    """A like or unlike performed locally."""

    article_id: int
    liked: bool


@dataclass(frozen=True)
class LocalOnlyArticleState:
    """Download bookkeeping that never leaves the device."""

    article_id: int
    available_locally: bool = False
    article_unavailable: bool = False
    local_path: str | None = None
    has_images: bool = False


def list_user_folders(store: FolderStore) -> list[Folder]:
    """List every folder except the well-known Unread and Archive."""
    return [f for f in store.list_all_folders() if not f.is_well_known]


class Closeable(Protocol):
    """Anything holding a resource that must be released after a sync."""

    def close(self) -> None: ...


class FolderStore(Protocol):
    """Local folder storage."""

    def list_all_folders(self) -> list[Folder]: ...

    def get_folder_by_local_id(self, local_id: int) -> Folder | None: ...

    def get_folder_by_service_id(self, service_id: int) -> Folder | None: ...

    def add_known_folder(
        self, title: str, service_id: int, position: int, should_sync: bool
    ) -> Folder: ...

    def update_folder(
        self,
        local_id: int,
        service_id: int | None,
        title: str,
        position: int,
        should_sync: bool,
    ) -> Folder: ...

    def delete_folder(self, local_id: int) -> None: ...


class FolderChangesStore(Protocol):
    """Pending folder changes."""

    def list_pending_folder_adds(self) -> list[PendingFolderAdd]: ...

    def get_pending_folder_add(self, folder_local_id: int) -> PendingFolderAdd | None: ...

    def delete_pending_folder_add(self, folder_local_id: int) -> None: ...

    def list_pending_folder_deletes(self) -> list[PendingFolderDelete]: ...

    def delete_pending_folder_delete(self, service_id: int) -> None: ...


class ArticleStore(Protocol):
    """Local article storage."""

    def list_articles_for_local_folder(self, local_id: int) -> list[Article]: ...

    def get_article_by_id(self, article_id: int) -> Article | None: ...

    def add_article_to_folder(self, article: Article, local_folder_id: int) -> Article: ...

    def add_article_no_folder(self, article: Article) -> Article: ...

    def move_article_to_folder(self, article_id: int, local_folder_id: int) -> None: ...

    def remove_article_from_any_folder(self, article_id: int) -> None: ...

    def delete_article(self, article_id: int) -> None: ...

    def update_article(self, article: Article) -> Article: ...

    def like_article(self, article_id: int) -> Article: ...

    def unlike_article(self, article_id: int) -> Article: ...

    def list_liked_articles(self) -> list[Article]: ...

    def list_articles_not_in_a_folder(self) -> list[Article]: ...

    def list_articles_without_local_state(self) -> list[Article]: ...

    def add_local_only_state(self, state: LocalOnlyArticleState) -> None: ...


class ArticleChangesStore(Protocol):
    """Pending article changes."""

    def list_pending_article_adds(self) -> list[PendingArticleAdd]: ...

    def delete_pending_article_add(self, url: str) -> None: ...

    def list_pending_article_deletes(self) -> Iterable[int]: ...

    def delete_pending_article_delete(self, article_id: int) -> None: ...

    def list_pending_article_moves(self) -> list[PendingArticleMove]: ...

    def delete_pending_article_move(self, article_id: int) -> None: ...

    def list_pending_article_state_changes(self) -> list[PendingArticleStateChange]: ...

    def delete_pending_article_state_change(self, article_id: int) -> None: ...
