"""Pytest fixtures for sync tests."""

from __future__ import annotations

import pytest

from storysync.client.store import Article
from storysync.client.sync import BookmarkSync, FolderSync, OrphanCollector, SyncEngine
from storysync.core.config import SyncConfig
from storysync.core.types import ARCHIVE_LOCAL_FOLDER_ID, UNREAD_LOCAL_FOLDER_ID
from tests.client.fakes import FakeBookmarksService, FakeFoldersService, InMemoryLibrary


@pytest.fixture
def library() -> InMemoryLibrary:
    """Create an empty local library with Unread and Archive."""
    return InMemoryLibrary()


@pytest.fixture
def folders_service() -> FakeFoldersService:
    return FakeFoldersService()


@pytest.fixture
def bookmarks_service(folders_service: FakeFoldersService) -> FakeBookmarksService:
    return FakeBookmarksService(folders_service)


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig()


@pytest.fixture
def folder_sync(
    library: InMemoryLibrary, folders_service: FakeFoldersService
) -> FolderSync:
    return FolderSync(library, library, folders_service)


@pytest.fixture
def bookmark_sync(
    library: InMemoryLibrary,
    bookmarks_service: FakeBookmarksService,
    folder_sync: FolderSync,
    sync_config: SyncConfig,
) -> BookmarkSync:
    return BookmarkSync(
        library, library, library, library, bookmarks_service, folder_sync, sync_config
    )


@pytest.fixture
def orphans(library: InMemoryLibrary, sync_config: SyncConfig) -> OrphanCollector:
    return OrphanCollector(library, sync_config)


@pytest.fixture
def engine(
    library: InMemoryLibrary,
    folders_service: FakeFoldersService,
    bookmarks_service: FakeBookmarksService,
    sync_config: SyncConfig,
) -> SyncEngine:
    return SyncEngine(
        library,
        library,
        folders_service,
        library,
        library,
        bookmarks_service,
        sync_config,
    )


def seed_synced_article(
    library: InMemoryLibrary,
    bookmarks_service: FakeBookmarksService,
    url: str,
    local_folder_id: int = UNREAD_LOCAL_FOLDER_ID,
    remote_location: str | int = "unread",
    liked: bool = False,
) -> Article:
    """Create an article that exists identically on both sides."""
    bookmark = bookmarks_service.create_remote_bookmark(url, remote_location, liked=liked)
    return library.add_article_to_folder(bookmark.to_article(), local_folder_id)


def seed_archived_article(
    library: InMemoryLibrary, bookmarks_service: FakeBookmarksService, url: str
) -> Article:
    return seed_synced_article(
        library, bookmarks_service, url, ARCHIVE_LOCAL_FOLDER_ID, "archive"
    )
