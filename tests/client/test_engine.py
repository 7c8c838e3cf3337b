"""Tests for SyncEngine."""

import pytest

from storysync.client.errors import ServiceError
from storysync.client.events import SyncEventType
from storysync.client.sync import CancellationToken, SyncCancelledError, SyncEngine
from storysync.core.types import UNREAD_LOCAL_FOLDER_ID
from tests.client.conftest import seed_synced_article
from tests.client.fakes import FakeBookmarksService, FakeFoldersService, InMemoryLibrary


def record_events(engine: SyncEngine) -> list[SyncEventType]:
    events: list[SyncEventType] = []
    for event_type in SyncEventType:
        engine.events.subscribe(
            event_type, lambda *args, event_type=event_type: events.append(event_type)
        )
    return events


class TestSyncEverything:
    """Tests for the full sync sequence."""

    def test_successful_sync_raises_phase_events_in_order(
        self, engine: SyncEngine
    ) -> None:
        events = record_events(engine)

        engine.sync_everything()

        assert events == [
            SyncEventType.SYNC_STARTED,
            SyncEventType.FOLDERS_STARTED,
            SyncEventType.FOLDERS_ENDED,
            SyncEventType.ARTICLES_STARTED,
            SyncEventType.ARTICLES_ENDED,
            SyncEventType.SYNC_ENDED,
        ]

    def test_folder_created_locally_with_article_moved_into_it(
        self,
        library: InMemoryLibrary,
        folders_service: FakeFoldersService,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        """Should end with the folder and article in place on both sides."""
        recipes = library.create_folder("Recipes")
        article = seed_synced_article(library, bookmarks_service, "https://example.com/a")
        library.move_article_locally(article.id, recipes.local_id)

        engine.sync_everything()

        folder = library.get_folder_by_local_id(recipes.local_id)
        assert folder.service_id in folders_service.folders
        assert bookmarks_service.location[article.id] == folder.service_id
        assert library.folder_of(article.id) == recipes.local_id
        assert library.pending_folder_adds == {}
        assert library.pending_article_moves == {}

    def test_remotely_deleted_article_is_cleaned_up(
        self,
        library: InMemoryLibrary,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        article = seed_synced_article(library, bookmarks_service, "https://example.com/a")
        bookmarks_service.delete(article.id)

        engine.sync_everything()

        assert library.get_article_by_id(article.id) is None

    def test_remote_content_arrives_in_fresh_library(
        self,
        library: InMemoryLibrary,
        folders_service: FakeFoldersService,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        folder = folders_service.create_remote_folder("Later")
        in_folder = bookmarks_service.create_remote_bookmark("https://example.com/f", folder.id)
        unread = bookmarks_service.create_remote_bookmark("https://example.com/u")

        engine.sync_everything()

        local_folder = library.get_folder_by_service_id(folder.id)
        assert library.folder_of(in_folder.id) == local_folder.local_id
        assert library.folder_of(unread.id) == UNREAD_LOCAL_FOLDER_ID

    def test_second_sync_makes_no_local_changes(
        self,
        library: InMemoryLibrary,
        folders_service: FakeFoldersService,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        folders_service.create_remote_folder("Later")
        bookmarks_service.create_remote_bookmark("https://example.com/u")
        engine.sync_everything()
        folders = dict(library.folders)
        articles = dict(library.articles)

        engine.sync_everything()

        assert library.folders == folders
        assert library.articles == articles


class TestSyncEverythingFailures:
    """Tests for errors and cancellation."""

    def test_folder_failure_skips_articles(
        self,
        folders_service: FakeFoldersService,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        folders_service.failures["list_folders"] = ServiceError("boom", 500)
        events = record_events(engine)

        with pytest.raises(ServiceError):
            engine.sync_everything()

        assert bookmarks_service.calls == []
        assert events == [
            SyncEventType.SYNC_STARTED,
            SyncEventType.FOLDERS_STARTED,
            SyncEventType.FOLDERS_ERROR,
            SyncEventType.SYNC_ERROR,
            SyncEventType.SYNC_ENDED,
        ]

    def test_article_failure_raises_article_error(
        self,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        bookmarks_service.failures["list"] = ServiceError("boom", 500)
        events = record_events(engine)

        with pytest.raises(ServiceError):
            engine.sync_everything()

        assert SyncEventType.ARTICLES_ERROR in events
        assert SyncEventType.ARTICLES_ENDED not in events
        assert events[-1] is SyncEventType.SYNC_ENDED

    def test_article_failure_skips_orphan_cleanup(
        self,
        library: InMemoryLibrary,
        bookmarks_service: FakeBookmarksService,
        engine: SyncEngine,
    ) -> None:
        article = seed_synced_article(library, bookmarks_service, "https://example.com/a")
        library.remove_article_from_any_folder(article.id)
        bookmarks_service.failures["list"] = ServiceError("boom", 500)

        with pytest.raises(ServiceError):
            engine.sync_everything()

        assert library.get_article_by_id(article.id) is not None

    def test_cancelled_sync_reports_error_and_end(
        self,
        folders_service: FakeFoldersService,
        engine: SyncEngine,
    ) -> None:
        token = CancellationToken()
        token.request_cancel()
        errors: list[Exception] = []
        engine.events.subscribe(SyncEventType.SYNC_ERROR, errors.append)

        with pytest.raises(SyncCancelledError):
            engine.sync_everything(token)

        assert folders_service.calls == []
        assert len(errors) == 1
        assert isinstance(errors[0], SyncCancelledError)
