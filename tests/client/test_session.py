"""Tests for SyncSession."""

from __future__ import annotations

import threading

import pytest

from storysync.client.errors import ServiceError
from storysync.client.events import SessionEventType
from storysync.client.sync import CancellationToken, SyncCancelledError, SyncEngine, SyncSession
from storysync.core.types import SyncState
from tests.client.fakes import FakeBookmarksService, FakeFoldersService, InMemoryLibrary

WAIT = 5.0


class GatedEngine:
    """Engine stand-in that blocks until released."""

    def __init__(self, error: Exception | None = None) -> None:
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.error = error
        self.tokens: list[CancellationToken | None] = []

    def sync_everything(self, cancel: CancellationToken | None = None) -> None:
        self.tokens.append(cancel)
        self.entered.set()
        self.gate.wait(WAIT)
        if cancel is not None:
            cancel.raise_if_cancelled()
        if self.error is not None:
            raise self.error


class Connection:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class RecordingDownloader:
    def __init__(self) -> None:
        self.calls: list[CancellationToken | None] = []

    def download_all_articles_without_local_state(
        self, cancel: CancellationToken | None = None
    ) -> list:
        self.calls.append(cancel)
        return []


class Harness:
    """Session wired to a gated engine."""

    def __init__(self, error: Exception | None = None) -> None:
        self.engine = GatedEngine(error)
        self.connections: list[Connection] = []
        self.downloader = RecordingDownloader()
        self.session = SyncSession(self._factory, self.downloader)
        self.changes: list[bool] = []
        self.session.events.subscribe(
            SessionEventType.IS_SYNCING_CHANGED, self.changes.append
        )

    def _factory(self):
        connection = Connection()
        self.connections.append(connection)
        return self.engine, connection


@pytest.fixture
def harness() -> Harness:
    return Harness()


class TestSyncSessionState:
    """Tests for is_syncing and its notifications."""

    def test_idle_initially(self, harness: Harness) -> None:
        assert not harness.session.is_syncing
        assert harness.session.state is SyncState.IDLE

    def test_is_syncing_set_synchronously(self, harness: Harness) -> None:
        future = harness.session.start()

        assert harness.session.is_syncing
        assert harness.session.state is SyncState.SYNCING
        assert harness.changes == [True]

        harness.engine.gate.set()
        future.result(WAIT)

        assert not harness.session.is_syncing
        assert harness.changes == [True, False]

    def test_is_syncing_cleared_before_notification(self, harness: Harness) -> None:
        """Should report idle to handlers of the False notification."""
        observed: list[bool] = []
        harness.session.events.subscribe(
            SessionEventType.IS_SYNCING_CHANGED,
            lambda value: observed.append(harness.session.is_syncing),
        )
        harness.engine.gate.set()

        harness.session.sync_database_and_articles(WAIT)

        assert observed == [True, False]


class TestSyncSessionSingleFlight:
    """Tests for re-entrant sync requests."""

    def test_start_while_syncing_returns_same_future(self, harness: Harness) -> None:
        first = harness.session.start()
        second = harness.session.start()

        assert first is second
        harness.engine.gate.set()
        first.result(WAIT)
        assert len(harness.connections) == 1
        assert harness.changes == [True, False]

    def test_blocking_sync_returns_immediately_while_syncing(
        self, harness: Harness
    ) -> None:
        future = harness.session.start()
        assert harness.engine.entered.wait(WAIT)

        harness.session.sync_database_and_articles(WAIT)

        assert not future.done()
        harness.engine.gate.set()
        future.result(WAIT)
        assert len(harness.engine.tokens) == 1

    def test_new_sync_after_completion(self, harness: Harness) -> None:
        harness.engine.gate.set()
        harness.session.sync_database_and_articles(WAIT)
        harness.session.sync_database_and_articles(WAIT)

        assert len(harness.connections) == 2
        assert harness.changes == [True, False, True, False]


class TestSyncSessionRun:
    """Tests for the background work."""

    def test_runs_download_after_sync(self, harness: Harness) -> None:
        harness.engine.gate.set()

        harness.session.sync_database_and_articles(WAIT)

        assert harness.downloader.calls == harness.engine.tokens
        assert harness.connections[0].closed

    def test_failure_propagates_and_closes_connection(self) -> None:
        harness = Harness(error=ServiceError("boom", 500))
        harness.engine.gate.set()

        with pytest.raises(ServiceError):
            harness.session.sync_database_and_articles(WAIT)

        assert harness.connections[0].closed
        assert harness.downloader.calls == []
        assert not harness.session.is_syncing
        assert harness.changes == [True, False]

    def test_cancel_stops_sync(self, harness: Harness) -> None:
        future = harness.session.start()
        assert harness.engine.entered.wait(WAIT)

        harness.session.cancel()
        harness.engine.gate.set()

        with pytest.raises(SyncCancelledError):
            future.result(WAIT)
        assert harness.downloader.calls == []
        assert harness.connections[0].closed
        assert not harness.session.is_syncing

    def test_cancel_when_idle_is_noop(self, harness: Harness) -> None:
        harness.session.cancel()

        assert not harness.session.is_syncing
        assert harness.changes == []


def test_session_with_real_engine() -> None:
    """Should sync the library and close it afterwards."""
    library = InMemoryLibrary()
    folders_service = FakeFoldersService()
    bookmarks_service = FakeBookmarksService(folders_service)
    bookmark = bookmarks_service.create_remote_bookmark("https://example.com/a")

    def factory():
        engine = SyncEngine(
            library, library, folders_service, library, library, bookmarks_service
        )
        return engine, library

    session = SyncSession(factory)
    session.sync_database_and_articles(WAIT)

    assert library.get_article_by_id(bookmark.id) is not None
    assert library.closed


class TestCancellationToken:
    """Tests for the cooperative cancellation flag."""

    def test_reports_and_raises_after_request(self) -> None:
        token = CancellationToken()
        assert not token.cancel_requested
        token.raise_if_cancelled()

        token.request_cancel()

        assert token.cancel_requested
        with pytest.raises(SyncCancelledError):
            token.raise_if_cancelled()
