"""Single-flight, cancellable sync sessions.

SyncSession is the entry point the application calls. It runs at most one
sync at a time on a background thread: a database sync through a freshly
created SyncEngine, followed by the content download pass.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Protocol

from storysync.client.events import EventHub, SessionEventType
from storysync.client.store import Closeable
from storysync.client.sync.engine import SyncEngine
from storysync.client.sync.types import CancellationToken, SyncCancelledError
from storysync.core.types import SyncState

logger = logging.getLogger(__name__)


class DownloaderProtocol(Protocol):
    """Downloads content for articles synced without it."""

    def download_all_articles_without_local_state(
        self, cancel: CancellationToken | None = None
    ) -> object: ...


# Opens a connection exclusive to one sync and builds an engine over it
SyncFactory = Callable[[], tuple[SyncEngine, Closeable]]


class SyncSession:
    """Runs database sync plus content download, one at a time.

    ``is_syncing`` is True from the moment a sync is requested until its
    background work has finished, and every change is announced through
    ``SessionEventType.IS_SYNCING_CHANGED``.

    Example:
        session = SyncSession(open_engine, downloader)
        future = session.start()
        session.cancel()
        future.result()  # raises SyncCancelledError
    """

    def __init__(
        self,
        sync_factory: SyncFactory,
        downloader: DownloaderProtocol | None = None,
        events: EventHub[SessionEventType] | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            sync_factory: Called on the background thread for every sync.
                Returns the engine and the connection to close afterwards.
            downloader: Content downloader run after a successful sync.
            events: Hub receiving state changes.
        """
        self._sync_factory = sync_factory
        self._downloader = downloader
        self.events: EventHub[SessionEventType] = events or EventHub("session")
        self._lock = threading.Lock()
        self._token: CancellationToken | None = None
        self._future: Future[None] | None = None

    @property
    def is_syncing(self) -> bool:
        with self._lock:
            return self._token is not None

    @property
    def state(self) -> SyncState:
        return SyncState.SYNCING if self.is_syncing else SyncState.IDLE

    def start(self) -> Future[None]:
        """Start a sync, or join the one already running.

        Returns:
            Future resolved when the sync and download have finished. It
            carries the sync's exception on failure.
        """
        future, _ = self._begin()
        return future

    def sync_database_and_articles(self, timeout: float | None = None) -> None:
        """Run a sync and wait for it.

        Returns immediately, without waiting, if a sync is already running.

        Args:
            timeout: Seconds to wait for completion, None to wait forever.

        Raises:
            SyncCancelledError: If the sync was cancelled.
            ServiceError: If the service failed in an unrecoverable way.
        """
        future, started = self._begin()
        if not started:
            logger.debug("Sync already in progress")
            return
        future.result(timeout)

    def cancel(self) -> None:
        """Request cancellation of the running sync. No-op when idle."""
        with self._lock:
            token = self._token
        if token is not None:
            logger.info("Cancelling sync")
            token.request_cancel()

    def _begin(self) -> tuple[Future[None], bool]:
        with self._lock:
            if self._future is not None:
                return self._future, False
            token = CancellationToken()
            future: Future[None] = Future()
            future.set_running_or_notify_cancel()
            self._token = token
            self._future = future

        self.events.publish(SessionEventType.IS_SYNCING_CHANGED, True)
        thread = threading.Thread(
            target=self._run,
            args=(token, future),
            name="storysync-session",
            daemon=True,
        )
        thread.start()
        return future, True

    def _run(self, token: CancellationToken, future: Future[None]) -> None:
        error: Exception | None = None
        try:
            self._sync_and_download(token)
        except SyncCancelledError as e:
            logger.info("Sync cancelled")
            error = e
        except Exception as e:
            logger.exception("Sync failed")
            error = e
        finally:
            with self._lock:
                self._token = None
                self._future = None
            self.events.publish(SessionEventType.IS_SYNCING_CHANGED, False)

        if error is None:
            future.set_result(None)
        else:
            future.set_exception(error)

    def _sync_and_download(self, token: CancellationToken) -> None:
        token.raise_if_cancelled()
        engine, connection = self._sync_factory()
        try:
            engine.sync_everything(token)
        finally:
            connection.close()

        if self._downloader is None:
            return
        token.raise_if_cancelled()
        self._downloader.download_all_articles_without_local_state(token)
