"""Sync orchestration.

SyncEngine sequences the folder pass, the article pass and orphan cleanup
over a single set of stores, and reports progress through an EventHub.
"""

from __future__ import annotations

import logging

from storysync.client.api import BookmarksClient, FoldersClient
from storysync.client.events import EventHub, SyncEventType
from storysync.client.store import (
    ArticleChangesStore,
    ArticleStore,
    FolderChangesStore,
    FolderStore,
)
from storysync.client.sync.bookmarks import BookmarkSync
from storysync.client.sync.folders import FolderSync
from storysync.client.sync.orphans import OrphanCollector
from storysync.client.sync.types import CancellationToken, check_cancelled
from storysync.core.config import SyncConfig

logger = logging.getLogger(__name__)


class SyncEngine:
    """Runs a full database sync against the service.

    Phases run strictly in order: folders, articles, orphan cleanup. A
    failure in one phase aborts the rest.
    """

    def __init__(
        self,
        folder_store: FolderStore,
        folder_changes: FolderChangesStore,
        folders_client: FoldersClient,
        article_store: ArticleStore,
        article_changes: ArticleChangesStore,
        bookmarks_client: BookmarksClient,
        config: SyncConfig | None = None,
        events: EventHub[SyncEventType] | None = None,
    ) -> None:
        """Initialize the engine and its coordinators.

        Args:
            folder_store: Local folders.
            folder_changes: Pending folder changes.
            folders_client: Remote folder operations.
            article_store: Local articles.
            article_changes: Pending article changes.
            bookmarks_client: Remote bookmark operations.
            config: Sync limits shared by all coordinators.
            events: Hub receiving progress events. A private hub is
                created when omitted.
        """
        self.config = config or SyncConfig()
        self.events: EventHub[SyncEventType] = events or EventHub("sync")
        self.folders = FolderSync(folder_store, folder_changes, folders_client)
        self.bookmarks = BookmarkSync(
            folder_store,
            folder_changes,
            article_store,
            article_changes,
            bookmarks_client,
            self.folders,
            self.config,
        )
        self.orphans = OrphanCollector(article_store, self.config)

    def sync_everything(self, cancel: CancellationToken | None = None) -> None:
        """Sync folders, then articles, then clean up orphans.

        Args:
            cancel: Checked at the start and between items of every phase.

        Raises:
            SyncCancelledError: If cancellation was requested.
            ServiceError: If the service failed in an unrecoverable way.
        """
        self.events.publish(SyncEventType.SYNC_STARTED)
        try:
            check_cancelled(cancel)
            self._run_folders(cancel)
            self._run_articles(cancel)
            self.orphans.cleanup_orphaned_articles()
        except Exception as e:
            self.events.publish(SyncEventType.SYNC_ERROR, e)
            raise
        finally:
            self.events.publish(SyncEventType.SYNC_ENDED)

    def _run_folders(self, cancel: CancellationToken | None) -> None:
        self.events.publish(SyncEventType.FOLDERS_STARTED)
        try:
            self.folders.sync_folders(cancel)
        except Exception as e:
            logger.warning("Folder sync failed: %s", e)
            self.events.publish(SyncEventType.FOLDERS_ERROR, e)
            raise
        self.events.publish(SyncEventType.FOLDERS_ENDED)

    def _run_articles(self, cancel: CancellationToken | None) -> None:
        self.events.publish(SyncEventType.ARTICLES_STARTED)
        try:
            self.bookmarks.sync_bookmarks(cancel)
        except Exception as e:
            logger.warning("Article sync failed: %s", e)
            self.events.publish(SyncEventType.ARTICLES_ERROR, e)
            raise
        self.events.publish(SyncEventType.ARTICLES_ENDED)
