"""Article reconciliation between the local store and the service.

A pass runs these sub-phases in order:
1. Upload pending adds
2. Upload pending deletes
3. Upload pending moves
4. Diff every synced folder against the service
5. Upload pending like/unlike changes
6. Reconcile the liked collection

Not-found answers are always recovered from. Any other service failure
propagates and leaves the remaining pending rows in place.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from storysync.client.api import (
    BookmarksClient,
    ServiceBookmark,
    folder_selector_for,
)
from storysync.client.haves import haves_for_articles
from storysync.client.results import ServiceResult
from storysync.client.store import (
    ArticleChangesStore,
    ArticleStore,
    Folder,
    FolderChangesStore,
    FolderStore,
    PendingArticleMove,
)
from storysync.client.sync.folders import FolderSync
from storysync.client.sync.types import CancellationToken, check_cancelled
from storysync.core.config import SyncConfig
from storysync.core.types import (
    ARCHIVE_SERVICE_FOLDER_ID,
    UNREAD_SERVICE_FOLDER_ID,
    ServiceFolderToken,
)

logger = logging.getLogger(__name__)


class BookmarkSync:
    """Synchronizes articles and drains pending article changes."""

    def __init__(
        self,
        folder_store: FolderStore,
        folder_changes: FolderChangesStore,
        article_store: ArticleStore,
        article_changes: ArticleChangesStore,
        bookmarks_client: BookmarksClient,
        folder_sync: FolderSync,
        config: SyncConfig | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            folder_store: Local folders.
            folder_changes: Pending folder changes, consulted when a move
                targets a folder that has not been uploaded yet.
            article_store: Local articles.
            article_changes: Pending article changes.
            bookmarks_client: Remote bookmark operations.
            folder_sync: Peer coordinator used to force-upload a folder.
            config: Sync limits.
        """
        self._folders = folder_store
        self._folder_changes = folder_changes
        self._articles = article_store
        self._changes = article_changes
        self._client = bookmarks_client
        self._folder_sync = folder_sync
        self._config = config or SyncConfig()

    @property
    def articles_per_folder_to_sync(self) -> int:
        return self._config.articles_per_folder_to_sync

    def sync_bookmarks(self, cancel: CancellationToken | None = None) -> None:
        """Run every article sub-phase in order.

        Raises:
            SyncCancelledError: If cancellation was requested.
            ServiceError: If the service fails in an unrecoverable way.
        """
        self.sync_pending_adds(cancel)
        self.sync_pending_deletes(cancel)
        self.sync_pending_moves(cancel)
        self.sync_folders_state(cancel)
        self.sync_pending_like_changes(cancel)
        self.sync_liked_articles(cancel)

    # === Pending changes ===

    def sync_pending_adds(self, cancel: CancellationToken | None = None) -> None:
        for pending in self._changes.list_pending_article_adds():
            check_cancelled(cancel)
            self._client.add(pending.url).unwrap()
            self._changes.delete_pending_article_add(pending.url)
            logger.info("Uploaded new article %s", pending.url)

    def sync_pending_deletes(self, cancel: CancellationToken | None = None) -> None:
        for article_id in list(self._changes.list_pending_article_deletes()):
            check_cancelled(cancel)
            result = self._client.delete(article_id)
            if not result.is_not_found:
                result.unwrap()
            self._changes.delete_pending_article_delete(article_id)
            logger.info("Deleted article %d remotely", article_id)

    def sync_pending_moves(self, cancel: CancellationToken | None = None) -> None:
        for pending in self._changes.list_pending_article_moves():
            check_cancelled(cancel)
            self._sync_pending_move(pending)

    def _sync_pending_move(self, pending: PendingArticleMove) -> None:
        destination = self._folders.get_folder_by_local_id(
            pending.destination_folder_local_id
        )
        if destination is None:
            logger.debug(
                "Dropping move of %d: folder %d no longer exists",
                pending.article_id,
                pending.destination_folder_local_id,
            )
            self._changes.delete_pending_article_move(pending.article_id)
            return

        if destination.service_id is None:
            destination = self._upload_destination_folder(destination)
            if destination is None:
                return

        result = self._dispatch_move(pending, destination)
        if result is None:
            self._changes.delete_pending_article_move(pending.article_id)
            return

        if result.is_not_found:
            logger.debug("Article %d gone remotely; orphaning it", pending.article_id)
            self._articles.remove_article_from_any_folder(pending.article_id)
            self._changes.delete_pending_article_move(pending.article_id)
            return

        bookmark = result.unwrap()
        self._changes.delete_pending_article_move(pending.article_id)
        self._apply_moved_bookmark(pending.article_id, bookmark, destination)

    def _upload_destination_folder(self, destination: Folder) -> Folder | None:
        pending_add = self._folder_changes.get_pending_folder_add(destination.local_id)
        if pending_add is None:
            logger.warning(
                "Folder '%s' has no service id and no pending add; skipping move",
                destination.title,
            )
            return None
        uploaded = self._folder_sync.sync_pending_folder_add(pending_add)
        if uploaded is None or uploaded.service_id is None:
            logger.warning(
                "Could not upload folder '%s'; retrying move next sync",
                destination.title,
            )
            return None
        return uploaded

    def _dispatch_move(
        self, pending: PendingArticleMove, destination: Folder
    ) -> ServiceResult[ServiceBookmark] | None:
        """Send the move to the service.

        Returns:
            The service result, or None when the move can no longer be
            expressed (an unread re-add for an article deleted locally).
        """
        if destination.service_id == UNREAD_SERVICE_FOLDER_ID:
            article = self._articles.get_article_by_id(pending.article_id)
            if article is None:
                logger.debug(
                    "Dropping move of %d to unread: article no longer stored",
                    pending.article_id,
                )
                return None
            return self._client.add(article.url)
        if destination.service_id == ARCHIVE_SERVICE_FOLDER_ID:
            return self._client.archive(pending.article_id)
        return self._client.move(pending.article_id, destination.service_id)

    def _apply_moved_bookmark(
        self, original_id: int, bookmark: ServiceBookmark, destination: Folder
    ) -> None:
        article = bookmark.to_article()
        if bookmark.id == original_id:
            self._articles.update_article(article)
            return

        # The service re-created the bookmark under a new id
        logger.info(
            "Article %d came back from the service as %d", original_id, bookmark.id
        )
        self._articles.delete_article(original_id)
        if self._articles.get_article_by_id(bookmark.id) is None:
            self._articles.add_article_to_folder(article, destination.local_id)
        else:
            self._articles.move_article_to_folder(bookmark.id, destination.local_id)
            self._articles.update_article(article)

    def sync_pending_like_changes(self, cancel: CancellationToken | None = None) -> None:
        for pending in self._changes.list_pending_article_state_changes():
            check_cancelled(cancel)
            if pending.liked:
                result = self._client.like(pending.article_id)
            else:
                result = self._client.unlike(pending.article_id)

            if result.is_not_found:
                logger.debug("Article %d gone remotely; dropping like change", pending.article_id)
                self._changes.delete_pending_article_state_change(pending.article_id)
                continue

            bookmark = result.unwrap()
            self._changes.delete_pending_article_state_change(pending.article_id)
            if bookmark is not None:
                self._articles.update_article(bookmark.to_article())

    # === Remote state ===

    def sync_folders_state(self, cancel: CancellationToken | None = None) -> None:
        """Diff every folder that has a service id against the service."""
        for folder in self._folders.list_all_folders():
            if folder.service_id is None:
                continue
            check_cancelled(cancel)
            self._sync_folder_state(folder, folder.service_id)

    def _sync_folder_state(self, folder: Folder, service_id: int) -> None:
        local_articles = self._articles.list_articles_for_local_folder(folder.local_id)
        result = self._client.list(
            folder_selector_for(service_id),
            haves_for_articles(local_articles),
            self.articles_per_folder_to_sync,
        )
        if result.is_not_found:
            logger.debug("Folder '%s' not found remotely; skipping", folder.title)
            return
        listing = result.unwrap()

        for deleted_id in listing.deleted_ids:
            self._articles.remove_article_from_any_folder(deleted_id)

        for bookmark in listing.bookmarks:
            article = bookmark.to_article()
            if self._articles.get_article_by_id(bookmark.id) is None:
                self._articles.add_article_to_folder(article, folder.local_id)
            else:
                self._articles.move_article_to_folder(bookmark.id, folder.local_id)
                self._articles.update_article(article)

        logger.debug(
            "Folder '%s': %d changed, %d removed",
            folder.title,
            len(listing.bookmarks),
            len(listing.deleted_ids),
        )

    def sync_liked_articles(self, cancel: CancellationToken | None = None) -> None:
        """Bring local like flags in line with the service's liked collection."""
        check_cancelled(cancel)
        liked = self._articles.list_liked_articles()
        result = self._client.list(
            ServiceFolderToken.LIKED,
            haves_for_articles(liked),
            self.articles_per_folder_to_sync,
        )
        if result.is_not_found:
            return
        listing = result.unwrap()

        for unliked_id in listing.deleted_ids:
            if self._articles.get_article_by_id(unliked_id) is not None:
                self._articles.unlike_article(unliked_id)

        for bookmark in listing.bookmarks:
            if self._articles.get_article_by_id(bookmark.id) is not None:
                self._articles.like_article(bookmark.id)
            else:
                self._articles.add_article_no_folder(
                    replace(bookmark.to_article(), liked=True)
                )
