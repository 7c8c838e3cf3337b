"""Folder reconciliation between the local store and the service.

The service is the source of truth for folders. Pending local adds and
deletes are uploaded first, then the local folder list is brought in line
with the remote one.
"""

from __future__ import annotations

import logging

from storysync.client.api import FoldersClient, ServiceFolder
from storysync.client.store import (
    Folder,
    FolderChangesStore,
    FolderStore,
    PendingFolderAdd,
    list_user_folders,
)
from storysync.client.sync.types import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)


class FolderSync:
    """Synchronizes folders and drains pending folder changes."""

    def __init__(
        self,
        folder_store: FolderStore,
        folder_changes: FolderChangesStore,
        folders_client: FoldersClient,
    ) -> None:
        self._folders = folder_store
        self._changes = folder_changes
        self._client = folders_client

    def sync_folders(self, cancel: CancellationToken | None = None) -> None:
        """Upload pending folder changes, then mirror the remote folder list.

        Args:
            cancel: Checked before each pending change and before the
                remote listing.

        Raises:
            SyncCancelledError: If cancellation was requested.
            ServiceError: If the service fails in an unrecoverable way.
        """
        self._sync_pending_adds(cancel)
        self._sync_pending_deletes(cancel)

        check_cancelled(cancel)
        remote_folders = [
            f for f in self._client.list_folders().unwrap() if f.sync_to_mobile
        ]
        self._apply_remote_folders(remote_folders)
        self._delete_folders_missing_remotely({f.id for f in remote_folders})

    def sync_pending_folder_add(self, pending: PendingFolderAdd) -> Folder | None:
        """Upload one pending folder add.

        A duplicate-title rejection adopts the existing remote folder with
        the same title.

        Args:
            pending: The pending add to upload.

        Returns:
            The local folder updated with its service id, or None if the
            folder could not be resolved. The pending row is kept in that case.
        """
        result = self._client.add_folder(pending.title)
        if result.is_duplicate:
            remote = self._find_remote_folder_by_title(pending.title)
            if remote is None:
                logger.warning(
                    "Folder '%s' reported as duplicate but not found remotely",
                    pending.title,
                )
                return None
        else:
            remote = result.unwrap()

        folder = self._folders.update_folder(
            pending.folder_local_id,
            remote.id,
            remote.title,
            remote.position,
            remote.sync_to_mobile,
        )
        self._changes.delete_pending_folder_add(pending.folder_local_id)
        logger.info("Uploaded folder '%s' (service id %d)", remote.title, remote.id)
        return folder

    # === Pending changes ===

    def _sync_pending_adds(self, cancel: CancellationToken | None) -> None:
        for pending in self._changes.list_pending_folder_adds():
            check_cancelled(cancel)
            self.sync_pending_folder_add(pending)

    def _sync_pending_deletes(self, cancel: CancellationToken | None) -> None:
        for pending in self._changes.list_pending_folder_deletes():
            check_cancelled(cancel)
            result = self._client.delete_folder(pending.service_id)
            if result.is_not_found:
                logger.debug("Folder %d already gone remotely", pending.service_id)
            else:
                result.unwrap()
            self._changes.delete_pending_folder_delete(pending.service_id)
            logger.info("Deleted folder '%s' remotely", pending.title)

    def _find_remote_folder_by_title(self, title: str) -> ServiceFolder | None:
        for remote in self._client.list_folders().unwrap():
            if remote.title == title:
                return remote
        return None

    # === Remote state ===

    def _apply_remote_folders(self, remote_folders: list[ServiceFolder]) -> None:
        for remote in remote_folders:
            local = self._folders.get_folder_by_service_id(remote.id)
            if local is None:
                self._folders.add_known_folder(
                    remote.title, remote.id, remote.position, remote.sync_to_mobile
                )
                logger.debug("Added folder '%s' from service", remote.title)
                continue

            if (
                local.title != remote.title
                or local.position != remote.position
                or local.should_sync != remote.sync_to_mobile
            ):
                self._folders.update_folder(
                    local.local_id,
                    remote.id,
                    remote.title,
                    remote.position,
                    remote.sync_to_mobile,
                )
                logger.debug("Updated folder '%s' from service", remote.title)

    def _delete_folders_missing_remotely(self, remote_ids: set[int]) -> None:
        for local in list_user_folders(self._folders):
            if local.service_id is None:
                logger.warning(
                    "Folder '%s' has no service id after pending adds; keeping it",
                    local.title,
                )
                continue
            if local.service_id not in remote_ids:
                self._folders.delete_folder(local.local_id)
                logger.debug("Deleted folder '%s' removed remotely", local.title)
