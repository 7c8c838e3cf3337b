"""Core shared components for storysync."""

from storysync.core.config import ServiceConfig, SyncConfig
from storysync.core.types import (
    ARCHIVE_LOCAL_FOLDER_ID,
    ARCHIVE_SERVICE_FOLDER_ID,
    UNREAD_LOCAL_FOLDER_ID,
    UNREAD_SERVICE_FOLDER_ID,
    ServiceFolderToken,
    SyncState,
)

__all__ = [
    "ARCHIVE_LOCAL_FOLDER_ID",
    "ARCHIVE_SERVICE_FOLDER_ID",
    "ServiceConfig",
    "ServiceFolderToken",
    "SyncConfig",
    "SyncState",
    "UNREAD_LOCAL_FOLDER_ID",
    "UNREAD_SERVICE_FOLDER_ID",
]
