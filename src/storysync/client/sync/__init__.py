"""Synchronization of the local library with the bookmarking service.

Architecture:
    SyncSession → SyncEngine → FolderSync → BookmarkSync → OrphanCollector
                             ↘ ArticleDownloader (after a successful sync)

Components:
- **SyncSession**: Single-flight, cancellable background runner
- **SyncEngine**: Sequences the phases of one database sync
- **FolderSync**: Folder reconciliation and pending folder changes
- **BookmarkSync**: Article reconciliation, moves and likes
- **OrphanCollector**: Deletes articles left in no folder
- **ArticleDownloader**: Fetches content for newly synced articles
"""

from storysync.client.sync.bookmarks import BookmarkSync
from storysync.client.sync.download import ArticleDownloader, find_image_sources
from storysync.client.sync.engine import SyncEngine
from storysync.client.sync.folders import FolderSync
from storysync.client.sync.orphans import OrphanCollector
from storysync.client.sync.session import DownloaderProtocol, SyncFactory, SyncSession
from storysync.client.sync.types import (
    CancellationToken,
    SyncCancelledError,
    SyncError,
    check_cancelled,
)

__all__ = [
    "ArticleDownloader",
    "BookmarkSync",
    "CancellationToken",
    "DownloaderProtocol",
    "FolderSync",
    "OrphanCollector",
    "SyncCancelledError",
    "SyncEngine",
    "SyncError",
    "SyncFactory",
    "SyncSession",
    "check_cancelled",
    "find_image_sources",
]
