"""Shared types for storysync.

This module provides:
- Well-known local and service folder identifiers
- ServiceFolderToken: Names the service uses for its built-in collections
- SyncState: Session state reported to observers
"""

from __future__ import annotations

from enum import Enum

# Permanent local folders. They exist in every store and are never
# created or deleted through pending changes.
UNREAD_LOCAL_FOLDER_ID = 1
ARCHIVE_LOCAL_FOLDER_ID = 2

# Service-side ids recorded on the well-known local folders.
UNREAD_SERVICE_FOLDER_ID = -1
ARCHIVE_SERVICE_FOLDER_ID = -2

WELL_KNOWN_LOCAL_FOLDER_IDS = frozenset(
    {UNREAD_LOCAL_FOLDER_ID, ARCHIVE_LOCAL_FOLDER_ID}
)


class ServiceFolderToken(str, Enum):
    """Selectors for the service's built-in collections."""

    UNREAD = "unread"
    ARCHIVE = "archive"
    LIKED = "starred"


class SyncState(str, Enum):
    """State of a sync session."""

    IDLE = "idle"
    SYNCING = "syncing"
