"""Shared types for sync operations.

This module provides:
- SyncError, SyncCancelledError: Exception classes
- CancellationToken: Cooperative cancellation flag shared with a sync
"""

from __future__ import annotations

import threading


class SyncError(Exception):
    """Base exception for sync errors."""


class SyncCancelledError(SyncError):
    """The sync observed a cancellation request and stopped."""


class CancellationToken:
    """Cooperative cancellation flag.

    Cancellation is only observed at item and phase boundaries; a remote
    call already in flight always completes.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def request_cancel(self) -> None:
        """Ask the sync holding this token to stop."""
        self._event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise SyncCancelledError if cancellation was requested."""
        if self.cancel_requested:
            raise SyncCancelledError("Sync was cancelled")


def check_cancelled(cancel: CancellationToken | None) -> None:
    """Raise if the optional token has been cancelled."""
    if cancel is not None:
        cancel.raise_if_cancelled()
