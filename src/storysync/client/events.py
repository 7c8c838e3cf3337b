"""In-process event fan-out for sync progress.

This module provides:
- SyncEventType, DownloadEventType, SessionEventType: Event topics
- EventHub: Thread-safe publish/subscribe hub
- Subscription: Handle returned by EventHub.subscribe()

Handlers are called synchronously on the publishing thread, which is
usually the background sync thread. A failing handler is logged and the
remaining handlers still run.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from enum import Enum, auto
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

EventHandler = Callable[..., None]


class SyncEventType(Enum):
    """Progress of SyncEngine.sync_everything()."""

    SYNC_STARTED = auto()
    FOLDERS_STARTED = auto()
    FOLDERS_ENDED = auto()
    FOLDERS_ERROR = auto()
    ARTICLES_STARTED = auto()
    ARTICLES_ENDED = auto()
    ARTICLES_ERROR = auto()
    SYNC_ERROR = auto()
    SYNC_ENDED = auto()


class DownloadEventType(Enum):
    """Progress of ArticleDownloader."""

    DOWNLOADING_STARTED = auto()  # (count)
    ARTICLE_STARTED = auto()  # (article)
    IMAGES_STARTED = auto()  # (article_id)
    IMAGE_STARTED = auto()  # (article_id, url)
    IMAGE_COMPLETED = auto()  # (article_id, url)
    IMAGE_ERROR = auto()  # (article_id, url, error)
    IMAGES_COMPLETED = auto()  # (article_id)
    ARTICLE_COMPLETED = auto()  # (article, state)
    ARTICLE_ERROR = auto()  # (article, error)
    DOWNLOADING_COMPLETED = auto()


class SessionEventType(Enum):
    """Changes of SyncSession state."""

    IS_SYNCING_CHANGED = auto()  # (is_syncing)


class Subscription:
    """A registered handler. Unsubscribe explicitly or use as a context manager."""

    def __init__(self, hub: EventHub[Any], event_type: Enum, handler: EventHandler) -> None:
        self._hub = hub
        self.event_type = event_type
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Remove the handler. Calling this twice is harmless."""
        if self._active:
            self._hub.unsubscribe(self.event_type, self.handler)
            self._active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *args: object) -> None:
        self.unsubscribe()


class EventHub(Generic[E]):
    """Thread-safe publish/subscribe hub keyed by an event enum.

    Example:
        hub: EventHub[SyncEventType] = EventHub("sync")
        sub = hub.subscribe(SyncEventType.SYNC_ENDED, lambda: print("done"))
        hub.publish(SyncEventType.SYNC_ENDED)
        sub.unsubscribe()
    """

    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._handlers: dict[E, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: E, handler: EventHandler) -> Subscription:
        """Register a handler for an event type.

        Args:
            event_type: Topic to listen to.
            handler: Called with the event's positional arguments.

        Returns:
            Subscription that removes the handler when unsubscribed.
        """
        with self._lock:
            self._handlers[event_type].append(handler)
            count = len(self._handlers[event_type])
        logger.debug("%s: subscribed to %s (%d handlers)", self.name, event_type.name, count)
        return Subscription(self, event_type, handler)

    def unsubscribe(self, event_type: E, handler: EventHandler) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was registered.
        """
        with self._lock:
            handlers = self._handlers.get(event_type)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
        return True

    def publish(self, event_type: E, *args: Any) -> None:
        """Call every handler registered for the event type."""
        with self._lock:
            handlers = list(self._handlers.get(event_type, ()))

        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception(
                    "%s: handler %r failed for %s", self.name, handler, event_type.name
                )

    def handler_count(self, event_type: E) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, ()))

    def clear(self) -> None:
        """Remove every handler."""
        with self._lock:
            self._handlers.clear()
