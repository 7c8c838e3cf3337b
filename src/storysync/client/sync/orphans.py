"""Removal of articles that no longer belong anywhere."""

from __future__ import annotations

import logging

from storysync.client.store import ArticleStore
from storysync.core.config import SyncConfig

logger = logging.getLogger(__name__)


class OrphanCollector:
    """Deletes articles that are in no folder and outside the liked window.

    Liked articles survive without a folder, but only the first
    ``articles_per_folder_to_sync`` of them, which is all the service ever
    reports back for the liked collection.
    """

    def __init__(self, article_store: ArticleStore, config: SyncConfig | None = None) -> None:
        self._articles = article_store
        self._config = config or SyncConfig()

    def cleanup_orphaned_articles(self) -> int:
        """Delete orphaned articles.

        Returns:
            Number of articles deleted.
        """
        limit = self._config.articles_per_folder_to_sync
        kept = {a.id for a in self._articles.list_liked_articles()[:limit]}

        deleted = 0
        for article in self._articles.list_articles_not_in_a_folder():
            if article.id in kept:
                continue
            self._articles.delete_article(article.id)
            deleted += 1

        if deleted:
            logger.info("Deleted %d orphaned articles", deleted)
        return deleted
