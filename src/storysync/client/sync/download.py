"""Article content download.

This module provides:
- ArticleDownloader: Fetches bodies and images for articles that have no
  local content yet, and records what happened in the article store
"""

from __future__ import annotations

import logging
from html.parser import HTMLParser
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

import httpx

from storysync.client.api import BookmarksClient
from storysync.client.errors import ServiceError
from storysync.client.events import DownloadEventType, EventHub
from storysync.client.store import Article, ArticleStore, LocalOnlyArticleState
from storysync.client.sync.types import CancellationToken, check_cancelled

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}


class _ImageCollector(HTMLParser):
    """Collects the ``src`` attribute of every ``<img>`` in a document."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.sources: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "img":
            return
        for name, value in attrs:
            if name == "src" and value and value not in self.sources:
                self.sources.append(value)


def find_image_sources(html: str) -> list[str]:
    """Return unique absolute http(s) image URLs in document order."""
    collector = _ImageCollector()
    collector.feed(html)
    collector.close()
    return [s for s in collector.sources if urlsplit(s).scheme in ("http", "https")]


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_bytes(data)
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class ArticleDownloader:
    """Downloads article bodies and their images into a local directory.

    Bodies are written to ``<root>/<article_id>.html`` with image sources
    rewritten to ``<article_id>/<n><suffix>`` relative to the root.
    """

    def __init__(
        self,
        root: Path,
        article_store: ArticleStore,
        bookmarks_client: BookmarksClient,
        http_client: httpx.Client | None = None,
        events: EventHub[DownloadEventType] | None = None,
    ) -> None:
        """Initialize the downloader.

        Args:
            root: Directory receiving downloaded content.
            article_store: Store recording the local-only state.
            bookmarks_client: Service client used to fetch article bodies.
            http_client: Client used for images. One with redirects enabled
                is created when omitted.
            events: Hub receiving progress events.
        """
        self._root = root
        self._articles = article_store
        self._bookmarks = bookmarks_client
        self._http = http_client or httpx.Client(follow_redirects=True, timeout=30.0)
        self.events: EventHub[DownloadEventType] = events or EventHub("download")

    def download_all_articles_without_local_state(
        self, cancel: CancellationToken | None = None
    ) -> list[LocalOnlyArticleState]:
        """Download every article the store holds without local content.

        Individual failures are reported through ``ARTICLE_ERROR`` and do
        not stop the pass.

        Args:
            cancel: Checked before each article.

        Returns:
            States recorded for the articles that were processed.

        Raises:
            SyncCancelledError: If cancellation was requested.
        """
        articles = self._articles.list_articles_without_local_state()
        logger.info("Downloading %d articles", len(articles))
        self.events.publish(DownloadEventType.DOWNLOADING_STARTED, len(articles))

        states: list[LocalOnlyArticleState] = []
        try:
            for article in articles:
                check_cancelled(cancel)
                self.events.publish(DownloadEventType.ARTICLE_STARTED, article)
                try:
                    state = self.download_article(article)
                except (ServiceError, httpx.HTTPError, OSError) as e:
                    logger.warning("Failed to download article %d: %s", article.id, e)
                    self.events.publish(DownloadEventType.ARTICLE_ERROR, article, e)
                    continue
                states.append(state)
                self.events.publish(DownloadEventType.ARTICLE_COMPLETED, article, state)
        finally:
            self.events.publish(DownloadEventType.DOWNLOADING_COMPLETED)
        return states

    def download_article(self, article: Article) -> LocalOnlyArticleState:
        """Download one article and record its local state.

        Raises:
            ServiceError: If the service failed for a reason other than the
                content being unavailable.
            OSError: If the body could not be written.
        """
        result = self._bookmarks.get_text(article.id)
        if result.is_unavailable:
            logger.info("Article %d has no content available", article.id)
            state = LocalOnlyArticleState(article_id=article.id, article_unavailable=True)
            self._articles.add_local_only_state(state)
            return state

        body = result.unwrap()
        body, image_count = self._download_images(article.id, body)

        file_name = f"{article.id}.html"
        _write_atomic(self._root / file_name, body.encode("utf-8"))

        state = LocalOnlyArticleState(
            article_id=article.id,
            available_locally=True,
            local_path=file_name,
            has_images=image_count > 0,
        )
        self._articles.add_local_only_state(state)
        logger.debug("Downloaded article %d (%d images)", article.id, image_count)
        return state

    def _download_images(self, article_id: int, body: str) -> tuple[str, int]:
        sources = find_image_sources(body)
        if not sources:
            return body, 0

        self.events.publish(DownloadEventType.IMAGES_STARTED, article_id)
        downloaded = 0
        for index, url in enumerate(sources):
            self.events.publish(DownloadEventType.IMAGE_STARTED, article_id, url)
            suffix = PurePosixPath(urlsplit(url).path).suffix.lower()
            if suffix not in IMAGE_SUFFIXES:
                suffix = ".img"
            relative = f"{article_id}/{index}{suffix}"
            try:
                response = self._http.get(url)
                response.raise_for_status()
                _write_atomic(self._root / relative, response.content)
            except (httpx.HTTPError, OSError) as e:
                logger.debug("Image %s for article %d failed: %s", url, article_id, e)
                self.events.publish(DownloadEventType.IMAGE_ERROR, article_id, url, e)
                continue
            body = body.replace(url, relative)
            downloaded += 1
            self.events.publish(DownloadEventType.IMAGE_COMPLETED, article_id, url)

        self.events.publish(DownloadEventType.IMAGES_COMPLETED, article_id)
        return body, downloaded

    def close(self) -> None:
        """Close the image HTTP client."""
        self._http.close()
