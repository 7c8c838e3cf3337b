"""Per-article fingerprints sent to the service for diff listing.

A HaveStatus tells the service which version of an article the client
already holds, so the service only returns what changed and reports what
disappeared.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storysync.client.store import Article


def _format_progress(progress: float) -> str:
    return f"{progress:.15g}"


@dataclass(frozen=True)
class HaveStatus:
    """Immutable fingerprint of a locally held article.

    Serialized as ``id[:hash[:progress:changed]]`` where ``changed`` is
    expressed in unix seconds, reading a naive ``changed`` as UTC. Progress
    and changed are only emitted together, and only after a hash.

    Raises:
        ValueError: If the id is not positive, the hash is blank, or the
            progress fields are incomplete.
    """

    id: int
    hash: str | None = None
    read_progress: float | None = None
    changed: datetime | None = None

    def __post_init__(self) -> None:
        if not self.id or self.id <= 0:
            raise ValueError(f"HaveStatus requires a positive id, got {self.id!r}")
        if self.hash is not None and not self.hash.strip():
            raise ValueError("HaveStatus hash must not be blank")
        has_progress = self.read_progress is not None
        has_changed = self.changed is not None
        if has_progress != has_changed:
            raise ValueError("read_progress and changed must be supplied together")
        if has_progress and self.hash is None:
            raise ValueError("read_progress requires a hash")

    @classmethod
    def for_article(cls, article: Article) -> HaveStatus:
        """Fingerprint an article by id, content hash and reading progress.

        Progress is only included once the article has a progress timestamp.
        Articles the store holds without a hash fall back to an id-only
        fingerprint, which makes the service resend them.
        """
        if not article.hash or not article.hash.strip():
            return cls(article.id)
        if article.read_progress_timestamp is None:
            return cls(article.id, article.hash)
        return cls(
            article.id,
            article.hash,
            article.read_progress,
            article.read_progress_timestamp,
        )

    def __str__(self) -> str:
        parts = [str(self.id)]
        if self.hash is not None:
            parts.append(self.hash)
            if self.read_progress is not None and self.changed is not None:
                parts.append(_format_progress(self.read_progress))
                changed = self.changed
                if changed.tzinfo is None:
                    changed = changed.replace(tzinfo=timezone.utc)
                parts.append(str(int(changed.timestamp())))
        return ":".join(parts)


def haves_for_articles(articles: Iterable[Article]) -> list[HaveStatus]:
    """Build fingerprints for a collection of local articles."""
    return [HaveStatus.for_article(article) for article in articles]
