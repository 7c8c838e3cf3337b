"""Shared configuration classes for storysync.

This module defines the configuration used by the HTTP service client and
by the sync coordinators.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SERVICE_URL = "https://www.instapaper.com/api/1"
DEFAULT_ARTICLES_PER_FOLDER = 25


@dataclass
class ServiceConfig:
    """Configuration for connecting to the bookmarking service.

    Attributes:
        base_url: Base URL of the service API.
        timeout: Request/connection timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    base_url: str = DEFAULT_SERVICE_URL
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize base URL."""
        self.base_url = self.base_url.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if the service is reached over HTTPS.
        """
        return self.base_url.startswith("https://")


@dataclass
class SyncConfig:
    """Tuning knobs for a sync pass.

    Attributes:
        articles_per_folder_to_sync: Maximum number of articles the service
            reports per folder, and the size of the liked window kept by
            orphan cleanup.
    """

    articles_per_folder_to_sync: int = DEFAULT_ARTICLES_PER_FOLDER

    def __post_init__(self) -> None:
        if self.articles_per_folder_to_sync <= 0:
            raise ValueError(
                "articles_per_folder_to_sync must be positive, "
                f"got {self.articles_per_folder_to_sync}"
            )
