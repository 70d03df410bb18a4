"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from hlsgate.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from hlsgate.application.use_cases.scrape_playlist import ScrapePlaylistUseCase
    from hlsgate.domain.ports import ContentProviderPort, PlaylistStorePort
    from hlsgate.infrastructure.persistence.playlist_cache import PlaylistCache
    from hlsgate.infrastructure.retention.sweeper import RetentionSweeper


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    playlist_store: PlaylistStorePort
    playlist_cache: PlaylistCache

    # Domain Ports
    provider: ContentProviderPort

    # Application Services
    scrape_uc: ScrapePlaylistUseCase

    # Retention sweep (None unless retention.enabled)
    retention_sweeper: RetentionSweeper | None
