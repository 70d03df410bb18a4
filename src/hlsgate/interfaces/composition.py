"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from hlsgate.application.use_cases.scrape_playlist import ScrapePlaylistUseCase
from hlsgate.infrastructure.hls.upstream import fetch_manifest
from hlsgate.infrastructure.persistence.playlist_cache import PlaylistCache
from hlsgate.infrastructure.provider.client import HttpxContentProvider
from hlsgate.infrastructure.retention.sweeper import RetentionSweeper
from hlsgate.infrastructure.storage.local_adapter import LocalPlaylistStore
from hlsgate.infrastructure.storage.storage_factory import create_playlist_store
from hlsgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP client (required by blob store, provider, manifest fetch)
        2. Playlist store + cache
        3. Content provider
        4. Scrape use case
        5. Retention sweeper (background task)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) HTTP client, shared by every upstream call
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 2) Playlist store
    store = create_playlist_store(config.storage, http_client=state.http_client)
    if isinstance(store, LocalPlaylistStore):
        await store.__aenter__()
    state.playlist_store = store
    state.playlist_cache = PlaylistCache(store, namespace=config.storage.namespace)
    if store.backend == "vercel_blob":
        log.info("storage_initialized", backend="vercel_blob")
    else:
        log.info(
            "storage_initialized",
            backend="local",
            note="Vercel Blob not configured - using local storage",
        )

    # 3) Content provider
    state.provider = HttpxContentProvider(
        base_url=config.provider.base_url,
        http_client=state.http_client,
        timeout_seconds=config.provider.timeout_seconds,
    )
    if config.provider.base_url is None:
        log.warning("provider_not_configured")

    # 4) Use case
    state.scrape_uc = ScrapePlaylistUseCase(
        cache=state.playlist_cache,
        provider=state.provider,
        fetch_manifest=functools.partial(fetch_manifest, state.http_client),
    )

    # 5) Retention sweep
    state.retention_sweeper = None
    if config.retention.enabled:
        state.retention_sweeper = RetentionSweeper(
            cache=state.playlist_cache,
            interval=timedelta(days=config.retention.interval_days),
            retention=timedelta(hours=config.retention.retention_hours),
            page_size=config.retention.list_limit,
        )
        state.retention_sweeper.start()

    log.info("app_startup_complete")

    try:
        yield
    finally:
        if state.retention_sweeper is not None:
            await state.retention_sweeper.stop()

        await state.playlist_store.aclose()
        log.info("playlist_store_closed")

        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
