"""Storage factory - creates the playlist store selected by config."""

from __future__ import annotations

import httpx
import structlog

from hlsgate.domain.ports.playlist_store import PlaylistStorePort
from hlsgate.infrastructure.config.schema import StorageConfig
from hlsgate.infrastructure.storage.local_adapter import LocalPlaylistStore
from hlsgate.infrastructure.storage.vercel_blob_adapter import VercelBlobStore

log = structlog.get_logger(__name__)


def create_playlist_store(
    config: StorageConfig,
    *,
    http_client: httpx.AsyncClient,
) -> PlaylistStorePort:
    """Build the blob store when a token is available, else the local store.

    Raises:
        ValueError: ``backend=blob`` without a token (also rejected by config
            validation; kept for callers building StorageConfig by hand).
    """
    if config.use_blob:
        if not config.blob_read_write_token:
            raise ValueError("Vercel Blob backend requires a read/write token")
        log.info(
            "storage_factory_create",
            backend="vercel_blob",
            api_url=config.blob_api_url,
        )
        return VercelBlobStore(
            token=config.blob_read_write_token,
            http_client=http_client,
            api_url=config.blob_api_url,
        )

    log.info(
        "storage_factory_create",
        backend="local",
        directory=str(config.playlists_dir),
    )
    return LocalPlaylistStore(
        directory=config.playlists_dir,
        namespace=config.namespace,
    )
