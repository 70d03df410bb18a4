"""Shared test fixtures for the hlsgate test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from hlsgate.domain.entities import (
    CacheEntry,
    MediaDescriptor,
    ProviderOutput,
    ProviderStream,
)
from hlsgate.domain.ports import ListPage
from hlsgate.infrastructure.storage.local_adapter import LocalPlaylistStore

_MANIFEST = """\
#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:10
#EXTINF:10.0,
https://cdn.example.com/hls/seg-1.ts
#EXTINF:10.0,
https://cdn.example.com/hls/seg-2.ts
#EXT-X-ENDLIST
"""

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie() -> MediaDescriptor:
    return MediaDescriptor.build("603", "movie", title="The Matrix", year="1999")


@pytest.fixture()
def episode() -> MediaDescriptor:
    return MediaDescriptor.build(
        "1399", "show", title="Game of Thrones", season="1", episode="1"
    )


@pytest.fixture()
def hls_output() -> ProviderOutput:
    """Provider output with one HLS stream in 1080p."""
    return ProviderOutput(
        stream=ProviderStream(
            id="primary",
            type="hls",
            playlist="https://cdn.example.com/hls/master.m3u8",
            qualities={"1080": {"url": "https://cdn.example.com/1080.mp4"}},
        ),
        embeds=[{"embedId": "upcloud", "url": "https://embed.example.com/e/1"}],
    )


@pytest.fixture()
def manifest() -> str:
    """Minimal VOD media playlist."""
    return _MANIFEST


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_store() -> AsyncMock:
    """Mock PlaylistStorePort (blob flavour, empty by default)."""
    store = AsyncMock()
    store.backend = "vercel_blob"
    store.list = AsyncMock(return_value=ListPage())
    store.put = AsyncMock(
        side_effect=lambda pathname, content, *, content_type: CacheEntry(
            pathname=pathname,
            location=f"https://store.public.blob.vercel-storage.com/{pathname}",
            size_bytes=len(content),
            created_at=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
        )
    )
    store.delete = AsyncMock()
    store.aclose = AsyncMock()
    return store


@pytest.fixture()
def mock_provider(hls_output: ProviderOutput) -> AsyncMock:
    """Mock ContentProviderPort returning an HLS stream."""
    provider = AsyncMock()
    provider.run_all = AsyncMock(return_value=hls_output)
    return provider


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    return httpx.AsyncClient()


@pytest.fixture()
async def local_store(tmp_path: Path) -> LocalPlaylistStore:
    """Real LocalPlaylistStore backed by tmp_path (auto-cleaned)."""
    store = LocalPlaylistStore(directory=tmp_path / "playlists")
    async with store:
        yield store
