"""Tests for PlaylistCache (lookup/store over a PlaylistStorePort)."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from hlsgate.domain.entities import CacheEntry
from hlsgate.domain.exceptions import (
    PersistFailureError,
    StorageUnavailableError,
)
from hlsgate.domain.ports import ListPage
from hlsgate.infrastructure.persistence.playlist_cache import PlaylistCache
from hlsgate.infrastructure.storage.local_adapter import LocalPlaylistStore

_MANIFEST = "#EXTM3U\n#EXT-X-TARGETDURATION:10\n#EXTINF:10.0,\nseg-1.ts\n#EXT-X-ENDLIST\n"


def _make_entry(name: str = "603_movie.m3u8") -> CacheEntry:
    return CacheEntry(
        pathname=f"playlists/{name}",
        location=f"https://store.public.blob.vercel-storage.com/playlists/{name}",
        size_bytes=128,
        created_at=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc),
    )


class TestLookup:
    async def test_miss_on_empty_store(self, mock_store: AsyncMock) -> None:
        cache = PlaylistCache(mock_store)
        assert await cache.lookup("603_movie.m3u8") is None
        mock_store.list.assert_awaited_once_with("playlists/603_movie.m3u8", limit=1)

    async def test_hit_returns_stored_playlist(self, mock_store: AsyncMock) -> None:
        entry = _make_entry("603_movie.m3u8")
        mock_store.list = AsyncMock(return_value=ListPage(entries=[entry]))
        cache = PlaylistCache(mock_store)

        stored = await cache.lookup("603_movie.m3u8")

        assert stored is not None
        assert stored.filename == "603_movie.m3u8"
        assert stored.location == entry.location
        assert stored.pathname == "playlists/603_movie.m3u8"
        assert stored.storage_type == "vercel_blob"

    async def test_prefix_neighbour_is_not_a_hit(self, mock_store: AsyncMock) -> None:
        # Listing matches by prefix; only the exact pathname is a hit.
        mock_store.list = AsyncMock(
            return_value=ListPage(entries=[_make_entry("603_movie.m3u8.bak")])
        )
        cache = PlaylistCache(mock_store)
        assert await cache.lookup("603_movie.m3u8") is None

    async def test_store_error_propagates(self, mock_store: AsyncMock) -> None:
        mock_store.list = AsyncMock(side_effect=StorageUnavailableError("down"))
        cache = PlaylistCache(mock_store)
        with pytest.raises(StorageUnavailableError):
            await cache.lookup("603_movie.m3u8")


class TestStore:
    async def test_store_puts_under_namespace(self, mock_store: AsyncMock) -> None:
        cache = PlaylistCache(mock_store)

        stored = await cache.store("603_movie.m3u8", _MANIFEST.encode())

        mock_store.put.assert_awaited_once_with(
            "playlists/603_movie.m3u8",
            _MANIFEST.encode(),
            content_type="application/vnd.apple.mpegurl",
        )
        assert stored.size_bytes == len(_MANIFEST.encode())

    async def test_unexpected_error_becomes_persist_failure(
        self, mock_store: AsyncMock
    ) -> None:
        mock_store.put = AsyncMock(side_effect=RuntimeError("boom"))
        cache = PlaylistCache(mock_store)
        with pytest.raises(PersistFailureError, match="boom"):
            await cache.store("603_movie.m3u8", b"#EXTM3U\n")

    async def test_persist_failure_passes_through(self, mock_store: AsyncMock) -> None:
        mock_store.put = AsyncMock(side_effect=PersistFailureError("quota"))
        cache = PlaylistCache(mock_store)
        with pytest.raises(PersistFailureError, match="^quota$"):
            await cache.store("603_movie.m3u8", b"#EXTM3U\n")


class TestWithLocalStore:
    async def test_store_writes_through_backend(
        self, local_store: LocalPlaylistStore
    ) -> None:
        cache = PlaylistCache(local_store)

        stored = await cache.store("603_movie.m3u8", b"#EXTM3U\n")

        assert stored.filename == "603_movie.m3u8"
        assert stored.storage_type == "local"
        assert stored.size_bytes == len(b"#EXTM3U\n")
        assert (local_store.directory / "603_movie.m3u8").exists()

    async def test_lookup_after_store_is_hit(
        self, local_store: LocalPlaylistStore
    ) -> None:
        cache = PlaylistCache(local_store)
        assert await cache.lookup("1399_s1e1.m3u8") is None

        await cache.store("1399_s1e1.m3u8", _MANIFEST.encode())
        stored = await cache.lookup("1399_s1e1.m3u8")

        assert stored is not None
        assert stored.location == "/playlists/1399_s1e1.m3u8"
        assert stored.storage_type == "local"
        assert stored.size_bytes == len(_MANIFEST.encode())

    async def test_lookup_is_idempotent(self, local_store: LocalPlaylistStore) -> None:
        cache = PlaylistCache(local_store)
        await cache.store("603_movie.m3u8", _MANIFEST.encode())

        first = await cache.lookup("603_movie.m3u8")
        second = await cache.lookup("603_movie.m3u8")

        assert first == second

    async def test_content_roundtrips(self, local_store: LocalPlaylistStore) -> None:
        cache = PlaylistCache(local_store)
        await cache.store("603_movie.m3u8", _MANIFEST.encode())
        assert await local_store.read("603_movie.m3u8") == _MANIFEST.encode()


class TestEntries:
    async def test_iterates_all_pages(self, mock_store: AsyncMock) -> None:
        mock_store.list = AsyncMock(
            side_effect=[
                ListPage(entries=[_make_entry("1.m3u8")], cursor="c1", has_more=True),
                ListPage(entries=[_make_entry("2.m3u8")], cursor=None, has_more=False),
            ]
        )
        cache = PlaylistCache(mock_store)

        names = [e.pathname async for e in cache.entries(page_size=1)]

        assert names == ["playlists/1.m3u8", "playlists/2.m3u8"]
        assert mock_store.list.await_args_list[1].kwargs["cursor"] == "c1"

    async def test_delete_passes_location(self, mock_store: AsyncMock) -> None:
        entry = _make_entry()
        await PlaylistCache(mock_store).delete(entry)
        mock_store.delete.assert_awaited_once_with([entry.location])
