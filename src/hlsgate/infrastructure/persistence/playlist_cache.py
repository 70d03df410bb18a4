"""Playlist cache backed by a PlaylistStorePort (Vercel Blob / local dir)."""

from __future__ import annotations

from collections.abc import AsyncIterator

import structlog

from hlsgate.domain.entities.playlist import (
    HLS_CONTENT_TYPE,
    CacheEntry,
    StoredPlaylist,
)
from hlsgate.domain.exceptions import PersistFailureError
from hlsgate.domain.ports.playlist_store import PlaylistStorePort

log = structlog.get_logger(__name__)


class PlaylistCache:
    """Existence check, write-once persist and listing of cached playlists.

    Keys are filenames from ``derive_key``; the store pathname is
    ``namespace + key``. ``store`` does not re-check existence: callers
    run ``lookup`` first, and two requests racing past it may both write.
    """

    def __init__(self, store: PlaylistStorePort, namespace: str = "playlists/") -> None:
        self._store = store
        self.namespace = namespace

    @property
    def storage_type(self) -> str:
        return self._store.backend

    def pathname_for(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def _to_stored(self, key: str, entry: CacheEntry) -> StoredPlaylist:
        return StoredPlaylist(
            filename=key,
            location=entry.location,
            storage_type=self._store.backend,
            pathname=entry.pathname,
            size_bytes=entry.size_bytes,
        )

    async def lookup(self, key: str) -> StoredPlaylist | None:
        """Return the stored playlist for *key*, or None.

        Raises:
            StorageUnavailableError: the store could not be queried.
        """
        pathname = self.pathname_for(key)
        page = await self._store.list(pathname, limit=1)
        for entry in page.entries:
            if entry.pathname == pathname:
                log.info("playlist_cache_hit", key=key, location=entry.location)
                return self._to_stored(key, entry)
        log.debug("playlist_cache_miss", key=key)
        return None

    async def store(self, key: str, content: bytes) -> StoredPlaylist:
        """Persist *content* under *key*.

        Raises:
            PersistFailureError: the store rejected the write.
        """
        pathname = self.pathname_for(key)
        try:
            entry = await self._store.put(
                pathname, content, content_type=HLS_CONTENT_TYPE
            )
        except PersistFailureError:
            raise
        except Exception as e:
            raise PersistFailureError(f"Failed to store {pathname}: {e}") from e
        log.info("playlist_cached", key=key, size_bytes=len(content))
        return self._to_stored(key, entry)

    async def entries(self, *, page_size: int = 1000) -> AsyncIterator[CacheEntry]:
        """Iterate over every entry under the namespace, page by page.

        Raises:
            StorageUnavailableError: a listing page could not be fetched.
        """
        cursor: str | None = None
        while True:
            page = await self._store.list(
                self.namespace, limit=page_size, cursor=cursor
            )
            for entry in page.entries:
                yield entry
            if not page.has_more or not page.cursor:
                return
            cursor = page.cursor

    async def delete(self, entry: CacheEntry) -> None:
        await self._store.delete([entry.location])
