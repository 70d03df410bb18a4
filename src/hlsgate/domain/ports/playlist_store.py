"""Playlist store port - interface for the manifest backing store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from hlsgate.domain.entities.playlist import CacheEntry

StoreBackend = Literal["vercel_blob", "local"]


@dataclass(frozen=True)
class ListPage:
    """One page of a store listing."""

    entries: list[CacheEntry] = field(default_factory=list)
    cursor: str | None = None
    has_more: bool = False


@runtime_checkable
class PlaylistStorePort(Protocol):
    """Async blob-style store for playlist files.

    Implementations:
      - VercelBlobStore (Vercel Blob REST API)
      - LocalPlaylistStore (directory on disk)

    Pathnames are namespace-qualified, e.g. ``playlists/603_movie.m3u8``.
    """

    backend: StoreBackend

    async def list(
        self, prefix: str, *, limit: int = 1000, cursor: str | None = None
    ) -> ListPage:
        """List entries whose pathname starts with *prefix*."""
        ...

    async def put(
        self, pathname: str, content: bytes, *, content_type: str
    ) -> CacheEntry:
        """Write *content* under *pathname* and return the stored entry."""
        ...

    async def delete(self, locations: list[str]) -> None:
        """Delete entries by location. Missing entries are ignored."""
        ...

    async def aclose(self) -> None:
        """Cleanup hook."""
        ...
