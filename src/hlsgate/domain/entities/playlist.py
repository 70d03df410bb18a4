"""Domain entities for the playlist cache.

Pure value objects without I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from hlsgate.domain.exceptions import InvalidRequestError

MediaType = Literal["movie", "show"]
StorageType = Literal["vercel_blob", "local", "direct_content"]

HLS_CONTENT_TYPE = "application/vnd.apple.mpegurl"


def derive_key(
    content_id: str,
    media_type: str,
    season: str | int | None = None,
    episode: str | int | None = None,
) -> str:
    """Derive the playlist filename for a piece of content.

    >>> derive_key("603", "movie")
    '603_movie.m3u8'
    >>> derive_key("1399", "show", season="1", episode="1")
    '1399_s1e1.m3u8'
    """
    if not content_id:
        raise InvalidRequestError("content id is required")
    if media_type == "movie":
        return f"{content_id}_movie.m3u8"
    if media_type == "show":
        if season in (None, "") or episode in (None, ""):
            raise InvalidRequestError(
                "season and episode parameters are required for TV shows"
            )
        return f"{content_id}_s{season}e{episode}.m3u8"
    raise InvalidRequestError(f"unsupported media type: {media_type!r}")


@dataclass(frozen=True)
class CacheEntry:
    """One manifest held by the backing store.

    ``created_at`` is assigned by the store (upload time / file mtime).
    """

    pathname: str  # "playlists/603_movie.m3u8"
    location: str  # remote URL or "/playlists/603_movie.m3u8"
    size_bytes: int
    created_at: datetime


@dataclass(frozen=True)
class StoredPlaylist:
    """Where a cached manifest lives and how to reach it."""

    filename: str
    location: str
    storage_type: StorageType
    pathname: str | None = None
    size_bytes: int | None = None

    @property
    def is_remote(self) -> bool:
        return self.storage_type == "vercel_blob"
