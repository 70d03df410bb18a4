"""Scrape-and-cache use case.

tmdbId (+ season/episode) -> playlist key -> cache lookup
-> hit: return cached location (no provider call)
-> miss: provider -> HLS manifest fetch -> persist -> location.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import structlog

from hlsgate.domain.entities.media import (
    MediaDescriptor,
    ProviderOutput,
    ScrapeResult,
    StreamSource,
)
from hlsgate.domain.entities.playlist import StoredPlaylist, derive_key
from hlsgate.domain.exceptions import (
    PersistFailureError,
    StorageUnavailableError,
    UpstreamFetchError,
)
from hlsgate.domain.ports.content_provider import ContentProviderPort

log = structlog.get_logger(__name__)

CACHED_MESSAGE = "Returned cached playlist without scraping"


class _PlaylistCache(Protocol):
    """Existence check + write-once persist."""

    async def lookup(self, key: str) -> StoredPlaylist | None: ...

    async def store(self, key: str, content: bytes) -> StoredPlaylist: ...


class _Manifest(Protocol):
    content: str

    @property
    def body(self) -> bytes: ...

    @property
    def size(self) -> int: ...


_FetchManifestFn = Callable[[str], Awaitable[_Manifest]]


@dataclass(frozen=True)
class ScrapeRequest:
    """Raw identifiers from the query string."""

    tmdb_id: str
    media_type: str = "movie"
    season: str | None = None
    episode: str | None = None
    title: str | None = None
    year: str | None = None


def public_url(location: str, base_url: str) -> str:
    """Make a local ``/playlists/...`` location absolute; URLs pass through."""
    if location.startswith("/"):
        return base_url.rstrip("/") + location
    return location


class ScrapePlaylistUseCase:
    """Resolve a stream for a movie/episode and cache its HLS manifest."""

    def __init__(
        self,
        *,
        cache: _PlaylistCache,
        provider: ContentProviderPort,
        fetch_manifest: _FetchManifestFn,
    ) -> None:
        self._cache = cache
        self._provider = provider
        self._fetch_manifest = fetch_manifest

    async def execute(self, request: ScrapeRequest, *, base_url: str) -> ScrapeResult:
        """Run the flow.

        Raises:
            InvalidRequestError: missing/malformed identifiers.
            ProviderError: the provider failed.
        """
        media = MediaDescriptor.build(
            request.tmdb_id,
            request.media_type,
            title=request.title,
            year=request.year,
            season=request.season,
            episode=request.episode,
        )
        key = derive_key(
            media.tmdb_id, media.type, request.season, request.episode
        )

        season, episode = (
            (request.season, request.episode) if media.type == "show" else (None, None)
        )
        log.info("scrape_request", key=key, media=media.to_provider_dict())

        existing = await self._lookup(key)
        if existing is not None:
            log.info("scrape_served_from_cache", key=key)
            return ScrapeResult(
                media=media,
                sources=[self._cached_source(existing, base_url)],
                embeds=[],
                cached=True,
                message=CACHED_MESSAGE,
                season=season,
                episode=episode,
            )

        log.info("scrape_cache_miss", key=key)
        output = await self._provider.run_all(media)
        sources = await self._sources_from_output(output, key, base_url)

        return ScrapeResult(
            media=media,
            sources=sources,
            embeds=output.embeds,
            cached=False,
            season=season,
            episode=episode,
        )

    async def _lookup(self, key: str) -> StoredPlaylist | None:
        # Fail open: an unreachable store must not block scraping.
        try:
            return await self._cache.lookup(key)
        except StorageUnavailableError as e:
            log.warning("playlist_lookup_unavailable", key=key, error=str(e))
            return None

    @staticmethod
    def _cached_source(stored: StoredPlaylist, base_url: str) -> StreamSource:
        return StreamSource(
            embed_id="cached",
            stream_id="cached",
            quality="unknown",
            type="hls",
            playlist_url=public_url(stored.location, base_url),
            playlist_filename=stored.filename,
            playlist_pathname=stored.pathname if stored.is_remote else None,
            playlist_fetched=True,
            storage_type=stored.storage_type,
            from_cache=True,
        )

    async def _sources_from_output(
        self, output: ProviderOutput, key: str, base_url: str
    ) -> list[StreamSource]:
        stream = output.stream
        if stream is None or not stream.url:
            return []

        embed_id = "unknown"
        if output.embeds:
            embed_id = str(output.embeds[0].get("embedId") or "unknown")

        source = StreamSource(
            embed_id=embed_id,
            stream_id=stream.id or "unknown",
            quality="1080p" if "1080" in stream.qualities else "unknown",
            type=stream.type or "unknown",
        )

        if source.type == "hls":
            await self._cache_manifest(source, stream.url, key, base_url)

        return [source]

    async def _cache_manifest(
        self, source: StreamSource, url: str, key: str, base_url: str
    ) -> None:
        log.info("manifest_fetch_start", url=url)
        try:
            manifest = await self._fetch_manifest(url)
        except UpstreamFetchError as e:
            source.playlist_fetched = False
            source.playlist_error = str(e)
            source.from_cache = False
            log.error("manifest_fetch_error", url=url, error=str(e))
            return

        try:
            stored = await self._cache.store(key, manifest.body)
        except PersistFailureError as e:
            source.m3u8_content = manifest.content
            source.playlist_fetched = False
            source.playlist_error = str(e)
            source.storage_type = "direct_content"
            source.from_cache = False
            log.error("manifest_persist_failed_inline_fallback", key=key, error=str(e))
            return

        source.playlist_url = public_url(stored.location, base_url)
        source.playlist_filename = stored.filename
        if stored.is_remote:
            source.playlist_pathname = stored.pathname
        source.playlist_fetched = True
        source.playlist_size = manifest.size
        source.storage_type = stored.storage_type
        source.from_cache = False
        log.info("manifest_saved", key=key, size_bytes=manifest.size)
