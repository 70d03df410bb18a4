"""JSON presentation of scrape results (camelCase wire format)."""

from __future__ import annotations

from typing import Any

from hlsgate.domain.entities.media import ScrapeResult, StreamSource

_SOURCE_FIELDS: tuple[tuple[str, str], ...] = (
    ("embed_id", "embedId"),
    ("stream_id", "streamId"),
    ("quality", "quality"),
    ("type", "type"),
    ("playlist_url", "playlistUrl"),
    ("playlist_filename", "playlistFilename"),
    ("playlist_pathname", "playlistPathname"),
    ("playlist_fetched", "playlistFetched"),
    ("playlist_error", "playlistError"),
    ("playlist_size", "playlistSize"),
    ("storage_type", "storageType"),
    ("from_cache", "fromCache"),
    ("m3u8_content", "m3u8Content"),
)


def present_source(source: StreamSource) -> dict[str, Any]:
    """Serialize a source, omitting unset optional fields."""
    out: dict[str, Any] = {}
    for attr, key in _SOURCE_FIELDS:
        value = getattr(source, attr)
        if value is not None:
            out[key] = value
    return out


def present_scrape_result(result: ScrapeResult) -> dict[str, Any]:
    media = result.media
    body: dict[str, Any] = {
        "tmdbId": media.tmdb_id,
        "type": media.type,
        "title": media.title,
        "year": media.release_year,
        "sources": [present_source(s) for s in result.sources],
        "embeds": result.embeds,
        "cached": result.cached,
    }
    if media.type == "show":
        body["season"] = result.season or str(media.season)
        body["episode"] = result.episode or str(media.episode)
    if result.message:
        body["message"] = result.message
    return body
