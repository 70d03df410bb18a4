"""Media and stream descriptors exchanged with the content provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hlsgate.domain.entities.playlist import MediaType, StorageType
from hlsgate.domain.exceptions import InvalidRequestError


@dataclass(frozen=True)
class MediaDescriptor:
    """Media object handed to the provider.

    Shows carry both ``season`` and ``episode``; movies carry neither.
    """

    type: MediaType
    title: str
    release_year: int
    tmdb_id: str
    season: int | None = None
    episode: int | None = None

    @classmethod
    def build(
        cls,
        tmdb_id: str,
        media_type: str,
        title: str | None = None,
        year: str | None = None,
        season: str | None = None,
        episode: str | None = None,
    ) -> MediaDescriptor:
        if not tmdb_id:
            raise InvalidRequestError("tmdbId parameter is required")
        if media_type not in ("movie", "show"):
            raise InvalidRequestError(f"unsupported media type: {media_type!r}")

        release_year = _parse_int(year, "year") if year else 0

        if media_type == "show":
            if not season or not episode:
                raise InvalidRequestError(
                    "season and episode parameters are required for TV shows"
                )
            return cls(
                type="show",
                title=title or "Unknown Title",
                release_year=release_year,
                tmdb_id=tmdb_id,
                season=_parse_int(season, "season"),
                episode=_parse_int(episode, "episode"),
            )

        return cls(
            type="movie",
            title=title or "Unknown Title",
            release_year=release_year,
            tmdb_id=tmdb_id,
        )

    def to_provider_dict(self) -> dict[str, Any]:
        """Serialize in the provider's media object shape."""
        media: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "releaseYear": self.release_year,
            "tmdbId": self.tmdb_id,
        }
        if self.type == "show":
            media["season"] = {"number": self.season}
            media["episode"] = {"number": self.episode}
        return media


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise InvalidRequestError(f"{name} must be an integer, got {value!r}") from e


@dataclass(frozen=True)
class ProviderStream:
    """Stream part of a provider result."""

    id: str
    type: str  # "hls", "file", ...
    playlist: str | None = None
    file: str | None = None
    qualities: dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str | None:
        return self.playlist or self.file or None


@dataclass(frozen=True)
class ProviderOutput:
    """Result of running all provider sources for one media object."""

    stream: ProviderStream | None = None
    embeds: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class StreamSource:
    """A single stream source in the scrape response.

    Mutable: the scrape flow fills in playlist fields step by step.
    """

    embed_id: str
    stream_id: str
    quality: str
    type: str
    playlist_url: str | None = None
    playlist_filename: str | None = None
    playlist_pathname: str | None = None
    playlist_fetched: bool | None = None
    playlist_error: str | None = None
    playlist_size: int | None = None
    storage_type: StorageType | None = None
    from_cache: bool | None = None
    m3u8_content: str | None = None


@dataclass(frozen=True)
class ScrapeResult:
    """Outcome of the scrape-and-cache flow."""

    media: MediaDescriptor
    sources: list[StreamSource]
    embeds: list[dict[str, Any]]
    cached: bool
    message: str | None = None
    # Raw query values, echoed as given (they also form the key).
    season: str | None = None
    episode: str | None = None
