"""Upstream HLS helpers: manifest fetch/validation and segment streaming.

Manifests are small text files and are fetched whole; segments are
streamed chunk by chunk so a 2-10 MB ``.ts`` file never sits in memory.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import httpx
import structlog

from hlsgate.domain.exceptions import UpstreamFetchError

log = structlog.get_logger(__name__)

HLS_MARKERS = ("#EXTM3U", "#EXT-X-")

# Browser-like headers; several CDNs answer 403 to anything else.
MANIFEST_HEADERS: dict[str, str] = {
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# Response headers passed through to the client on segment proxying.
_SEGMENT_PASSTHROUGH = ("content-length", "accept-ranges", "content-range")

# Global semaphore for upstream fetches (prevents stampede).
_UPSTREAM_SEMAPHORE = asyncio.Semaphore(50)


@dataclass(frozen=True)
class FetchedManifest:
    """A manifest that passed HLS validation."""

    url: str
    content: str

    @property
    def body(self) -> bytes:
        return self.content.encode("utf-8")

    @property
    def size(self) -> int:
        return len(self.body)


@dataclass
class SegmentStream:
    """An open upstream segment response.

    ``chunks`` must be consumed or :meth:`aclose` called, otherwise the
    upstream connection leaks.
    """

    status_code: int
    content_type: str
    headers: dict[str, str] = field(default_factory=dict)
    response: httpx.Response | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    async def chunks(self) -> AsyncIterator[bytes]:
        if self.response is None:
            return
        try:
            async for chunk in self.response.aiter_bytes(chunk_size=65536):
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self.response is not None:
            await self.response.aclose()


def is_hls_manifest(content: str) -> bool:
    """True when *content* carries an HLS marker anywhere in the text."""
    return any(marker in content for marker in HLS_MARKERS)


def looks_like_playlist_url(url: str) -> bool:
    """Cheap pre-check used by the playlist proxy route."""
    return ".m3u8" in url or "playlist" in url


async def fetch_manifest(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float | None = None,
) -> FetchedManifest:
    """Fetch a manifest and validate that it is HLS.

    Raises:
        UpstreamFetchError: network error, non-2xx status or non-HLS body.
    """
    try:
        async with _UPSTREAM_SEMAPHORE:
            resp = await http_client.get(
                url,
                headers=MANIFEST_HEADERS,
                follow_redirects=True,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
    except httpx.HTTPError as e:
        log.warning("manifest_fetch_failed", url=url, error=str(e))
        raise UpstreamFetchError(str(e) or type(e).__name__) from e

    if not resp.is_success:
        log.warning("manifest_fetch_status", url=url, status=resp.status_code)
        raise UpstreamFetchError(f"HTTP {resp.status_code}: {resp.reason_phrase}")

    content = resp.text
    if not is_hls_manifest(content):
        log.warning("manifest_invalid", url=url, size=len(content))
        raise UpstreamFetchError("URL does not contain valid M3U8 content")

    manifest = FetchedManifest(url=url, content=content)
    log.debug("manifest_fetched", url=url, size_bytes=manifest.size)
    return manifest


async def open_segment_stream(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    range_header: str | None = None,
) -> SegmentStream:
    """Open a streaming GET for a media segment.

    The client's ``Range`` header is forwarded. Non-2xx responses are
    returned (already closed) with their status so the caller can mirror it.

    Raises:
        UpstreamFetchError: the upstream could not be reached.
    """
    headers = {"Accept": "*/*"}
    if range_header:
        headers["Range"] = range_header

    try:
        async with _UPSTREAM_SEMAPHORE:
            resp = await http_client.send(
                http_client.build_request("GET", url, headers=headers),
                stream=True,
                follow_redirects=True,
            )
    except httpx.HTTPError as e:
        log.warning("segment_fetch_failed", url=url, error=str(e))
        raise UpstreamFetchError(str(e) or type(e).__name__) from e

    content_type = resp.headers.get("content-type", "video/mp2t")
    passthrough = {
        name: resp.headers[name] for name in _SEGMENT_PASSTHROUGH if name in resp.headers
    }

    if not resp.is_success:
        await resp.aclose()
        log.warning("segment_fetch_status", url=url, status=resp.status_code)
        return SegmentStream(status_code=resp.status_code, content_type=content_type)

    return SegmentStream(
        status_code=resp.status_code,
        content_type=content_type,
        headers=passthrough,
        response=resp,
    )
