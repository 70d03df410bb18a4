"""Gateway API endpoints (info, provider test, search stub, scrape, proxy)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from hlsgate.application.use_cases.scrape_playlist import ScrapeRequest
from hlsgate.domain.entities.playlist import HLS_CONTENT_TYPE
from hlsgate.domain.exceptions import ProviderError, UpstreamFetchError
from hlsgate.infrastructure.hls.upstream import (
    fetch_manifest,
    looks_like_playlist_url,
    open_segment_stream,
)
from hlsgate.interfaces.api.presenter import present_scrape_result
from hlsgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["gateway"])

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


def _build_info(backend: str) -> dict[str, Any]:
    return {
        "message": "Movie API is running!",
        "storage": backend,
        "endpoints": {
            "search": "/api/search?query=movie_name&type=movie|show",
            "scrape": "/api/scrape?tmdbId=123&type=movie|show&season=1&episode=1",
            "playlist": "/api/playlist?url=https://example.com/stream.m3u8",
            "segment": "/api/segment?url=https://example.com/segment.ts",
            "playlists": "/playlists/{filename}.m3u8 - Serve saved M3U8 files",
            "test": "/api/test - Test content provider configuration",
        },
        "usage": {
            "hls_example": {
                "description": (
                    "HLS streams use predictable filenames and check for "
                    "existing files before scraping"
                ),
                "workflow": [
                    "1. Call /api/scrape with tmdbId to get stream sources",
                    "2. API checks if M3U8 playlist already exists in storage",
                    "3. If exists, returns cached URL immediately (fromCache: true)",
                    "4. If not exists, fetches M3U8 playlist and uploads to storage",
                    "5. Use the playlistUrl in your HLS player",
                    "6. Falls back to local storage if Vercel Blob is not configured",
                ],
                "response_fields": {
                    "playlistUrl": "Direct URL of the stored playlist",
                    "playlistFilename": (
                        "Predictable filename: {tmdbId}_movie.m3u8 or "
                        "{tmdbId}_s{season}e{episode}.m3u8"
                    ),
                    "playlistPathname": "Blob storage pathname",
                    "playlistFetched": "Whether the playlist was fetched/found",
                    "playlistError": "Error message if playlist fetch/upload failed",
                    "playlistSize": "Size of the uploaded playlist in bytes",
                    "storageType": "vercel_blob, local, or direct_content",
                    "fromCache": "Whether the file came from existing storage",
                },
            },
        },
    }


@router.get("/")
async def info(request: Request) -> JSONResponse:
    """Health/info: endpoint list and usage notes."""
    state = cast(AppState, request.app.state)
    return JSONResponse(content=_build_info(state.playlist_store.backend))


@router.get("/healthz")
async def healthz(request: Request) -> dict[str, str]:
    """Liveness probe."""
    state = cast(AppState, request.app.state)
    return {"status": "ok", "storage": state.playlist_store.backend}


@router.get("/api/test")
async def provider_test(request: Request) -> JSONResponse:
    """Provider self-test."""
    state = cast(AppState, request.app.state)
    try:
        result = state.provider.describe()
    except ProviderError as e:
        log.error("provider_test_failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to initialize content provider",
                "details": str(e),
            },
        )
    return JSONResponse(content=result)


@router.get("/api/search")
async def search(
    query: str | None = None,
    type: str = "movie",
) -> JSONResponse:
    """Search stub; discovery is not implemented here."""
    if not query:
        return JSONResponse(
            status_code=400, content={"error": "Query parameter is required"}
        )
    return JSONResponse(
        content={
            "message": "Search functionality would require additional TMDB integration",
            "query": query,
            "type": type,
            "note": "Use /api/scrape with known TMDB IDs to get streaming sources",
        }
    )


@router.get("/api/scrape")
async def scrape(
    request: Request,
    tmdbId: str | None = None,
    type: str = "movie",
    season: str | None = None,
    episode: str | None = None,
    title: str | None = None,
    year: str | None = None,
) -> JSONResponse:
    """Scrape-and-cache.

    1. Derive the playlist key and check the store.
    2. Hit: return the stored location without calling the provider.
    3. Miss: run the provider, fetch the HLS manifest, persist it.
    """
    state = cast(AppState, request.app.state)

    if not tmdbId:
        return JSONResponse(
            status_code=400, content={"error": "tmdbId parameter is required"}
        )

    result = await state.scrape_uc.execute(
        ScrapeRequest(
            tmdb_id=tmdbId,
            media_type=type,
            season=season or None,
            episode=episode or None,
            title=title or None,
            year=year or None,
        ),
        base_url=str(request.base_url),
    )
    return JSONResponse(content=present_scrape_result(result))


@router.get("/api/playlist")
async def playlist(request: Request, url: str | None = None) -> Response:
    """Fetch an upstream manifest and return it verbatim."""
    state = cast(AppState, request.app.state)

    if not url:
        return JSONResponse(
            status_code=400,
            content={
                "error": "url parameter is required",
                "example": "/api/playlist?url=https://example.com/stream.m3u8",
            },
        )

    if not looks_like_playlist_url(url):
        return JSONResponse(
            status_code=400,
            content={"error": "URL must be a valid M3U8 playlist URL", "provided": url},
        )

    try:
        manifest = await fetch_manifest(state.http_client, url)
    except UpstreamFetchError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch playlist", "details": str(e), "url": url},
        )

    return Response(
        content=manifest.body,
        media_type=HLS_CONTENT_TYPE,
        headers={**_CORS_HEADERS, "Cache-Control": "no-cache"},
    )


@router.get("/api/segment")
async def segment(request: Request, url: str | None = None) -> Response:
    """Proxy a media segment, forwarding the client's Range header."""
    state = cast(AppState, request.app.state)

    if not url:
        return JSONResponse(
            status_code=400,
            content={
                "error": "url parameter is required",
                "example": "/api/segment?url=https://example.com/segment.ts",
            },
        )

    try:
        upstream = await open_segment_stream(
            state.http_client, url, range_header=request.headers.get("range")
        )
    except UpstreamFetchError as e:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch video segment", "details": str(e)},
        )

    if not upstream.ok:
        return JSONResponse(
            status_code=upstream.status_code,
            content={
                "error": "Failed to fetch segment",
                "status": upstream.status_code,
                "url": url,
            },
        )

    # Closing the iterator (client disconnect included) closes upstream.
    return StreamingResponse(
        upstream.chunks(),
        status_code=upstream.status_code,
        media_type=upstream.content_type,
        headers={
            **_CORS_HEADERS,
            "Cache-Control": "public, max-age=3600",
            **upstream.headers,
        },
    )


@router.get("/api/movies")
async def deprecated_movies() -> dict[str, str]:
    return {
        "message": "This endpoint is deprecated. Use /api/search instead.",
        "example": "/api/search?query=inception&type=movie",
    }
