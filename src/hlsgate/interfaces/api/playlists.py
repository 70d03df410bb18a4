"""Serves playlists saved by the local store (development backend)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from hlsgate.domain.entities.playlist import HLS_CONTENT_TYPE
from hlsgate.domain.exceptions import InvalidRequestError
from hlsgate.infrastructure.storage.local_adapter import LocalPlaylistStore
from hlsgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.get("/{filename}")
async def serve_playlist(request: Request, filename: str) -> Response:
    """Return a locally stored playlist; 404 on the blob backend."""
    state = cast(AppState, request.app.state)
    store = state.playlist_store
    if not isinstance(store, LocalPlaylistStore):
        raise HTTPException(status_code=404)

    try:
        content = await store.read(filename)
    except InvalidRequestError:
        raise HTTPException(status_code=404) from None

    if content is None:
        log.debug("local_playlist_not_found", filename=filename)
        raise HTTPException(status_code=404)

    return Response(
        content=content,
        media_type=HLS_CONTENT_TYPE,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Cache-Control": "no-cache",
        },
    )
