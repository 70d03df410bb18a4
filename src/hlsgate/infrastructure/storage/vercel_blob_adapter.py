"""Vercel Blob adapter - playlist store over the Blob REST API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from hlsgate.domain.entities.playlist import CacheEntry
from hlsgate.domain.exceptions import PersistFailureError, StorageUnavailableError
from hlsgate.domain.ports.playlist_store import ListPage

log = structlog.get_logger(__name__)

_API_VERSION = "7"


def _parse_uploaded_at(value: Any) -> datetime:
    """Parse the ``uploadedAt`` timestamp of a blob listing."""
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    # Unknown upload time: treat as brand new so the sweep leaves it alone.
    return datetime.now(timezone.utc)


def _blob_to_entry(blob: dict[str, Any]) -> CacheEntry:
    return CacheEntry(
        pathname=blob["pathname"],
        location=blob["url"],
        size_bytes=int(blob.get("size", 0)),
        created_at=_parse_uploaded_at(blob.get("uploadedAt")),
    )


class VercelBlobStore:
    """Public Vercel Blob store accessed with a read/write token.

    Uploads use fixed pathnames (no random suffix) so the playlist key
    maps to exactly one blob. Overwrites are allowed: two requests racing
    past the existence check both upload and the last one wins.

    Args:
        token: ``BLOB_READ_WRITE_TOKEN``.
        http_client: Shared httpx client (timeouts come from there).
        api_url: Blob API base URL.
    """

    backend = "vercel_blob"

    def __init__(
        self,
        *,
        token: str,
        http_client: httpx.AsyncClient,
        api_url: str = "https://blob.vercel-storage.com",
    ) -> None:
        self._token = token
        self._http = http_client
        self._api_url = api_url.rstrip("/")

    def _headers(self, **extra: str) -> dict[str, str]:
        return {
            "authorization": f"Bearer {self._token}",
            "x-api-version": _API_VERSION,
            **extra,
        }

    async def list(
        self, prefix: str, *, limit: int = 1000, cursor: str | None = None
    ) -> ListPage:
        params: dict[str, Any] = {"prefix": prefix, "limit": limit}
        if cursor:
            params["cursor"] = cursor
        try:
            resp = await self._http.get(
                self._api_url, params=params, headers=self._headers()
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("blob_list_failed", prefix=prefix, error=str(e))
            raise StorageUnavailableError(f"Blob list failed: {e}") from e

        try:
            entries = [_blob_to_entry(b) for b in data.get("blobs", [])]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            log.warning("blob_list_malformed", prefix=prefix, error=repr(e))
            raise StorageUnavailableError(f"Blob list malformed: {e!r}") from e

        return ListPage(
            entries=entries,
            cursor=data.get("cursor"),
            has_more=bool(data.get("hasMore", False)),
        )

    async def put(
        self, pathname: str, content: bytes, *, content_type: str
    ) -> CacheEntry:
        log.info("blob_upload_start", pathname=pathname, size_bytes=len(content))
        try:
            resp = await self._http.put(
                f"{self._api_url}/{quote(pathname)}",
                content=content,
                headers=self._headers(
                    **{
                        "x-content-type": content_type,
                        "x-add-random-suffix": "0",
                        "x-allow-overwrite": "1",
                    }
                ),
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error("blob_upload_failed", pathname=pathname, error=str(e))
            raise PersistFailureError(f"Failed to upload to Vercel Blob: {e}") from e

        log.info("blob_upload_done", pathname=pathname, url=data.get("url"))
        return CacheEntry(
            pathname=data.get("pathname", pathname),
            location=data["url"],
            size_bytes=len(content),
            created_at=datetime.now(timezone.utc),
        )

    async def delete(self, locations: list[str]) -> None:
        if not locations:
            return
        try:
            resp = await self._http.post(
                f"{self._api_url}/delete",
                json={"urls": locations},
                headers=self._headers(),
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageUnavailableError(f"Blob delete failed: {e}") from e
        log.debug("blob_deleted", count=len(locations))

    async def aclose(self) -> None:
        # The http client is shared and closed by the lifespan.
        return None
