"""Content-resolution provider client (async httpx) implementation."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from hlsgate.domain.entities.media import (
    MediaDescriptor,
    ProviderOutput,
    ProviderStream,
)
from hlsgate.domain.exceptions import ProviderError

log = structlog.get_logger(__name__)


def parse_provider_output(data: dict[str, Any]) -> ProviderOutput:
    """Convert the provider's JSON output into a ``ProviderOutput``.

    Missing stream → ``ProviderOutput(stream=None)`` (nothing found).
    """
    raw_stream = data.get("stream")
    stream: ProviderStream | None = None
    if isinstance(raw_stream, dict):
        qualities = raw_stream.get("qualities")
        stream = ProviderStream(
            id=str(raw_stream.get("id") or "unknown"),
            type=str(raw_stream.get("type") or "unknown"),
            playlist=raw_stream.get("playlist") or None,
            file=raw_stream.get("file") or None,
            qualities=qualities if isinstance(qualities, dict) else {},
        )

    embeds = [e for e in data.get("embeds") or [] if isinstance(e, dict)]
    return ProviderOutput(stream=stream, embeds=embeds)


class HttpxContentProvider:
    """Runs all provider sources through a provider API.

    Implements ``ContentProviderPort``: POSTs the media object to
    ``{base_url}/scrape`` and expects ``{"stream": {...}, "embeds": [...]}``.
    """

    def __init__(
        self,
        *,
        base_url: str | None,
        http_client: httpx.AsyncClient,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._http = http_client
        self._timeout = timeout_seconds

    def describe(self) -> dict[str, Any]:
        """Self-test information; raises when no provider is configured."""
        if self._base_url is None:
            raise ProviderError("provider.base_url is not configured")
        return {
            "message": "Content provider is configured",
            "target": self._base_url,
            "fetcher": "httpx.AsyncClient",
        }

    async def run_all(self, media: MediaDescriptor) -> ProviderOutput:
        if self._base_url is None:
            raise ProviderError(
                "Failed to get streaming sources: provider.base_url is not configured"
            )

        log.info("provider_run_start", media=media.to_provider_dict())
        try:
            resp = await self._http.post(
                f"{self._base_url}/scrape",
                json={"media": media.to_provider_dict()},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            log.warning(
                "provider_http_error",
                status=e.response.status_code,
                tmdb_id=media.tmdb_id,
            )
            raise ProviderError(
                f"Failed to get streaming sources: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            log.warning("provider_network_error", tmdb_id=media.tmdb_id, exc_info=True)
            raise ProviderError(f"Failed to get streaming sources: {e}") from e
        except ValueError as e:
            raise ProviderError("Failed to get streaming sources: invalid JSON") from e

        if not isinstance(data, dict):
            raise ProviderError("Failed to get streaming sources: unexpected payload")

        output = parse_provider_output(data)
        log.info(
            "provider_run_done",
            tmdb_id=media.tmdb_id,
            stream_type=output.stream.type if output.stream else None,
            embeds=len(output.embeds),
        )
        return output
