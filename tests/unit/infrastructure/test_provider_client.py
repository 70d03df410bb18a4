"""Tests for HttpxContentProvider (provider API adapter)."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from hlsgate.domain.entities import MediaDescriptor
from hlsgate.domain.exceptions import ProviderError
from hlsgate.infrastructure.provider.client import (
    HttpxContentProvider,
    parse_provider_output,
)

_BASE = "https://providers.example.com"

_OUTPUT = {
    "stream": {
        "id": "primary",
        "type": "hls",
        "playlist": "https://cdn.example.com/hls/master.m3u8",
        "qualities": {"1080": {"url": "https://cdn.example.com/1080.mp4"}},
    },
    "embeds": [{"embedId": "upcloud", "url": "https://embed.example.com/e/1"}],
}


@pytest.fixture()
def provider(http_client: httpx.AsyncClient) -> HttpxContentProvider:
    return HttpxContentProvider(base_url=_BASE, http_client=http_client)


class TestParseProviderOutput:
    def test_full_output(self) -> None:
        output = parse_provider_output(_OUTPUT)
        assert output.stream is not None
        assert output.stream.type == "hls"
        assert output.stream.url == "https://cdn.example.com/hls/master.m3u8"
        assert "1080" in output.stream.qualities
        assert output.embeds[0]["embedId"] == "upcloud"

    def test_no_stream(self) -> None:
        output = parse_provider_output({"embeds": []})
        assert output.stream is None
        assert output.embeds == []

    def test_file_stream(self) -> None:
        output = parse_provider_output(
            {"stream": {"id": "f", "type": "file", "file": "https://x/v.mp4"}}
        )
        assert output.stream is not None
        assert output.stream.url == "https://x/v.mp4"
        assert output.stream.qualities == {}


class TestRunAll:
    @respx.mock
    async def test_posts_media_object(
        self, provider: HttpxContentProvider, episode: MediaDescriptor
    ) -> None:
        route = respx.post(f"{_BASE}/scrape").respond(200, json=_OUTPUT)

        output = await provider.run_all(episode)

        assert output.stream is not None
        body = json.loads(route.calls.last.request.content)
        assert body["media"]["tmdbId"] == "1399"
        assert body["media"]["season"] == {"number": 1}

    @respx.mock
    async def test_http_error(
        self, provider: HttpxContentProvider, movie: MediaDescriptor
    ) -> None:
        respx.post(f"{_BASE}/scrape").respond(502)
        with pytest.raises(ProviderError, match="HTTP 502"):
            await provider.run_all(movie)

    @respx.mock
    async def test_invalid_json(
        self, provider: HttpxContentProvider, movie: MediaDescriptor
    ) -> None:
        respx.post(f"{_BASE}/scrape").respond(200, text="not json")
        with pytest.raises(ProviderError, match="invalid JSON"):
            await provider.run_all(movie)

    @respx.mock
    async def test_network_error(
        self, provider: HttpxContentProvider, movie: MediaDescriptor
    ) -> None:
        respx.post(f"{_BASE}/scrape").mock(side_effect=httpx.ConnectError("down"))
        with pytest.raises(ProviderError, match="Failed to get streaming sources"):
            await provider.run_all(movie)

    async def test_unconfigured_provider(
        self, http_client: httpx.AsyncClient, movie: MediaDescriptor
    ) -> None:
        provider = HttpxContentProvider(base_url=None, http_client=http_client)
        with pytest.raises(ProviderError, match="not configured"):
            await provider.run_all(movie)


class TestDescribe:
    def test_configured(self, provider: HttpxContentProvider) -> None:
        info = provider.describe()
        assert info["target"] == _BASE

    def test_unconfigured_raises(self, http_client: httpx.AsyncClient) -> None:
        provider = HttpxContentProvider(base_url=None, http_client=http_client)
        with pytest.raises(ProviderError):
            provider.describe()
