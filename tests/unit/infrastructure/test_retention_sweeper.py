"""Tests for RetentionSweeper (periodic expiry of cached playlists)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from hlsgate.domain.entities import CacheEntry
from hlsgate.domain.exceptions import StorageUnavailableError
from hlsgate.domain.ports import ListPage
from hlsgate.infrastructure.persistence.playlist_cache import PlaylistCache
from hlsgate.infrastructure.retention.sweeper import RetentionSweeper

_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
_RETENTION = timedelta(hours=24)


def _make_entry(name: str, *, created_at: datetime) -> CacheEntry:
    return CacheEntry(
        pathname=f"playlists/{name}",
        location=f"https://store.public.blob.vercel-storage.com/playlists/{name}",
        size_bytes=128,
        created_at=created_at,
    )


def _make_sweeper(
    store: AsyncMock,
    *,
    interval: timedelta = timedelta(days=15),
) -> RetentionSweeper:
    return RetentionSweeper(
        cache=PlaylistCache(store),
        interval=interval,
        retention=_RETENTION,
        clock=lambda: _NOW,
    )


class TestSweepOnce:
    async def test_deletes_only_expired_entries(self, mock_store: AsyncMock) -> None:
        old = _make_entry("old.m3u8", created_at=_NOW - 2 * _RETENTION)
        fresh = _make_entry("fresh.m3u8", created_at=_NOW - _RETENTION / 2)
        mock_store.list = AsyncMock(return_value=ListPage(entries=[old, fresh]))

        report = await _make_sweeper(mock_store).sweep_once()

        mock_store.delete.assert_awaited_once_with([old.location])
        assert report.scanned == 2
        assert report.deleted == 1
        assert report.failed == 0

    async def test_empty_store(self, mock_store: AsyncMock) -> None:
        report = await _make_sweeper(mock_store).sweep_once()
        assert report.scanned == 0
        mock_store.delete.assert_not_awaited()

    async def test_one_failure_does_not_stop_others(
        self, mock_store: AsyncMock
    ) -> None:
        a = _make_entry("a.m3u8", created_at=_NOW - 2 * _RETENTION)
        b = _make_entry("b.m3u8", created_at=_NOW - 3 * _RETENTION)
        mock_store.list = AsyncMock(return_value=ListPage(entries=[a, b]))

        async def _delete(locations: list[str]) -> None:
            if locations == [a.location]:
                raise StorageUnavailableError("forbidden")

        mock_store.delete = AsyncMock(side_effect=_delete)

        report = await _make_sweeper(mock_store).sweep_once()

        assert mock_store.delete.await_count == 2
        assert report.deleted == 1
        assert report.failed == 1

    async def test_failed_later_page_still_deletes_collected_entries(
        self, mock_store: AsyncMock
    ) -> None:
        old = _make_entry("old.m3u8", created_at=_NOW - 2 * _RETENTION)
        mock_store.list = AsyncMock(
            side_effect=[
                ListPage(entries=[old], cursor="c1", has_more=True),
                StorageUnavailableError("page 2 down"),
            ]
        )

        report = await _make_sweeper(mock_store).sweep_once()

        mock_store.delete.assert_awaited_once_with([old.location])
        assert report.scanned == 1
        assert report.deleted == 1
        assert report.failed == 0

    async def test_list_failure_is_reported_not_raised(
        self, mock_store: AsyncMock
    ) -> None:
        mock_store.list = AsyncMock(side_effect=StorageUnavailableError("down"))

        report = await _make_sweeper(mock_store).sweep_once()

        assert report.deleted == 0
        mock_store.delete.assert_not_awaited()

    async def test_walks_every_page(self, mock_store: AsyncMock) -> None:
        mock_store.list = AsyncMock(
            side_effect=[
                ListPage(
                    entries=[_make_entry("1.m3u8", created_at=_NOW - 2 * _RETENTION)],
                    cursor="c1",
                    has_more=True,
                ),
                ListPage(
                    entries=[_make_entry("2.m3u8", created_at=_NOW - 2 * _RETENTION)],
                ),
            ]
        )

        report = await _make_sweeper(mock_store).sweep_once()

        assert report.scanned == 2
        assert report.deleted == 2

    async def test_skipped_while_previous_sweep_runs(
        self, mock_store: AsyncMock
    ) -> None:
        sweeper = _make_sweeper(mock_store)

        async with sweeper._lock:
            report = await sweeper.sweep_once()

        assert report.skipped is True
        mock_store.list.assert_not_awaited()


class TestLifecycle:
    async def test_start_and_stop(self, mock_store: AsyncMock) -> None:
        sweeper = _make_sweeper(mock_store)

        sweeper.start()
        assert sweeper.is_running is True

        await sweeper.stop()
        assert sweeper.is_running is False

    async def test_no_sweep_before_first_interval(self, mock_store: AsyncMock) -> None:
        sweeper = _make_sweeper(mock_store)
        sweeper.start()
        await asyncio.sleep(0.01)
        await sweeper.stop()
        mock_store.list.assert_not_awaited()

    async def test_sweeps_after_each_interval(self, mock_store: AsyncMock) -> None:
        old = _make_entry("old.m3u8", created_at=_NOW - 2 * _RETENTION)
        mock_store.list = AsyncMock(return_value=ListPage(entries=[old]))
        sweeper = _make_sweeper(mock_store, interval=timedelta(milliseconds=10))

        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()

        assert mock_store.delete.await_count >= 1

    async def test_stop_without_start_is_noop(self, mock_store: AsyncMock) -> None:
        await _make_sweeper(mock_store).stop()
