"""Background retention sweep: deletes cached playlists past retention."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog

from hlsgate.domain.entities.playlist import CacheEntry
from hlsgate.domain.exceptions import (
    StorageUnavailableError,
    SweepEntryDeleteError,
)
from hlsgate.infrastructure.persistence.playlist_cache import PlaylistCache

log = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one sweep cycle."""

    scanned: int = 0
    deleted: int = 0
    failed: int = 0
    skipped: bool = False


class RetentionSweeper:
    """Deletes cache entries whose ``created_at`` is older than the window.

    Call :meth:`start` during app startup and :meth:`stop` on shutdown.
    The loop sleeps first and sweeps after each full interval. A tick that
    fires while a sweep is still running is skipped.
    """

    def __init__(
        self,
        *,
        cache: PlaylistCache,
        interval: timedelta,
        retention: timedelta,
        page_size: int = 1000,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._interval = interval
        self._retention = retention
        self._page_size = page_size
        self._clock = clock
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self.run_forever(), name="retention-sweep")
        log.info(
            "retention_sweeper_started",
            interval_hours=self._interval.total_seconds() / 3600,
            retention_hours=self._retention.total_seconds() / 3600,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        if self._sweep_task is not None:
            with suppress(asyncio.CancelledError):
                await self._sweep_task
        self._task = None
        self._sweep_task = None
        log.info("retention_sweeper_stopped")

    async def run_forever(self) -> None:
        """Sleep, sweep, repeat. Only cancellation ends the loop.

        Ticks are fixed-period: a sweep runs as its own task so a slow
        sweep does not shift the schedule.
        """
        try:
            while True:
                await asyncio.sleep(self._interval.total_seconds())
                if self._sweep_task is not None and not self._sweep_task.done():
                    log.warning("retention_sweep_tick_skipped", reason="still_running")
                    continue
                self._sweep_task = asyncio.create_task(self._sweep_logged())
        except asyncio.CancelledError:
            if self._sweep_task is not None and not self._sweep_task.done():
                self._sweep_task.cancel()
            log.info("retention_sweeper_cancelled")
            raise

    async def _sweep_logged(self) -> None:
        try:
            await self.sweep_once()
        except Exception:
            log.error("retention_sweep_error", exc_info=True)

    async def sweep_once(self) -> SweepReport:
        """Run one sweep now. Returns a report; never raises for store errors."""
        if self._lock.locked():
            log.warning("retention_sweep_skipped", reason="still_running")
            return SweepReport(skipped=True)

        async with self._lock:
            cutoff = self._clock() - self._retention
            scanned = 0
            expired: list[CacheEntry] = []
            try:
                async for entry in self._cache.entries(page_size=self._page_size):
                    scanned += 1
                    if entry.created_at < cutoff:
                        expired.append(entry)
            except StorageUnavailableError as e:
                # Entries from pages already listed are still swept.
                log.error(
                    "retention_sweep_list_failed",
                    error=str(e),
                    scanned=scanned,
                    expired=len(expired),
                )

            if expired:
                log.info(
                    "retention_sweep_deleting",
                    count=len(expired),
                    retention_hours=self._retention.total_seconds() / 3600,
                )

            deleted = failed = 0
            for entry in expired:
                try:
                    await self._delete(entry)
                except SweepEntryDeleteError as e:
                    failed += 1
                    log.warning(
                        "retention_sweep_delete_failed",
                        location=e.location,
                        reason=e.reason,
                    )
                    continue
                deleted += 1
                log.info("retention_sweep_deleted", pathname=entry.pathname)

            log.info(
                "retention_sweep_done",
                scanned=scanned,
                deleted=deleted,
                failed=failed,
            )
            return SweepReport(scanned=scanned, deleted=deleted, failed=failed)

    async def _delete(self, entry: CacheEntry) -> None:
        try:
            await self._cache.delete(entry)
        except Exception as e:
            raise SweepEntryDeleteError(entry.location, str(e)) from e
