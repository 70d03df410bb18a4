"""Local directory adapter - playlist store for development."""

from __future__ import annotations

import asyncio
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

import structlog

from hlsgate.domain.entities.playlist import CacheEntry
from hlsgate.domain.exceptions import (
    InvalidRequestError,
    PersistFailureError,
    StorageUnavailableError,
)
from hlsgate.domain.ports.playlist_store import ListPage

log = structlog.get_logger(__name__)


class LocalPlaylistStore:
    """Stores playlists as files in one flat directory.

    - File I/O runs in ``asyncio.to_thread`` (no blocking of the event loop).
    - ``created_at`` is the file modification time.
    - ``put`` is create-if-absent: the file is written to a temp name and
      hard-linked into place, so a concurrent second writer sees the first
      copy instead of replacing it.
    - Locations are URL paths (``/playlists/<filename>``) served by the app.

    Args:
        directory: Directory holding the files (created on ``__aenter__``).
        namespace: Pathname prefix, e.g. ``playlists/``.
        url_prefix: URL path under which the app serves the directory.
    """

    backend = "local"

    def __init__(
        self,
        directory: str | Path = "./playlists",
        *,
        namespace: str = "playlists/",
        url_prefix: str = "/playlists",
    ) -> None:
        self.directory = Path(directory)
        self.namespace = namespace
        self.url_prefix = url_prefix.rstrip("/")

    # --- Context Manager ---
    async def __aenter__(self) -> LocalPlaylistStore:
        await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
        log.info("local_store_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        return None

    # --- helpers ---
    def _filename(self, pathname: str) -> str:
        if not pathname.startswith(self.namespace):
            raise InvalidRequestError(
                f"pathname {pathname!r} is outside namespace {self.namespace!r}"
            )
        return self.safe_filename(pathname[len(self.namespace) :])

    @staticmethod
    def safe_filename(name: str) -> str:
        """Reject names that could escape the directory."""
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise InvalidRequestError(f"invalid playlist filename: {name!r}")
        return name

    def _entry(self, path: Path, stat: os.stat_result) -> CacheEntry:
        return CacheEntry(
            pathname=f"{self.namespace}{path.name}",
            location=f"{self.url_prefix}/{path.name}",
            size_bytes=stat.st_size,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def _list_sync(self, name_prefix: str, limit: int, cursor: str | None) -> ListPage:
        if not self.directory.exists():
            return ListPage()
        names = sorted(
            p.name
            for p in self.directory.iterdir()
            if p.is_file()
            and p.name.startswith(name_prefix)
            and not p.name.startswith(".")
        )
        if cursor:
            names = [n for n in names if n > cursor]

        entries: list[CacheEntry] = []
        for name in names[:limit]:
            path = self.directory / name
            try:
                entries.append(self._entry(path, path.stat()))
            except FileNotFoundError:
                # Deleted between listing and stat.
                continue

        has_more = len(names) > limit
        return ListPage(
            entries=entries,
            cursor=names[limit - 1] if has_more else None,
            has_more=has_more,
        )

    def _put_sync(self, filename: str, content: bytes) -> CacheEntry:
        self.directory.mkdir(parents=True, exist_ok=True)
        final = self.directory / filename
        tmp = self.directory / f".{filename}.{uuid.uuid4().hex}.tmp"
        try:
            tmp.write_bytes(content)
            try:
                os.link(tmp, final)
            except FileExistsError:
                log.info("local_store_already_present", filename=filename)
        finally:
            tmp.unlink(missing_ok=True)
        return self._entry(final, final.stat())

    def _delete_sync(self, locations: list[str]) -> None:
        for location in locations:
            name = self.safe_filename(location.rsplit("/", 1)[-1])
            (self.directory / name).unlink(missing_ok=True)

    # --- PlaylistStorePort implementation ---
    async def list(
        self, prefix: str, *, limit: int = 1000, cursor: str | None = None
    ) -> ListPage:
        if not prefix.startswith(self.namespace):
            return ListPage()
        name_prefix = prefix[len(self.namespace) :]
        try:
            return await asyncio.to_thread(self._list_sync, name_prefix, limit, cursor)
        except OSError as e:
            log.warning("local_store_list_failed", prefix=prefix, error=str(e))
            raise StorageUnavailableError(f"Cannot list {self.directory}: {e}") from e

    async def put(
        self, pathname: str, content: bytes, *, content_type: str
    ) -> CacheEntry:
        filename = self._filename(pathname)
        try:
            entry = await asyncio.to_thread(self._put_sync, filename, content)
        except OSError as e:
            log.error("local_store_write_failed", filename=filename, error=str(e))
            raise PersistFailureError("Failed to save playlist file") from e
        log.info("local_store_written", filename=filename, size_bytes=entry.size_bytes)
        return entry

    async def delete(self, locations: list[str]) -> None:
        try:
            await asyncio.to_thread(self._delete_sync, locations)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot delete from {self.directory}: {e}") from e

    async def read(self, filename: str) -> bytes | None:
        """Return the bytes of a stored playlist, or None when absent."""
        path = self.directory / self.safe_filename(filename)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
