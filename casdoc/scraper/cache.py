"""On-disk response cache that makes the crawl idempotent and resumable.

Each URL maps to exactly one file under the cache directory, mirroring the
remote path.  Presence of the file is authoritative: there is no expiry,
versioning or integrity check.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import urlparse

import httpx

from casdoc.config import NOT_FOUND_MARKER
from casdoc.scraper.models import FetchResult

DEFAULT_LEAF = "index.htm"

_NOT_FOUND_BYTES = NOT_FOUND_MARKER.encode("utf-8")


def cache_path(cache_dir: Path, url: str) -> Path:
    """Return the cache file for *url*.

    A path without a file component (``/a/b/`` or empty) gets ``index.htm``.
    """
    segments = urlparse(url).path.split("/")
    leaf = segments.pop() or DEFAULT_LEAF
    parts = [s for s in segments if s not in ("", ".", "..")]
    if leaf in (".", ".."):
        leaf = DEFAULT_LEAF
    return cache_dir.joinpath(*parts, leaf)


def write_atomic(path: Path, data: bytes) -> None:
    """Write *data* to *path* through a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ContentCache:
    """Fetch URLs through an ``httpx.AsyncClient``, replaying cached bodies.

    Live responses are written back in background tasks so the caller never
    waits on the disk; :meth:`drain` awaits whatever is still pending.
    """

    def __init__(
        self,
        cache_dir: Path,
        client: httpx.AsyncClient,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cache_dir = cache_dir
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self._pending: set[asyncio.Task] = set()

    def cache_path(self, url: str) -> Path:
        return cache_path(self.cache_dir, url)

    async def fetch(self, url: str, use_cache: bool = True) -> FetchResult:
        path = self.cache_path(url)

        if use_cache and path.is_file():
            try:
                body = path.read_bytes()
            except OSError as exc:
                self._logger.error("[x] Could not read cache file %s: %r", path, exc)
            else:
                self._logger.info("[✓] Use cached file %s", path)
                if _NOT_FOUND_BYTES in body:
                    return FetchResult(url, url, 404, b"", from_cache=True)
                return FetchResult(url, url, 200, body, from_cache=True)

        try:
            resp = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.error("[x] Failed to fetch %s: %r", url, exc)
            return FetchResult(url, url, 0, b"", error=repr(exc))

        result = FetchResult(
            url=url,
            final_url=str(resp.url),
            status_code=resp.status_code,
            body=resp.content,
        )
        if result.ok or _NOT_FOUND_BYTES in result.body:
            self._schedule_write(path, result.body)
            self._logger.info("[✓] Fetch %s and save to %s", url, path)
        else:
            self._logger.info("[-] Fetch %s returned HTTP %s", url, result.status_code)
        return result

    def _schedule_write(self, path: Path, body: bytes) -> None:
        task = asyncio.create_task(asyncio.to_thread(write_atomic, path, body))
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_written(t, path))

    def _on_written(self, task: asyncio.Task, path: Path) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("[x] Could not write cache file %s: %r", path, exc)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled cache write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
