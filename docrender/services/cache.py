#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content cache
=============
Memoizes ``render_document()`` per file, keyed by resolved absolute path.

Every ``get()`` stats the file; an entry is reused only while its stored
``st_mtime_ns`` equals the current one.  There is no TTL.  Entries are
replaced on a miss and removed only by ``invalidate()`` / ``invalidate_all()``.

Concurrent misses for the same file and mtime share one parse: the first
caller renders, the others wait on its Future and count as hits.

One instance lives on the FastAPI app state (``app.state.content_cache``).
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from docrender.core.config import Settings, get_settings
from docrender.core.exceptions import SourceUnavailableError
from docrender.schemas import CacheStats, PrewarmResult, RenderOutput
from .assets import validate_assets
from .pipeline import render_document

log = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class CacheEntry:
    output: RenderOutput
    mtime_ns: int
    parsed_at: float      # time.time() of the parse


# -----------------------------------------------------------------------------

class ContentCache:

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[tuple[str, int], Future] = {}
        self._hits = 0
        self._misses = 0

    @staticmethod
    def key(path: PathLike) -> str:
        return str(Path(path).resolve())

    # ── Lookup ────────────────────────────────────────────────────────────

    def get(self, path: PathLike) -> RenderOutput:
        """Rendered output for *path*, re-rendering when its mtime changed.

        Raises SourceUnavailableError when the file cannot be stat()ed or read.
        """
        key = self.key(path)
        try:
            mtime_ns = os.stat(key).st_mtime_ns
        except OSError as exc:
            raise SourceUnavailableError(str(path), exc.strerror or str(exc)) from exc

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.mtime_ns == mtime_ns:
                self._hits += 1
                log.debug("Cache hit for %s", key)
                return entry.output

            flight = self._inflight.get((key, mtime_ns))
            if flight is not None:
                self._hits += 1
                owner = False
            else:
                flight = Future()
                self._inflight[(key, mtime_ns)] = flight
                self._misses += 1
                owner = True

        if not owner:
            log.debug("Waiting on in-flight render of %s", key)
            return flight.result()

        try:
            output = self._load(key)
        except BaseException as exc:
            with self._lock:
                self._inflight.pop((key, mtime_ns), None)
            flight.set_exception(exc)
            raise

        with self._lock:
            self._entries[key] = CacheEntry(output=output, mtime_ns=mtime_ns, parsed_at=time.time())
            self._inflight.pop((key, mtime_ns), None)
        flight.set_result(output)
        return output

    def _load(self, key: str) -> RenderOutput:
        start = time.perf_counter()
        try:
            with open(key, "rb") as fh:
                raw = fh.read()
        except OSError as exc:
            raise SourceUnavailableError(key, exc.strerror or str(exc)) from exc
        text = raw.decode("utf-8", errors="replace")

        output = render_document(text, key, self.settings)
        try:
            validate_assets(text, Path(key), self.settings.content_dir_resolved)
        except Exception:
            log.warning("Asset check failed for %s", key, exc_info=True)

        duration_ms = (time.perf_counter() - start) * 1000
        log.info("Content parsed (cache miss): %s in %.1f ms [%s]", key, duration_ms, output.status)
        return output

    # ── Invalidation ──────────────────────────────────────────────────────

    def invalidate(self, path: PathLike) -> bool:
        """Drop the entry for *path*.  True when one was present."""
        key = self.key(path)
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            log.info("Cache entry invalidated: %s", key)
        return removed

    def invalidate_all(self) -> int:
        """Drop every entry and reset the hit / miss counters."""
        with self._lock:
            cleared = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        log.info("Content cache invalidated (%d entries cleared)", cleared)
        return cleared

    # ── Introspection ─────────────────────────────────────────────────────

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                approx_bytes=sum(e.output.approx_bytes() for e in self._entries.values()),
            )

    def entry(self, path: PathLike) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(self.key(path))

    # ── Startup ───────────────────────────────────────────────────────────

    def prewarm(self, paths: Iterable[PathLike]) -> PrewarmResult:
        """Render *paths* one after another.  Failures are logged and counted."""
        result = PrewarmResult()
        for path in paths:
            try:
                self.get(path)
            except Exception as exc:
                result.errors += 1
                log.warning("Failed to pre-warm cache entry %s: %s", path, exc)
            else:
                result.cached += 1
        log.info("Cache pre-warm finished: %d cached, %d errors", result.cached, result.errors)
        return result


# -----------------------------------------------------------------------------
