"""Keyed query cache shared by every derived feed view.

One entry per key holds the raw payload, when it was fetched and the fetch
currently in flight. Views pass a ``select`` function that is applied on
read, so several views of ``/api/feed`` share a single stored payload and
a single network call per freshness window.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from .errors import CloudFeedError

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
Selector = Callable[[Any], Any]

STALE_TIME = 5 * 60
GC_TIME = 10 * 60


@dataclass
class CacheEntry:
    payload: Any = None
    fetched_at: Optional[float] = None
    in_flight: Optional["asyncio.Future[Any]"] = None
    fetch_count: int = 0


def _consume_result(future: "asyncio.Future[Any]") -> None:
    # Every waiter may have gone away; keep asyncio from reporting the error.
    if not future.cancelled():
        future.exception()


class QueryCache:
    def __init__(
        self,
        stale_time: float = STALE_TIME,
        gc_time: float = GC_TIME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_time = stale_time
        self.gc_time = gc_time
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def peek(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def is_fresh(self, entry: CacheEntry) -> bool:
        if entry.fetched_at is None:
            return False
        return self._clock() - entry.fetched_at < self.stale_time

    def collect_garbage(self) -> None:
        """Evict idle entries that have been stale for longer than ``gc_time``."""

        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.in_flight is None
            and (entry.fetched_at is None or now - entry.fetched_at >= self.stale_time + self.gc_time)
        ]
        for key in expired:
            logger.debug("Evicting cache entry %s", key)
            del self._entries[key]

    async def _run(self, key: str, entry: CacheEntry, fetcher: Fetcher) -> Any:
        entry.fetch_count += 1
        try:
            payload = await fetcher()
            entry.payload = payload
            entry.fetched_at = self._clock()
            return payload
        except Exception as exc:
            logger.warning("Fetch for %s failed: %s", key, exc)
            raise
        finally:
            entry.in_flight = None

    async def fetch(self, key: str, fetcher: Fetcher, select: Optional[Selector] = None) -> Any:
        """Return the payload for ``key``, fetching at most once per window.

        Concurrent callers join the same in-flight fetch. A caller that is
        cancelled while waiting does not cancel that fetch; its result still
        lands in the cache for the next reader.
        """

        self.collect_garbage()
        entry = self._entries.setdefault(key, CacheEntry())
        if self.is_fresh(entry):
            payload = entry.payload
        else:
            if entry.in_flight is None:
                logger.debug("Fetching %s", key)
                task = asyncio.ensure_future(self._run(key, entry, fetcher))
                task.add_done_callback(_consume_result)
                entry.in_flight = task
            payload = await asyncio.shield(entry.in_flight)
        return select(payload) if select is not None else payload


class QueryObserver:
    """Consumer-side handle onto one cached query.

    Only the most recent :meth:`refresh` may apply its result; anything
    superseded by a newer refresh, a key change or :meth:`close` is dropped.
    """

    def __init__(
        self,
        cache: QueryCache,
        key: str,
        fetcher: Fetcher,
        select: Optional[Selector] = None,
    ) -> None:
        self._cache = cache
        self.key = key
        self._fetcher = fetcher
        self._select = select
        self._generation = 0
        self._closed = False
        self.data: Any = None
        self.error: Optional[CloudFeedError] = None
        self.is_loading = False

    def set_query(self, key: str, fetcher: Fetcher, select: Optional[Selector] = None) -> None:
        self.key = key
        self._fetcher = fetcher
        self._select = select
        self._generation += 1

    def close(self) -> None:
        self._closed = True
        self._generation += 1

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def refresh(self) -> Any:
        self._generation += 1
        generation = self._generation
        self.is_loading = True
        try:
            result = await self._cache.fetch(self.key, self._fetcher, self._select)
        except CloudFeedError as exc:
            if self._is_current(generation):
                self.error = exc
                self.is_loading = False
            return None
        if not self._is_current(generation):
            logger.debug("Dropping superseded result for %s", self.key)
            return None
        self.data = result
        self.error = None
        self.is_loading = False
        return result


__all__ = ["CacheEntry", "QueryCache", "QueryObserver", "STALE_TIME", "GC_TIME"]
