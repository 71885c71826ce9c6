import asyncio
from typing import List

import pytest

from cloudfeed.cache import QueryCache, QueryObserver
from cloudfeed.errors import TransportError


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class CountingFetcher:
    def __init__(self, payloads: List[object], delay: float = 0.0) -> None:
        self.payloads = payloads
        self.delay = delay
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.payloads[min(self.calls, len(self.payloads)) - 1]


def test_repeated_reads_within_window_fetch_once():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    fetcher = CountingFetcher([{"items": [1, 2, 3]}])

    async def scenario():
        first = await cache.fetch("feed", fetcher)
        clock.now += 299
        second = await cache.fetch("feed", fetcher, select=lambda payload: len(payload["items"]))
        return first, second

    first, second = asyncio.run(scenario())
    assert fetcher.calls == 1
    assert first == {"items": [1, 2, 3]}
    assert second == 3


def test_concurrent_requests_share_in_flight_fetch():
    cache = QueryCache()
    fetcher = CountingFetcher(["payload"], delay=0.01)

    async def scenario():
        return await asyncio.gather(*(cache.fetch("feed", fetcher) for _ in range(5)))

    results = asyncio.run(scenario())
    assert results == ["payload"] * 5
    assert fetcher.calls == 1
    assert cache.peek("feed").fetch_count == 1


def test_stale_entry_is_refetched():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    fetcher = CountingFetcher(["old", "new"])

    async def scenario():
        await cache.fetch("feed", fetcher)
        clock.now += 300
        return await cache.fetch("feed", fetcher)

    assert asyncio.run(scenario()) == "new"
    assert fetcher.calls == 2


def test_entries_are_evicted_after_gc_time():
    clock = FakeClock()
    cache = QueryCache(clock=clock)
    fetcher = CountingFetcher(["payload"])

    asyncio.run(cache.fetch("incidents", fetcher))
    clock.now += 5 * 60 + 9 * 60
    cache.collect_garbage()
    assert "incidents" in cache
    clock.now += 60
    cache.collect_garbage()
    assert "incidents" not in cache


def test_keys_are_independent():
    cache = QueryCache()
    feed = CountingFetcher(["feed"])
    incidents = CountingFetcher(["incidents"])

    async def scenario():
        return await cache.fetch("feed", feed), await cache.fetch("incidents", incidents)

    assert asyncio.run(scenario()) == ("feed", "incidents")
    assert feed.calls == incidents.calls == 1


def test_failures_are_not_cached():
    cache = QueryCache()
    attempts = {"count": 0}

    async def flaky():
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise TransportError("http://feed.test/api/feed", "Failed to fetch: 503", status=503)
        return "recovered"

    async def scenario():
        with pytest.raises(TransportError):
            await cache.fetch("feed", flaky)
        return await cache.fetch("feed", flaky)

    assert asyncio.run(scenario()) == "recovered"
    assert attempts["count"] == 2


def test_cancelled_waiter_does_not_cancel_fetch():
    cache = QueryCache()
    fetcher = CountingFetcher(["payload"], delay=0.02)

    async def scenario():
        waiter = asyncio.ensure_future(cache.fetch("feed", fetcher))
        await asyncio.sleep(0.001)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        await asyncio.sleep(0.05)
        return await cache.fetch("feed", fetcher)

    assert asyncio.run(scenario()) == "payload"
    assert fetcher.calls == 1


def test_observer_applies_latest_result():
    cache = QueryCache()
    observer = QueryObserver(cache, "feed", CountingFetcher([[1, 2]]), select=len)

    result = asyncio.run(observer.refresh())
    assert result == 2
    assert observer.data == 2
    assert observer.error is None
    assert observer.is_loading is False


def test_observer_drops_superseded_result():
    cache = QueryCache()
    slow = CountingFetcher(["old"], delay=0.02)
    fast = CountingFetcher(["new"])
    observer = QueryObserver(cache, "old-key", slow)

    async def scenario():
        pending = asyncio.ensure_future(observer.refresh())
        await asyncio.sleep(0.001)
        observer.set_query("new-key", fast)
        await observer.refresh()
        return await pending

    assert asyncio.run(scenario()) is None
    assert observer.data == "new"
    # the superseded fetch still completed and populated its own entry
    assert cache.peek("old-key").payload == "old"


def test_closed_observer_ignores_result():
    cache = QueryCache()
    observer = QueryObserver(cache, "feed", CountingFetcher(["payload"], delay=0.01))

    async def scenario():
        pending = asyncio.ensure_future(observer.refresh())
        await asyncio.sleep(0.001)
        observer.close()
        return await pending

    assert asyncio.run(scenario()) is None
    assert observer.data is None


def test_observer_records_transport_error():
    cache = QueryCache()

    async def failing():
        raise TransportError("http://feed.test/api/incidents", "Failed to fetch incidents", status=500)

    observer = QueryObserver(cache, "incidents", failing)
    assert asyncio.run(observer.refresh()) is None
    assert isinstance(observer.error, TransportError)
    assert observer.is_loading is False


def test_invalidate_forces_refetch():
    cache = QueryCache()
    fetcher = CountingFetcher(["first", "second"])

    async def scenario():
        await cache.fetch("feed", fetcher)
        cache.invalidate("feed")
        return await cache.fetch("feed", fetcher)

    assert asyncio.run(scenario()) == "second"
    assert fetcher.calls == 2
