import asyncio
from datetime import datetime, timezone
from typing import List

from cloudfeed.cache import QueryCache
from cloudfeed.models import Feed, FeedItem
from cloudfeed.queries import END_OF_SUPPORT_KEY, FEED_KEY, INCIDENTS_KEY, FeedQueries


def make_item(item_id: str, source: str, **kwargs) -> FeedItem:
    defaults = dict(
        id=item_id,
        title=f"Item {item_id}",
        link="https://cloud.google.com/x",
        iso_date="2026-05-01T00:00:00Z",
        source=source,
    )
    defaults.update(kwargs)
    return FeedItem(**defaults)


class FakeClient:
    def __init__(self) -> None:
        self.feed_calls = 0
        self.incident_calls = 0

    async def fetch_feed(self) -> Feed:
        self.feed_calls += 1
        await asyncio.sleep(0)
        return Feed(
            items=[
                make_item("sec", "Security Bulletins", title="Severity: Critical RCE"),
                make_item(
                    "arch",
                    "Architecture Center",
                    content='<h3>Update</h3><a href="/architecture/run">Cloud Run guide</a>: refreshed',
                ),
                make_item("other", "Blog"),
            ]
        )

    async def fetch_incidents(self) -> List[FeedItem]:
        self.incident_calls += 1
        return [make_item("inc", "Incidents", is_active=True)]


class FakeSynthesizer:
    def __init__(self) -> None:
        self.calls = 0

    async def synthesize(self) -> List[FeedItem]:
        self.calls += 1
        return [make_item("eos-0-1", "End of Support", is_active=True)]


def test_derived_views_share_one_feed_fetch():
    client = FakeClient()
    queries = FeedQueries(client)

    async def scenario():
        return await asyncio.gather(
            queries.feed(),
            queries.security_bulletins(),
            queries.architecture_updates(),
        )

    feed, security, architecture = asyncio.run(scenario())
    assert client.feed_calls == 1
    assert len(feed.items) == 3
    assert [item.severity for item in security] == ["Critical"]
    assert architecture[0].title == "Cloud Run guide"
    assert architecture[0].link == "https://cloud.google.com/architecture/run"
    assert "Cloud Run" in architecture[0].categories
    # the cached payload is stored once, untouched by selections
    assert queries.cache.peek(FEED_KEY).payload.items[0].severity is None


def test_incidents_and_eos_use_their_own_entries():
    client = FakeClient()
    synthesizer = FakeSynthesizer()
    queries = FeedQueries(client, cache=QueryCache(), synthesizer=synthesizer)

    async def scenario():
        await queries.incidents()
        await queries.incidents()
        await queries.end_of_support()
        return await queries.end_of_support()

    eos = asyncio.run(scenario())
    assert client.incident_calls == 1
    assert client.feed_calls == 0
    assert synthesizer.calls == 1
    assert eos[0].source == "End of Support"
    assert INCIDENTS_KEY in queries.cache
    assert END_OF_SUPPORT_KEY in queries.cache


def test_end_of_support_without_synthesizer_is_empty():
    assert asyncio.run(FeedQueries(FakeClient()).end_of_support()) == []


def test_incidents_view_wraps_cached_incidents():
    queries = FeedQueries(FakeClient())
    now = datetime(2026, 10, 18, tzinfo=timezone.utc)
    view = asyncio.run(queries.incidents_view(clock=lambda: now))
    assert [item.id for item in view.active_incidents] == ["inc"]


def test_security_observer_reads_shared_entry():
    client = FakeClient()
    queries = FeedQueries(client)

    async def scenario():
        await queries.feed()
        observer = queries.observe_security()
        await observer.refresh()
        return observer

    observer = asyncio.run(scenario())
    assert client.feed_calls == 1
    assert [item.id for item in observer.data] == ["sec"]
