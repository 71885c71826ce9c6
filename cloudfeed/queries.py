"""High-level access to every derived feed view through one shared cache."""
from __future__ import annotations

from typing import Any, List, Optional

from .architecture import normalize_updates
from .cache import QueryCache, QueryObserver
from .eos import EndOfSupportSynthesizer
from .fetcher import FeedClient
from .incidents import IncidentsView
from .models import Feed, FeedItem
from .security import classify_bulletins

FEED_KEY = "feed"
INCIDENTS_KEY = "incidents"
END_OF_SUPPORT_KEY = "end-of-support"


def select_security(feed: Feed) -> List[FeedItem]:
    return classify_bulletins(feed.items)


def select_architecture(feed: Feed) -> List[FeedItem]:
    return normalize_updates(feed.items)


class FeedQueries:
    """Query functions for the feed, security, architecture, incidents and EOS views.

    The feed, security and architecture views share the ``feed`` entry and
    therefore one upstream request per freshness window. Incidents and
    end-of-support items each own an independent entry.
    """

    def __init__(
        self,
        client: FeedClient,
        cache: Optional[QueryCache] = None,
        synthesizer: Optional[EndOfSupportSynthesizer] = None,
    ) -> None:
        self.client = client
        self.cache = cache or QueryCache()
        self.synthesizer = synthesizer

    async def _synthesize(self) -> List[FeedItem]:
        if self.synthesizer is None:
            return []
        return await self.synthesizer.synthesize()

    async def feed(self) -> Feed:
        return await self.cache.fetch(FEED_KEY, self.client.fetch_feed)

    async def security_bulletins(self) -> List[FeedItem]:
        return await self.cache.fetch(FEED_KEY, self.client.fetch_feed, select=select_security)

    async def architecture_updates(self) -> List[FeedItem]:
        return await self.cache.fetch(FEED_KEY, self.client.fetch_feed, select=select_architecture)

    async def incidents(self) -> List[FeedItem]:
        return await self.cache.fetch(INCIDENTS_KEY, self.client.fetch_incidents)

    async def end_of_support(self) -> List[FeedItem]:
        return await self.cache.fetch(END_OF_SUPPORT_KEY, self._synthesize)

    async def incidents_view(self, **kwargs: Any) -> IncidentsView:
        return IncidentsView(await self.incidents(), **kwargs)

    def observe_security(self) -> QueryObserver:
        return QueryObserver(self.cache, FEED_KEY, self.client.fetch_feed, select_security)

    def observe_architecture(self) -> QueryObserver:
        return QueryObserver(self.cache, FEED_KEY, self.client.fetch_feed, select_architecture)

    def observe_incidents(self) -> QueryObserver:
        return QueryObserver(self.cache, INCIDENTS_KEY, self.client.fetch_incidents)


__all__ = [
    "END_OF_SUPPORT_KEY",
    "FEED_KEY",
    "INCIDENTS_KEY",
    "FeedQueries",
    "select_architecture",
    "select_security",
]
