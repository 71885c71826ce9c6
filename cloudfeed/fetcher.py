"""Asynchronous access to the feed and incidents endpoints."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List

import aiohttp

from .errors import TransportError
from .models import Feed, FeedItem

logger = logging.getLogger(__name__)

FEED_PATH = "/api/feed"
INCIDENTS_PATH = "/api/incidents"


class FeedClient:
    """Thin JSON client for the upstream aggregation API."""

    def __init__(self, base_url: str, timeout: float = 20) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _get_json(self, path: str) -> Any:
        url = self.url_for(path)
        connector = aiohttp.TCPConnector(limit_per_host=5)
        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url, timeout=aiohttp.ClientTimeout(total=self.timeout)) as response:
                    if not 200 <= response.status < 300:
                        raise TransportError(
                            url,
                            f"Failed to fetch: {response.status} {response.reason}",
                            status=response.status,
                        )
                    return await response.json()
        except TransportError as exc:
            logger.error("Fetch error: %s", exc)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.error("Fetch error for %s: %s", url, exc)
            raise TransportError(url, str(exc) or type(exc).__name__) from exc

    async def fetch_feed(self) -> Feed:
        payload = await self._get_json(FEED_PATH)
        if not isinstance(payload, dict):
            raise TransportError(self.url_for(FEED_PATH), "expected a JSON object")
        feed = Feed.from_dict(payload)
        logger.info("Fetched %d feed items", len(feed.items))
        return feed

    async def fetch_incidents(self) -> List[FeedItem]:
        payload = await self._get_json(INCIDENTS_PATH)
        if not isinstance(payload, list):
            raise TransportError(self.url_for(INCIDENTS_PATH), "expected a JSON array")
        incidents = [FeedItem.from_dict(entry) for entry in payload if isinstance(entry, dict)]
        logger.info("Fetched %d incidents", len(incidents))
        return incidents


__all__ = ["FeedClient", "FEED_PATH", "INCIDENTS_PATH"]
