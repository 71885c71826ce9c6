"""Exception types raised by the feed enrichment package."""
from __future__ import annotations

from typing import Optional


class CloudFeedError(Exception):
    """Base class for every error raised by ``cloudfeed``."""


class TransportError(CloudFeedError):
    """An upstream endpoint failed or answered with a non-success status."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status = status


class ParseError(CloudFeedError):
    """A generative search response could not be turned into items."""


class ConfigurationError(CloudFeedError):
    """A required configuration value is missing."""


__all__ = ["CloudFeedError", "TransportError", "ParseError", "ConfigurationError"]
