"""Cloudfeed package exposing the feed enrichment utilities."""

from .architecture import canonicalize_link, normalize, normalize_updates
from .cache import QueryCache, QueryObserver
from .config import Settings, load_settings, require_api_key
from .eos import EndOfSupportSynthesizer, parse_response
from .errors import CloudFeedError, ConfigurationError, ParseError, TransportError
from .fetcher import FeedClient
from .incidents import IncidentsView
from .models import Feed, FeedItem
from .products import extract_gcp_products
from .queries import FeedQueries
from .security import classify, classify_bulletins, classify_severity

__all__ = [
    "Feed",
    "FeedItem",
    "classify",
    "classify_bulletins",
    "classify_severity",
    "canonicalize_link",
    "normalize",
    "normalize_updates",
    "extract_gcp_products",
    "IncidentsView",
    "EndOfSupportSynthesizer",
    "parse_response",
    "QueryCache",
    "QueryObserver",
    "FeedQueries",
    "FeedClient",
    "Settings",
    "load_settings",
    "require_api_key",
    "CloudFeedError",
    "TransportError",
    "ParseError",
    "ConfigurationError",
]
