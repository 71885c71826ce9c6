"""Normalisation of Architecture Center release-note items.

Release notes arrive with the useful title and link buried in embedded
markup, typically ``<h3>Feature</h3><p><a href="...">Title</a>: text</p>``.
Extraction is a handful of targeted patterns; whenever one misses, the
item's own fields are kept.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

from .models import ARCHITECTURE_CENTER, FeedItem, dedupe
from .products import extract_gcp_products

logger = logging.getLogger(__name__)

RELEASE_NOTES_URL = "https://docs.cloud.google.com/architecture/release-notes"
SITE_ORIGIN = "https://cloud.google.com"
DEFAULT_CATEGORY = "Architecture"

_HEADING = re.compile(r"<h3>(.*?)</h3>", re.IGNORECASE)
_ANCHOR = re.compile(r"""<a[^>]+href=["']([^"']+)["'][^>]*>(.*?)</a>""", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_LEADING_PUNCTUATION = re.compile(r"^[:\s-]+")


def strip_tags(markup: str) -> str:
    return _TAG.sub("", markup)


def canonicalize_link(link: Optional[str]) -> str:
    """Turn anchors, root-relative and bare paths into absolute URLs."""

    link = link or ""
    if link.startswith("#"):
        return f"{RELEASE_NOTES_URL}{link}"
    if link.startswith("/"):
        return f"{SITE_ORIGIN}{link}"
    if link.startswith("http"):
        return link
    if link:
        return f"{SITE_ORIGIN}/{link}"
    return RELEASE_NOTES_URL


def _extract_category(content: str) -> Optional[str]:
    match = _HEADING.search(content)
    if match is None:
        return None
    return match.group(1).strip() or None


def _extract_anchor(content: str) -> Optional[Tuple[str, str, Optional[str]]]:
    """Return ``(link, title, description)`` from the first anchor, if usable."""

    match = _ANCHOR.search(content)
    if match is None:
        return None
    link = match.group(1)
    title = strip_tags(match.group(2)).strip()
    if not (link and title):
        return None
    description = None
    segments = content.split("</a>")
    if len(segments) > 1 and segments[1]:
        description = strip_tags(_LEADING_PUNCTUATION.sub("", segments[1])).strip()
    return link, title, description


def normalize(item: FeedItem) -> FeedItem:
    if item.source != ARCHITECTURE_CENTER:
        return item

    title = item.title
    link = item.link or ""
    description = item.content_snippet or item.content or ""
    category = DEFAULT_CATEGORY

    if item.content:
        category = _extract_category(item.content) or category
        extracted = _extract_anchor(item.content)
        if extracted is not None:
            link, title, after_link = extracted
            if after_link is not None:
                description = after_link
        else:
            logger.debug("No usable anchor in architecture item %s", item.id)

    products = extract_gcp_products(f"{title} {description}")
    return item.evolve(
        title=title,
        link=canonicalize_link(link),
        content_snippet=description,
        categories=dedupe([category, *products, *item.categories]),
    )


def normalize_updates(items: Iterable[FeedItem]) -> List[FeedItem]:
    return [normalize(item) for item in items if item.source == ARCHITECTURE_CENTER]


__all__ = [
    "RELEASE_NOTES_URL",
    "SITE_ORIGIN",
    "canonicalize_link",
    "normalize",
    "normalize_updates",
    "strip_tags",
]
