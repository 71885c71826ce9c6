"""Severity classification for security bulletins."""
from __future__ import annotations

import logging
import re
from typing import Iterable, List

from .models import SECURITY_BULLETINS, FeedItem, dedupe

logger = logging.getLogger(__name__)

_EXPLICIT_SEVERITY = re.compile(r"severity:\s*(critical|high|medium|low)", re.IGNORECASE)

# Checked in priority order, first hit wins.
_KEYWORD_SEVERITIES = [
    ("Critical", re.compile(r"\bcritical\b")),
    ("High", re.compile(r"\bhigh\b")),
    ("Medium", re.compile(r"\bmedium\b")),
    ("Low", re.compile(r"\blow\b")),
]


def _search_text(item: FeedItem) -> str:
    body = item.content or item.content_snippet or ""
    return f"{item.title} {body}".lower()


def classify_severity(text: str) -> str:
    """Return the canonical severity level mentioned in ``text``.

    An explicit ``Severity: <level>`` phrase always wins over bare keywords.
    """

    lowered = text.lower()
    match = _EXPLICIT_SEVERITY.search(lowered)
    if match:
        return match.group(1).capitalize()
    for level, pattern in _KEYWORD_SEVERITIES:
        if pattern.search(lowered):
            return level
    return "Unknown"


def classify(item: FeedItem) -> FeedItem:
    """Attach severity and bulletin categories to a security bulletin."""

    if item.source != SECURITY_BULLETINS:
        return item
    severity = classify_severity(_search_text(item))
    categories = ["Security", "Bulletin"]
    if severity != "Unknown":
        categories.append(severity)
    categories.extend(item.categories)
    return item.evolve(severity=severity, categories=dedupe(categories))


def classify_bulletins(items: Iterable[FeedItem]) -> List[FeedItem]:
    classified = [classify(item) for item in items if item.source == SECURITY_BULLETINS]
    logger.debug("Classified %d security bulletins", len(classified))
    return classified


__all__ = ["classify", "classify_bulletins", "classify_severity"]
