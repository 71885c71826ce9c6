"""Normalised record types shared by every feed transform."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

SECURITY_BULLETINS = "Security Bulletins"
ARCHITECTURE_CENTER = "Architecture Center"
END_OF_SUPPORT = "End of Support"

SEVERITY_LEVELS = ("Critical", "High", "Medium", "Low", "Unknown")

# Python attribute -> wire key
_WIRE_KEYS = {
    "id": "id",
    "title": "title",
    "link": "link",
    "iso_date": "isoDate",
    "content": "content",
    "content_snippet": "contentSnippet",
    "source": "source",
    "categories": "categories",
    "service_name": "serviceName",
    "severity": "severity",
    "is_active": "isActive",
    "begin": "begin",
}


def dedupe(values: Iterable[Optional[str]]) -> Tuple[str, ...]:
    """Drop empty and repeated values while keeping first-seen order."""

    seen: Dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return tuple(seen)


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Date-only values are read as midnight UTC and naive timestamps are
    assumed to be UTC. Returns ``None`` for anything unparseable.
    """

    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class FeedItem:
    """One normalised unit of content from any upstream channel."""

    id: str
    title: str
    link: str
    iso_date: str
    source: str
    content: Optional[str] = None
    content_snippet: Optional[str] = None
    categories: Tuple[str, ...] = ()
    service_name: Optional[str] = None
    severity: Optional[str] = None
    is_active: Optional[bool] = None
    begin: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", dedupe(self.categories))
        if self.severity is not None and self.severity not in SEVERITY_LEVELS:
            raise ValueError(f"unknown severity {self.severity!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeedItem":
        categories = data.get("categories") or []
        if isinstance(categories, str):
            categories = [categories]
        severity = data.get("severity")
        if severity is not None:
            severity = str(severity).capitalize()
            if severity not in SEVERITY_LEVELS:
                severity = "Unknown"
        is_active = data.get("isActive")
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title") or ""),
            link=str(data.get("link") or ""),
            iso_date=str(data.get("isoDate") or ""),
            source=str(data.get("source") or ""),
            content=data.get("content"),
            content_snippet=data.get("contentSnippet"),
            categories=tuple(str(c) for c in categories if c),
            service_name=data.get("serviceName"),
            severity=severity,
            is_active=None if is_active is None else bool(is_active),
            begin=data.get("begin"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for attr, key in _WIRE_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            payload[key] = list(value) if attr == "categories" else value
        return payload

    def evolve(self, **changes: Any) -> "FeedItem":
        """Return a copy with ``changes`` applied; the original is untouched."""

        return dataclasses.replace(self, **changes)


@dataclass
class Feed:
    """Ordered items of ``/api/feed`` plus whatever metadata came with them."""

    items: List[FeedItem] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Feed":
        raw_items = data.get("items") or []
        metadata = {key: value for key, value in data.items() if key != "items"}
        return cls(
            items=[FeedItem.from_dict(entry) for entry in raw_items if isinstance(entry, Mapping)],
            metadata=metadata,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.metadata)
        payload["items"] = [item.to_dict() for item in self.items]
        return payload

    def by_source(self, source: str) -> List[FeedItem]:
        return [item for item in self.items if item.source == source]


def sort_by_date(items: Iterable[FeedItem], descending: bool = True) -> List[FeedItem]:
    """Sort by ``iso_date``; items with unparseable dates always go last."""

    dated: List[Tuple[datetime, FeedItem]] = []
    undated: List[FeedItem] = []
    for item in items:
        parsed = parse_iso(item.iso_date)
        if parsed is None:
            undated.append(item)
        else:
            dated.append((parsed, item))
    dated.sort(key=lambda pair: pair[0], reverse=descending)
    return [item for _, item in dated] + undated


__all__ = [
    "SECURITY_BULLETINS",
    "ARCHITECTURE_CENTER",
    "END_OF_SUPPORT",
    "SEVERITY_LEVELS",
    "Feed",
    "FeedItem",
    "dedupe",
    "parse_iso",
    "sort_by_date",
]
