"""Presentation-facing view over the incidents collection."""
from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable, Iterable, List, Optional

from .models import FeedItem, parse_iso, sort_by_date

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_SERVICE = "Google Cloud"
COPIED_MESSAGE = "Update copied to clipboard"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _log_clipboard(text: str) -> None:
    logger.info("Clipboard: %s", text)


def _log_notification(message: str) -> None:
    logger.info(message)


def format_duration(minutes: int) -> str:
    minutes = max(0, minutes)
    hours, remaining = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {remaining}m"
    return f"{minutes}m"


class IncidentsView:
    """Active/history partitions plus the helpers an incidents page needs.

    Partitions are derived from ``items`` on every access, so replacing the
    collection through :meth:`update` or crossing into a new year never
    leaves a stale partition behind. The expanded incident id is the only
    mutable selection state.
    """

    def __init__(
        self,
        items: Iterable[FeedItem],
        clock: Optional[Clock] = None,
        copy_to_clipboard: Optional[Callable[[str], None]] = None,
        notify: Optional[Callable[[str], None]] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._items: List[FeedItem] = list(items)
        self._clock = clock or _utcnow
        self._copy = copy_to_clipboard or _log_clipboard
        self._notify = notify or _log_notification
        self._tz = tz
        self._expanded_incident_id: Optional[str] = None

    @property
    def items(self) -> List[FeedItem]:
        return list(self._items)

    def update(self, items: Iterable[FeedItem]) -> None:
        self._items = list(items)

    @property
    def current_year(self) -> int:
        return self._clock().year

    @property
    def active_incidents(self) -> List[FeedItem]:
        return sort_by_date(item for item in self._items if item.is_active)

    @property
    def history_incidents(self) -> List[FeedItem]:
        year = self.current_year
        wanted = {year, year - 1}

        def in_window(item: FeedItem) -> bool:
            if item.is_active:
                return False
            started = parse_iso(item.iso_date)
            return started is not None and started.year in wanted

        return sort_by_date(item for item in self._items if in_window(item))

    def get_duration(self, start: str, end: Optional[str] = None) -> str:
        """Render the span between ``start`` and ``end`` (default now)."""

        started = parse_iso(start)
        if started is None:
            raise ValueError(f"invalid start timestamp {start!r}")
        if end:
            finished = parse_iso(end)
            if finished is None:
                raise ValueError(f"invalid end timestamp {end!r}")
        else:
            finished = self._clock()
        elapsed_minutes = int((finished - started).total_seconds() // 60)
        return format_duration(elapsed_minutes)

    def _local_time(self, timestamp: Optional[str]) -> str:
        parsed = parse_iso(timestamp)
        if parsed is None:
            return ""
        return parsed.astimezone(self._tz).strftime("%X")

    def update_template(self, item: FeedItem) -> str:
        return (
            "Status Update: We are tracking an active incident with "
            f"{item.service_name or DEFAULT_SERVICE}. "
            f"Severity: {item.severity or 'Unknown'}. "
            f"Impact began at {self._local_time(item.begin)}. "
            "Google Engineering is investigating."
        )

    def copy_update_template(self, item: FeedItem) -> str:
        template = self.update_template(item)
        self._copy(template)
        self._notify(COPIED_MESSAGE)
        return template

    @property
    def expanded_incident_id(self) -> Optional[str]:
        return self._expanded_incident_id

    def toggle_expand(self, incident_id: str) -> Optional[str]:
        if self._expanded_incident_id == incident_id:
            self._expanded_incident_id = None
        else:
            self._expanded_incident_id = incident_id
        return self._expanded_incident_id


__all__ = ["IncidentsView", "format_duration"]
