"""End-of-support items synthesised from a Gemini search-grounded answer.

The model is asked for a bare JSON array, but structured output cannot be
combined with the search tool, so the answer is free text and every field
is checked before it becomes a :class:`FeedItem`. Results are advisory.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from google import genai
from google.genai import types

from .errors import ConfigurationError, ParseError
from .models import END_OF_SUPPORT, FeedItem, dedupe, parse_iso

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEPRECATIONS_URL = "https://cloud.google.com/terms/deprecations"
MAX_ITEMS = 20

_PROMPT = """
Find official Google Cloud Platform (GCP) products, features, and versions that are scheduled for End of Support (EOS), End of Life (EOL), or deprecation.
Prioritize finding items with EOS dates in {year}.
Also include items for {previous} and {following}.

Search for "Google Cloud release notes deprecations {year}", "GCP end of support schedule {year}", "GKE version end of life {year}".

Return a JSON array with the following fields for each item:
- title: The name of the feature/product and version.
- date: The EOS/EOL date in YYYY-MM-DD format.
- description: A brief description of the impact and what to do (e.g. upgrade to version X).
- link: A link to the official documentation or release note.
- service: The GCP service name (e.g. GKE, Compute Engine).

Sort by date ascending (soonest first).
Limit to {limit} items.

IMPORTANT: Return ONLY the JSON array. Do not include any other text or markdown formatting.
"""


def build_prompt(year: int) -> str:
    return _PROMPT.format(year=year, previous=year - 1, following=year + 1, limit=MAX_ITEMS).strip()


def extract_json_array(text: str) -> str:
    """Slice ``text`` to the outermost ``[...]`` if both brackets exist."""

    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end != -1:
        return text[start : end + 1]
    return text


def _entry_to_item(entry: Any, index: int, now: datetime) -> Optional[FeedItem]:
    if not isinstance(entry, dict):
        logger.debug("Skipping non-object EOS entry %r", entry)
        return None
    title = str(entry.get("title") or "").strip()
    raw_date = str(entry.get("date") or "").strip()
    deadline = parse_iso(raw_date)
    if not title or deadline is None:
        logger.debug("Skipping EOS entry without title or valid date: %r", entry)
        return None
    service = str(entry.get("service") or "").strip() or None
    description = entry.get("description")
    if description is not None:
        description = str(description)
    return FeedItem(
        id=f"eos-{index}-{int(now.timestamp() * 1000)}",
        title=title,
        link=str(entry.get("link") or "") or DEPRECATIONS_URL,
        iso_date=raw_date,
        content=description,
        content_snippet=description,
        source=END_OF_SUPPORT,
        categories=dedupe([END_OF_SUPPORT, service]),
        service_name=service,
        is_active=deadline > now,
    )


def parse_response(text: Optional[str], now: Optional[datetime] = None) -> List[FeedItem]:
    """Turn the model's answer into end-of-support items, soonest first.

    Raises :class:`ParseError` when no JSON array can be read from ``text``.
    """

    if not text:
        return []
    now = now or datetime.now(timezone.utc)
    try:
        data = json.loads(extract_json_array(text))
    except ValueError as exc:
        raise ParseError(f"response is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ParseError(f"expected a JSON array, got {type(data).__name__}")
    items = [_entry_to_item(entry, index, now) for index, entry in enumerate(data)]
    kept = [item for item in items if item is not None]
    # every kept item has a parseable date
    kept.sort(key=lambda item: parse_iso(item.iso_date))
    return kept


class EndOfSupportSynthesizer:
    """Queries Gemini with Google Search grounding for upcoming EOS dates."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        client: Optional[Any] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _ensure_client(self) -> Any:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, prompt: str) -> Optional[str]:
        client = self._ensure_client()
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text

    async def synthesize(self) -> List[FeedItem]:
        """Return this cycle's EOS items, or ``[]`` on any failure."""

        now = self._clock()
        try:
            text = await self._generate(build_prompt(now.year + 1))
            items = parse_response(text, now=now)
        except ConfigurationError as exc:
            logger.warning("No Gemini API key found for EOS search: %s", exc)
            return []
        except ParseError as exc:
            logger.error("Could not parse EOS search response: %s", exc)
            return []
        except Exception as exc:
            logger.error("Gemini EOS search failed: %s", exc)
            return []
        logger.info("Synthesised %d end-of-support items", len(items))
        return items


__all__ = [
    "DEFAULT_MODEL",
    "DEPRECATIONS_URL",
    "EndOfSupportSynthesizer",
    "build_prompt",
    "extract_json_array",
    "parse_response",
]
