"""Configuration helpers for the feed enrichment package."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_API_BASE_URL = "http://localhost:3000"

# environment variable -> Settings field
ENV_OVERRIDES = {
    "GEMINI_API_KEY": "gemini_api_key",
    "CLOUDFEED_API_BASE_URL": "api_base_url",
    "CLOUDFEED_GEMINI_MODEL": "gemini_model",
}


@dataclass
class Settings:
    """Runtime options; only the Gemini key is secret."""

    api_base_url: str = DEFAULT_API_BASE_URL
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    stale_time: float = 300.0
    gc_time: float = 600.0
    request_timeout: float = 20.0


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in {"stale_time", "gc_time", "request_timeout"}:
        return float(value)
    return str(value)


def load_settings(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from an optional YAML file and the environment.

    Environment variables win over the file. A missing API key is left as
    ``None``; callers that cannot run without one use :func:`require_api_key`.
    """

    environ = os.environ if environ is None else environ
    known = {field.name for field in fields(Settings)}
    values: Dict[str, Any] = {}

    if path is not None:
        raw = yaml.safe_load(path.read_text()) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path} must contain a mapping")
        for key, value in raw.items():
            if key in known:
                values[key] = _coerce(key, value)

    for variable, name in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            values[name] = value

    return Settings(**values)


def require_api_key(settings: Settings) -> str:
    if not settings.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY is not configured")
    return settings.gemini_api_key
