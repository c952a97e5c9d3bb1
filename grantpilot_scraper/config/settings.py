"""
Runtime settings injected into the orchestrator, fetchers and extractor.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional

ENV_PREFIX = "GRANTPILOT_"


@dataclass
class ScraperSettings:
    """Tunable limits and schedule for the scraping pipeline."""

    # Fetching
    request_timeout_ms: int = 15000
    navigation_timeout_ms: int = 30000
    settle_delay_ms: int = 2000
    max_content_chars: int = 15000
    selector_min_chars: int = 200
    requests_per_second: float = 2.0

    # Pipeline
    content_floor_chars: int = 100
    stale_after_days: int = 14
    auto_disable_after_failures: Optional[int] = None

    # Language model
    llm_provider: Optional[str] = None  # None = auto, "openai", "claude"
    llm_model: Optional[str] = None
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2000
    llm_timeout_s: float = 30.0

    # Schedule (UTC)
    daily_sweep_hour: int = 2
    daily_sweep_minute: int = 0
    cleanup_day_of_week: str = "sun"
    cleanup_hour: int = 3

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ScraperSettings":
        """Create from dictionary (e.g., the YAML settings section)."""
        settings = cls()
        for f in fields(cls):
            if data and f.name in data and data[f.name] is not None:
                setattr(settings, f.name, _coerce(f.name, data[f.name], getattr(settings, f.name)))
        return settings

    @classmethod
    def from_env(cls, base: Optional["ScraperSettings"] = None) -> "ScraperSettings":
        """Overlay GRANTPILOT_* environment variables onto base settings."""
        settings = base or cls()
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            setattr(settings, f.name, _coerce(f.name, raw, getattr(settings, f.name)))
        return settings


def _coerce(name: str, value, current):
    """Convert a raw config value to the type of the current default."""
    if isinstance(value, str):
        if name == "auto_disable_after_failures":
            return int(value)
        if isinstance(current, bool):
            return value.lower() in ("1", "true", "yes")
        if isinstance(current, int):
            return int(value)
        if isinstance(current, float):
            return float(value)
    return value
