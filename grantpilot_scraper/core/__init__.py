"""
Core layer - stable foundation for the pipeline.

Components:
- models: GrantSource, Grant, ScraperLog dataclasses
- errors: pipeline exception hierarchy
- store: async repositories (in-memory / JSON file)
- http_client: rate-limited HTTP client with typed fetch errors
- defaults: heuristic advisory field estimates
- reconciler: (title, chain) upsert engine
- health: source health tracking and scrape logs
"""

from .models import (
    Grant,
    GrantSource,
    GrantStatus,
    ScrapeOutcome,
    ScraperLog,
    ScrapeStrategy,
)
from .errors import (
    ScraperError,
    FetchError,
    FetchTimeoutError,
    ContentTooShortError,
    ExtractionError,
    ExtractionParseError,
    ReconcileError,
    SourceNotFoundError,
    SweepInProgressError,
)
from .store import InMemoryStore, JsonFileStore, Store, Not, LessThan

__all__ = [
    "Grant",
    "GrantSource",
    "GrantStatus",
    "ScrapeOutcome",
    "ScraperLog",
    "ScrapeStrategy",
    "ScraperError",
    "FetchError",
    "FetchTimeoutError",
    "ContentTooShortError",
    "ExtractionError",
    "ExtractionParseError",
    "ReconcileError",
    "SourceNotFoundError",
    "SweepInProgressError",
    "InMemoryStore",
    "JsonFileStore",
    "Store",
    "Not",
    "LessThan",
]
