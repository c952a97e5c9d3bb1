"""
Data models for the grants pipeline.

Persisted entities (GrantSource, Grant, ScraperLog) with type hints
and dict serialization for the JSON store and CLI output.
"""

from dataclasses import dataclass, field, asdict, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class ScrapeStrategy(str, Enum):
    """Fetch technique applied to a source."""
    STATIC_HTML = "static_html"  # Plain GET + HTML parse
    PUPPETEER = "puppeteer"  # Headless browser render
    RSS_FEED = "rss_feed"  # RSS/Atom feed items


class GrantStatus(str, Enum):
    """Lifecycle status of a grant program."""
    OPEN = "Open"
    UPCOMING = "Upcoming"
    CLOSED = "Closed"

    @classmethod
    def parse(cls, value: Optional[str]) -> "GrantStatus":
        """Map free text to a status; anything unrecognized is Closed."""
        if isinstance(value, GrantStatus):
            return value
        for status in cls:
            if value == status.value:
                return status
        return cls.CLOSED


class ScrapeOutcome(str, Enum):
    """Outcome of one scrape attempt."""
    SUCCESS = "success"
    ERROR = "error"
    NO_DATA = "no_data"


class _Serializable:
    """Dict conversion shared by the persisted dataclasses."""

    def to_dict(self) -> dict:
        data = {}
        for k, v in asdict(self).items():
            if isinstance(v, datetime):
                data[k] = v.isoformat()
            elif isinstance(v, Enum):
                data[k] = v.value
            else:
                data[k] = v
        return data

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for k, v in data.items():
            if k not in known:
                continue
            if isinstance(v, str) and k.endswith("_at"):
                v = datetime.fromisoformat(v)
            kwargs[k] = v
        return cls(**kwargs)


@dataclass
class GrantSource(_Serializable):
    """A configured origin to scrape."""

    name: str
    url: str
    chain_name: str
    scrape_strategy: ScrapeStrategy = ScrapeStrategy.STATIC_HTML
    is_active: bool = True

    # Health
    last_scraped_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    consecutive_failures: int = 0
    last_error: Optional[str] = None

    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.scrape_strategy, ScrapeStrategy):
            self.scrape_strategy = ScrapeStrategy(self.scrape_strategy)


@dataclass
class Grant(_Serializable):
    """
    Normalized grant program record.

    Identity for deduplication is the exact (title, chain) pair.
    """

    chain: str
    category: str
    title: str
    tag: str
    amount: str
    status: GrantStatus
    deadline: str
    summary: str
    focus: str
    link: str
    source_url: str

    # Advisory fields, always populated on persist
    fit_score: Optional[str] = None
    fit_description: Optional[str] = None
    time_to_apply: Optional[str] = None
    time_to_apply_description: Optional[str] = None

    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.status, GrantStatus):
            self.status = GrantStatus.parse(self.status)


@dataclass
class ScraperLog(_Serializable):
    """Append-only audit record of one scrape attempt."""

    source_id: Optional[int]
    source_name: str
    status: ScrapeOutcome
    grants_found: int = 0
    grants_added: int = 0
    grants_updated: int = 0
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None

    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.status, ScrapeOutcome):
            self.status = ScrapeOutcome(self.status)


@dataclass
class SourceScrapeResult:
    """Counts reported by a single-source scrape."""
    grants_added: int = 0
    grants_updated: int = 0
    grants_found: int = 0
    outcome: ScrapeOutcome = ScrapeOutcome.SUCCESS

    def to_dict(self) -> dict:
        return {
            "grants_added": self.grants_added,
            "grants_updated": self.grants_updated,
        }


@dataclass
class SweepResult:
    """Aggregate result of a full sweep."""
    sources_scraped: int = 0
    grants_added: int = 0
    grants_updated: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
