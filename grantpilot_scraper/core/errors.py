"""
Exception hierarchy for the scraping pipeline.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for pipeline errors."""


class FetchError(ScraperError):
    """Network failure, non-2xx response, navigation or browser failure."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url


class FetchTimeoutError(FetchError):
    """Fetch aborted because the timeout expired."""


class ContentTooShortError(ScraperError):
    """Fetched text is below the minimum length floor."""

    def __init__(self, length: int, floor: int):
        super().__init__(f"Insufficient content ({length} chars, need {floor})")
        self.length = length
        self.floor = floor


class ExtractionError(ScraperError):
    """The language model call itself failed or timed out."""


class ExtractionParseError(ScraperError):
    """Model response is not usable JSON or is a no-data sentinel."""


class ReconcileError(ScraperError):
    """Persistence failure while inserting or updating a grant."""


class SourceNotFoundError(ScraperError, LookupError):
    """Unknown source id."""

    def __init__(self, source_id: int):
        super().__init__(f"Grant source with ID {source_id} not found")
        self.source_id = source_id


class SweepInProgressError(ScraperError):
    """A full sweep is already running in this process."""
