"""
Per-source health tracking and scrape audit logging.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from .models import GrantSource, ScrapeOutcome, ScraperLog, utcnow
from .store import Store

logger = structlog.get_logger(__name__)


@dataclass
class AttemptOutcome:
    """What happened on one scrape attempt, as far as health is concerned."""
    status: ScrapeOutcome
    error: Optional[str] = None


class SourceHealthTracker:
    """
    Updates source health fields and appends ScraperLog rows.

    consecutive_failures resets to 0 on success, grows by 1 on error,
    and is left alone on no_data.
    """

    def __init__(self, store: Store, auto_disable_after_failures: Optional[int] = None):
        self.store = store
        self.auto_disable_after_failures = auto_disable_after_failures

    async def record_attempt(self, source: GrantSource, outcome: AttemptOutcome) -> Optional[GrantSource]:
        """Apply the attempt outcome to the source's health fields."""
        now = utcnow()

        if outcome.status == ScrapeOutcome.SUCCESS:
            partial = {
                "last_scraped_at": now,
                "last_success_at": now,
                "consecutive_failures": 0,
                "last_error": None,
            }
        elif outcome.status == ScrapeOutcome.ERROR:
            current = await self.store.sources.find_one({"id": source.id})
            failures = (current.consecutive_failures if current else source.consecutive_failures) + 1
            partial = {
                "last_scraped_at": now,
                "consecutive_failures": failures,
                "last_error": outcome.error,
            }
            if self.auto_disable_after_failures and failures >= self.auto_disable_after_failures:
                partial["is_active"] = False
                logger.warning(
                    "source_auto_disabled",
                    source=source.name,
                    consecutive_failures=failures,
                )
        else:
            partial = {"last_scraped_at": now}

        return await self.store.sources.update(source.id, partial)

    async def record_log(
        self,
        source: GrantSource,
        status: ScrapeOutcome,
        grants_found: int = 0,
        grants_added: int = 0,
        grants_updated: int = 0,
        error_message: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> ScraperLog:
        """Append one audit row for a scrape attempt."""
        entry = ScraperLog(
            source_id=source.id,
            source_name=source.name,
            status=status,
            grants_found=grants_found,
            grants_added=grants_added,
            grants_updated=grants_updated,
            error_message=error_message,
            duration_ms=duration_ms,
        )
        saved = await self.store.logs.save(entry)

        logger.info(
            "scrape_logged",
            source=source.name,
            status=status.value,
            found=grants_found,
            added=grants_added,
            updated=grants_updated,
            duration_ms=duration_ms,
        )
        return saved
