"""
Orchestrator for the grants scraping pipeline.

Coordinates, per active source:
- Content fetching (static HTML, headless browser, RSS)
- LLM extraction
- Reconciliation against the store
- Source health and audit logging

Sources are processed one at a time; a failing source never aborts
the sweep.
"""

import asyncio
import time
from datetime import timedelta
from enum import Enum
from typing import Optional

import structlog

from .config.settings import ScraperSettings
from .core.errors import ContentTooShortError, SourceNotFoundError, SweepInProgressError
from .core.health import AttemptOutcome, SourceHealthTracker
from .core.models import (
    GrantSource,
    GrantStatus,
    ScrapeOutcome,
    ScraperLog,
    SourceScrapeResult,
    SweepResult,
    utcnow,
)
from .core.reconciler import Reconciler
from .core.store import LessThan, Not, Store
from .extraction.extractor import GrantExtractor
from .fetchers.content_fetcher import ContentFetcher

logger = structlog.get_logger(__name__)


class SweepState(str, Enum):
    """Lifecycle of the most recent full sweep."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"


class ScraperService:
    """
    Pipeline orchestrator.

    Usage:
        service = ScraperService(store, fetcher, extractor, settings)
        result = await service.scrape_all_sources()
    """

    def __init__(
        self,
        store: Store,
        fetcher: ContentFetcher,
        extractor: GrantExtractor,
        settings: Optional[ScraperSettings] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Persistence store
            fetcher: Content fetcher (strategy dispatch)
            extractor: LLM grant extractor
            settings: Pipeline settings
        """
        self.store = store
        self.fetcher = fetcher
        self.extractor = extractor
        self.settings = settings or ScraperSettings()

        self.reconciler = Reconciler(store)
        self.health = SourceHealthTracker(
            store,
            auto_disable_after_failures=self.settings.auto_disable_after_failures,
        )

        self.sweep_state = SweepState.NOT_STARTED
        self._sweep_lock = asyncio.Lock()

    async def scrape_all_sources(self) -> SweepResult:
        """
        Scrape every active source sequentially.

        Returns:
            SweepResult with totals and one error entry per failed source

        Raises:
            SweepInProgressError: Another sweep is running in this process
        """
        if self._sweep_lock.locked():
            raise SweepInProgressError("A scrape sweep is already running")

        async with self._sweep_lock:
            self.sweep_state = SweepState.RUNNING
            try:
                return await self._run_sweep()
            finally:
                self.sweep_state = SweepState.COMPLETED

    async def _run_sweep(self) -> SweepResult:
        sources = await self.store.sources.find({"is_active": True}, order_by="id")
        logger.info("sweep_started", sources=len(sources))

        result = SweepResult()
        for source in sources:
            result.sources_scraped += 1
            try:
                counts = await self.scrape_source(source.id)
                result.grants_added += counts.grants_added
                result.grants_updated += counts.grants_updated
            except Exception as e:
                logger.error(
                    "source_scrape_failed",
                    source=source.name,
                    error=str(e),
                )
                result.errors.append(f"{source.name}: {e}")

        logger.info(
            "sweep_complete",
            sources_scraped=result.sources_scraped,
            grants_added=result.grants_added,
            grants_updated=result.grants_updated,
            errors=len(result.errors),
        )
        return result

    async def scrape_source(self, source_id: int) -> SourceScrapeResult:
        """
        Scrape one source: fetch, extract, reconcile, record health.

        Args:
            source_id: GrantSource id

        Returns:
            SourceScrapeResult with added/updated counts

        Raises:
            SourceNotFoundError: Unknown id
            FetchError, ExtractionError, ReconcileError: After health and log are recorded
        """
        source = await self.store.sources.find_one({"id": source_id})
        if source is None:
            raise SourceNotFoundError(source_id)

        log = logger.bind(source=source.name)
        log.info(
            "scraping_source",
            url=source.url,
            strategy=source.scrape_strategy.value,
        )

        started = time.monotonic()
        result = SourceScrapeResult()

        try:
            content = await self.fetcher.fetch(source)

            if len(content) < self.settings.content_floor_chars:
                raise ContentTooShortError(len(content), self.settings.content_floor_chars)

            extracted = await self.extractor.extract(content, source.url, source.chain_name)
            result.grants_found = len(extracted)

            for grant in extracted:
                outcome = await self.reconciler.reconcile(grant, source.url)
                if outcome.is_new:
                    result.grants_added += 1
                elif outcome.is_updated:
                    result.grants_updated += 1

        except ContentTooShortError as e:
            log.warning("insufficient_content", error=str(e))
            result.outcome = ScrapeOutcome.NO_DATA
            await self.health.record_attempt(source, AttemptOutcome(ScrapeOutcome.NO_DATA))
            await self.health.record_log(
                source,
                ScrapeOutcome.NO_DATA,
                error_message=str(e),
                duration_ms=_elapsed_ms(started),
            )
            return SourceScrapeResult(outcome=ScrapeOutcome.NO_DATA)

        except Exception as e:
            log.error("scrape_failed", error=str(e), error_type=type(e).__name__)
            await self.health.record_attempt(
                source, AttemptOutcome(ScrapeOutcome.ERROR, error=str(e))
            )
            await self.health.record_log(
                source,
                ScrapeOutcome.ERROR,
                grants_found=result.grants_found,
                grants_added=result.grants_added,
                grants_updated=result.grants_updated,
                error_message=str(e),
                duration_ms=_elapsed_ms(started),
            )
            raise

        await self.health.record_attempt(source, AttemptOutcome(ScrapeOutcome.SUCCESS))
        await self.health.record_log(
            source,
            ScrapeOutcome.SUCCESS,
            grants_found=result.grants_found,
            grants_added=result.grants_added,
            grants_updated=result.grants_updated,
            duration_ms=_elapsed_ms(started),
        )

        log.info(
            "source_scraped",
            found=result.grants_found,
            added=result.grants_added,
            updated=result.grants_updated,
        )
        return result

    async def get_all_sources(self) -> list[GrantSource]:
        return await self.store.sources.find(order_by="id")

    async def get_recent_logs(self, limit: int = 100) -> list[ScraperLog]:
        """Most recent scrape logs, newest first."""
        return await self.store.logs.find(order_by="id", descending=True, limit=limit)

    async def deactivate_stale_grants(self) -> int:
        """
        Close every non-closed grant untouched for stale_after_days.

        Returns:
            Number of grants closed
        """
        cutoff = utcnow() - timedelta(days=self.settings.stale_after_days)
        affected = await self.store.grants.bulk_update(
            {"status": Not(GrantStatus.CLOSED), "updated_at": LessThan(cutoff)},
            {"status": GrantStatus.CLOSED},
        )
        logger.info(
            "stale_grants_closed",
            affected=affected,
            stale_after_days=self.settings.stale_after_days,
        )
        return affected


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
