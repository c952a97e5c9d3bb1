"""
Grant reconciliation (upsert) against the persistent store.

Identity is the exact (title, chain) pair. An existing grant is only
written when amount, status, deadline or summary changed, so
updated_at keeps meaning "content last changed" for staleness cleanup.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from grantpilot_scraper.extraction.schema import ExtractedGrant

from . import defaults
from .errors import ReconcileError
from .models import Grant, GrantStatus
from .store import Store

logger = structlog.get_logger(__name__)

# Fields compared to decide whether an existing grant changed
DIFF_FIELDS = ["amount", "status", "deadline", "summary"]

# Content fields overwritten on update
CONTENT_FIELDS = ["amount", "status", "deadline", "summary", "focus", "link", "tag", "category"]

# Advisory field -> heuristic fallback
ADVISORY_DEFAULTS: dict[str, Callable[[ExtractedGrant], str]] = {
    "fit_score": defaults.estimate_fit_score,
    "fit_description": defaults.estimate_fit_description,
    "time_to_apply": defaults.estimate_time_to_apply,
    "time_to_apply_description": defaults.estimate_time_description,
}


@dataclass
class ReconcileResult:
    """Outcome of reconciling one extracted grant."""
    is_new: bool
    is_updated: bool = False
    grant_id: Optional[int] = None


class Reconciler:
    """
    Insert / update / skip decision for extracted grants.

    Usage:
        reconciler = Reconciler(store)
        result = await reconciler.reconcile(extracted, source.url)
    """

    def __init__(self, store: Store):
        self.store = store

    async def reconcile(self, extracted: ExtractedGrant, source_url: str) -> ReconcileResult:
        """
        Upsert one extracted grant.

        Args:
            extracted: Grant as returned by the extractor
            source_url: URL of the source page

        Returns:
            ReconcileResult (is_new True on insert, is_updated True on write)

        Raises:
            ReconcileError: Store failure
        """
        try:
            existing = await self.store.grants.find_one(
                {"title": extracted.title, "chain": extracted.chain}
            )

            if existing is None:
                grant = await self.store.grants.save(self._build_new(extracted, source_url))
                logger.info("grant_added", title=grant.title, chain=grant.chain, id=grant.id)
                return ReconcileResult(is_new=True, grant_id=grant.id)

            changes = self._diff(existing, extracted)
            if not changes:
                logger.debug("grant_unchanged", title=existing.title, chain=existing.chain)
                return ReconcileResult(is_new=False, grant_id=existing.id)

            await self.store.grants.update(
                existing.id, self._merge(existing, extracted, source_url)
            )
            logger.info(
                "grant_updated",
                title=existing.title,
                chain=existing.chain,
                id=existing.id,
                changed=changes,
            )
            return ReconcileResult(is_new=False, is_updated=True, grant_id=existing.id)

        except ReconcileError:
            raise
        except Exception as e:
            raise ReconcileError(f"Failed to reconcile grant '{extracted.title}': {e}") from e

    def _build_new(self, extracted: ExtractedGrant, source_url: str) -> Grant:
        return Grant(
            chain=extracted.chain,
            category=extracted.category,
            title=extracted.title,
            tag=extracted.tag,
            amount=extracted.amount,
            status=GrantStatus.parse(extracted.status),
            deadline=extracted.deadline,
            summary=extracted.summary,
            focus=extracted.focus,
            link=extracted.link,
            source_url=source_url,
            **{
                name: getattr(extracted, name) or estimate(extracted)
                for name, estimate in ADVISORY_DEFAULTS.items()
            },
        )

    def _diff(self, existing: Grant, extracted: ExtractedGrant) -> list[str]:
        """
        Names of compared fields whose value changed.

        Incoming values get the same blank -> stored fallback as _merge,
        so a field the model left empty never counts as a change.
        """
        incoming = {"status": GrantStatus.parse(extracted.status)}
        for name in DIFF_FIELDS:
            if name != "status":
                incoming[name] = getattr(extracted, name) or getattr(existing, name)
        return [name for name in DIFF_FIELDS if getattr(existing, name) != incoming[name]]

    def _merge(self, existing: Grant, extracted: ExtractedGrant, source_url: str) -> dict:
        """
        Build the update for a changed grant.

        Content fields take the new value (keeping the stored one when
        the model left it blank); advisory fields fall back
        new -> existing -> heuristic default.
        """
        partial = {"status": GrantStatus.parse(extracted.status)}
        for name in CONTENT_FIELDS:
            if name != "status":
                partial[name] = getattr(extracted, name) or getattr(existing, name)
        partial["source_url"] = source_url

        for name, estimate in ADVISORY_DEFAULTS.items():
            partial[name] = getattr(extracted, name) or getattr(existing, name) or estimate(extracted)

        return partial
