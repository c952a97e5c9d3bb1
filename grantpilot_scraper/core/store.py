"""
Persistence store for sources, grants and scraper logs.

Async repository interface (find_one, find, save, update, bulk_update)
backed by in-memory dicts, with an optional JSON file snapshot so CLI
runs can share state.
"""

import copy
import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

import structlog

from .models import Grant, GrantSource, ScraperLog, utcnow

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Not:
    """Criteria matcher: field != value."""
    value: Any

    def matches(self, actual: Any) -> bool:
        return actual != self.value


@dataclass(frozen=True)
class LessThan:
    """Criteria matcher: field < value (None never matches)."""
    value: Any

    def matches(self, actual: Any) -> bool:
        return actual is not None and actual < self.value


def _matches(entity: Any, criteria: Optional[dict]) -> bool:
    for key, expected in (criteria or {}).items():
        actual = getattr(entity, key)
        if isinstance(expected, (Not, LessThan)):
            if not expected.matches(actual):
                return False
        elif actual != expected:
            return False
    return True


def _sort_key(value: Any) -> tuple:
    # None sorts last
    return (value is None, 0 if value is None else value)


class Repository(Generic[T]):
    """
    In-memory repository for one entity type.

    Entities are copied on the way in and out so callers never hold
    references into the store.

    Usage:
        repo = Repository(Grant)
        grant = await repo.save(Grant(...))
        found = await repo.find_one({"title": "X", "chain": "Base"})
    """

    def __init__(
        self,
        entity_type: type,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.entity_type = entity_type
        self.on_change = on_change
        self._rows: dict[int, T] = {}
        self._next_id = 1
        self._tracks_updates = "updated_at" in getattr(entity_type, "__dataclass_fields__", {})

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    async def find_one(self, criteria: Optional[dict] = None) -> Optional[T]:
        for row in self._rows.values():
            if _matches(row, criteria):
                return copy.deepcopy(row)
        return None

    async def find(
        self,
        criteria: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[T]:
        rows = [r for r in self._rows.values() if _matches(r, criteria)]
        if order_by:
            rows.sort(key=lambda r: _sort_key(getattr(r, order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    async def count(self, criteria: Optional[dict] = None) -> int:
        return sum(1 for r in self._rows.values() if _matches(r, criteria))

    async def save(self, entity: T) -> T:
        """Insert a new entity, or overwrite the stored copy if it has an id."""
        now = utcnow()
        row = copy.deepcopy(entity)

        if row.id is None:
            row.id = self._next_id
            self._next_id += 1
            row.created_at = row.created_at or now
        if self._tracks_updates:
            row.updated_at = now

        self._rows[row.id] = row
        self._changed()
        return copy.deepcopy(row)

    async def update(self, entity_id: int, partial: dict) -> Optional[T]:
        """Apply a partial update; returns the updated entity or None."""
        row = self._rows.get(entity_id)
        if row is None:
            return None

        changes = dict(partial)
        if self._tracks_updates:
            changes["updated_at"] = utcnow()

        self._rows[entity_id] = replace(row, **changes)
        self._changed()
        return copy.deepcopy(self._rows[entity_id])

    async def bulk_update(self, criteria: dict, partial: dict) -> int:
        """Apply a partial update to every match; returns affected count."""
        now = utcnow()
        affected = 0
        for entity_id, row in list(self._rows.items()):
            if not _matches(row, criteria):
                continue
            changes = dict(partial)
            if self._tracks_updates:
                changes["updated_at"] = now
            self._rows[entity_id] = replace(row, **changes)
            affected += 1

        if affected:
            self._changed()
        return affected

    def dump(self) -> list[dict]:
        return [r.to_dict() for r in self._rows.values()]

    def load(self, rows: list[dict]) -> None:
        self._rows = {}
        for data in rows:
            entity = self.entity_type.from_dict(data)
            self._rows[entity.id] = entity
        self._next_id = max(self._rows, default=0) + 1


class Store:
    """Bundle of the three repositories the pipeline works with."""

    def __init__(self):
        self.sources: Repository[GrantSource] = Repository(GrantSource, self._on_change)
        self.grants: Repository[Grant] = Repository(Grant, self._on_change)
        self.logs: Repository[ScraperLog] = Repository(ScraperLog, self._on_change)

    def _on_change(self) -> None:
        pass


class InMemoryStore(Store):
    """Process-local store; state is lost on exit."""


class JsonFileStore(Store):
    """
    Store snapshotted to a JSON file after each write.

    The file is read once on construction.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._loading = True
        super().__init__()

        if self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self.sources.load(data.get("sources", []))
            self.grants.load(data.get("grants", []))
            self.logs.load(data.get("logs", []))
            logger.info(
                "store_loaded",
                path=str(self.path),
                sources=len(data.get("sources", [])),
                grants=len(data.get("grants", [])),
            )
        self._loading = False

    def _on_change(self) -> None:
        if self._loading:
            return
        self.save_snapshot()

    def save_snapshot(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "sources": self.sources.dump(),
            "grants": self.grants.dump(),
            "logs": self.logs.dump(),
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)
