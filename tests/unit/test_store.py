"""Tests for the persistence store."""

import json
from datetime import timedelta
from unittest.mock import patch

import pytest

from grantpilot_scraper.core.models import Grant, GrantSource, GrantStatus, ScraperLog, utcnow
from grantpilot_scraper.core.store import InMemoryStore, JsonFileStore, LessThan, Not


def make_grant(title: str = "Arbitrum Grants", chain: str = "Arbitrum", **overrides) -> Grant:
    data = dict(
        chain=chain,
        category="Infra",
        title=title,
        tag="Infra",
        amount="$50k",
        status=GrantStatus.OPEN,
        deadline="Rolling",
        summary="Summary",
        focus="Focus",
        link="https://arbitrum.foundation/grants",
        source_url="https://arbitrum.foundation/grants",
    )
    data.update(overrides)
    return Grant(**data)


class TestRepository:
    """Tests for the in-memory repository."""

    @pytest.mark.asyncio
    async def test_save_assigns_id_and_timestamps(self):
        """Insert sets id, created_at and updated_at."""
        store = InMemoryStore()

        saved = await store.grants.save(make_grant())

        assert saved.id == 1
        assert saved.created_at is not None
        assert saved.updated_at is not None

    @pytest.mark.asyncio
    async def test_log_has_no_updated_at(self):
        """ScraperLog rows only carry created_at."""
        store = InMemoryStore()

        saved = await store.logs.save(ScraperLog(source_id=1, source_name="x", status="success"))

        assert saved.created_at is not None
        assert not hasattr(saved, "updated_at")

    @pytest.mark.asyncio
    async def test_find_one_exact_match(self):
        """find_one matches all criteria exactly (case-sensitive)."""
        store = InMemoryStore()
        await store.grants.save(make_grant(title="Scroll Grants", chain="Scroll"))

        assert await store.grants.find_one({"title": "Scroll Grants", "chain": "Scroll"})
        assert await store.grants.find_one({"title": "scroll grants", "chain": "Scroll"}) is None
        assert await store.grants.find_one({"title": "Scroll Grants", "chain": "Base"}) is None

    @pytest.mark.asyncio
    async def test_returned_entities_are_copies(self):
        """Mutating a returned entity does not change the store."""
        store = InMemoryStore()
        saved = await store.grants.save(make_grant())

        saved.amount = "changed"

        stored = await store.grants.find_one({"id": saved.id})
        assert stored.amount == "$50k"

    @pytest.mark.asyncio
    async def test_find_order_and_limit(self):
        """find supports ordering and limits."""
        store = InMemoryStore()
        for i in range(5):
            await store.logs.save(ScraperLog(source_id=i, source_name=f"s{i}", status="success"))

        newest = await store.logs.find(order_by="id", descending=True, limit=2)

        assert [entry.source_name for entry in newest] == ["s4", "s3"]

    @pytest.mark.asyncio
    async def test_update_bumps_updated_at(self):
        """Partial update changes fields and updated_at."""
        store = InMemoryStore()
        saved = await store.grants.save(make_grant())

        updated = await store.grants.update(saved.id, {"amount": "$75k"})

        assert updated.amount == "$75k"
        assert updated.updated_at >= saved.updated_at
        assert updated.created_at == saved.created_at

    @pytest.mark.asyncio
    async def test_update_unknown_id(self):
        store = InMemoryStore()
        assert await store.grants.update(99, {"amount": "x"}) is None

    @pytest.mark.asyncio
    async def test_bulk_update_with_matchers(self):
        """bulk_update applies Not / LessThan criteria and returns the count."""
        store = InMemoryStore()
        past = utcnow() - timedelta(days=30)
        with patch("grantpilot_scraper.core.store.utcnow", return_value=past):
            old = await store.grants.save(make_grant(title="Old"))
            await store.grants.save(make_grant(title="Closed", status=GrantStatus.CLOSED))
        recent = await store.grants.save(make_grant(title="Recent"))

        affected = await store.grants.bulk_update(
            {"status": Not(GrantStatus.CLOSED), "updated_at": LessThan(utcnow() - timedelta(days=14))},
            {"status": GrantStatus.CLOSED},
        )

        assert affected == 1
        assert (await store.grants.find_one({"id": old.id})).status == GrantStatus.CLOSED
        assert (await store.grants.find_one({"id": recent.id})).status == GrantStatus.OPEN

    @pytest.mark.asyncio
    async def test_count(self):
        store = InMemoryStore()
        await store.sources.save(GrantSource(name="a", url="https://a", chain_name="Base"))
        await store.sources.save(
            GrantSource(name="b", url="https://b", chain_name="Base", is_active=False)
        )

        assert await store.sources.count() == 2
        assert await store.sources.count({"is_active": True}) == 1


class TestJsonFileStore:
    """Tests for the JSON-file backed store."""

    @pytest.mark.asyncio
    async def test_persists_and_reloads(self, tmp_path):
        """Writes are snapshotted and visible to a new store instance."""
        path = tmp_path / "store.json"

        store = JsonFileStore(str(path))
        await store.sources.save(
            GrantSource(name="Near Grants", url="https://near.org", chain_name="Near", scrape_strategy="puppeteer")
        )
        await store.grants.save(make_grant())

        assert path.exists()
        assert len(json.loads(path.read_text())["grants"]) == 1

        reloaded = JsonFileStore(str(path))
        source = await reloaded.sources.find_one({"name": "Near Grants"})
        grant = await reloaded.grants.find_one({"title": "Arbitrum Grants", "chain": "Arbitrum"})

        assert source.scrape_strategy.value == "puppeteer"
        assert grant.status == GrantStatus.OPEN
        assert grant.updated_at is not None

        # Ids continue after the highest loaded id
        another = await reloaded.grants.save(make_grant(title="Second"))
        assert another.id == 2
