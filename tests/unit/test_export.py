"""Unit tests for exporting tables into a snapshot."""

import pytest
from services.backup_service.export import FALLBACK_LIMIT, export_snapshot, fetch_table
from services.backup_service.tables import BACKUP_TABLES, TableSpec
from tests.fakes import FakeStore


def _store(**kwargs) -> FakeStore:
    return FakeStore(
        tables={
            "orders": [
                {"id": "o1", "created_at": "2025-01-01T00:00:00Z"},
                {"id": "o2", "created_at": "2025-03-01T00:00:00Z"},
                {"id": "o3", "created_at": "2025-02-01T00:00:00Z"},
            ],
            "tags": [{"id": "t2", "name": "vegan"}, {"id": "t1", "name": "eggless"}],
        },
        **kwargs,
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_table_uses_natural_order_and_limit():
    store = _store()
    rows = await fetch_table(store, TableSpec("orders"), limit=2)
    assert [r["id"] for r in rows] == ["o2", "o3"]

    tags = await fetch_table(store, TableSpec("tags", order_by="name", ascending=True))
    assert [t["name"] for t in tags] == ["eggless", "vegan"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fetch_table_retries_without_ordering():
    store = _store(fail_ordered=("orders",))
    rows = await fetch_table(store, TableSpec("orders"))

    assert len(rows) == 3
    retry = store.select_calls[-1]
    assert retry["order_by"] is None
    assert retry["limit"] == FALLBACK_LIMIT


@pytest.mark.asyncio
@pytest.mark.unit
async def test_fallback_keeps_configured_limit():
    store = _store(fail_ordered=("orders",))
    rows = await fetch_table(store, TableSpec("orders"), limit=1)
    assert len(rows) == 1
    assert store.select_calls[-1]["limit"] == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_export_records_failed_table_as_empty():
    store = _store(fail_always=("products",))
    messages = []

    snapshot = await export_snapshot(
        store,
        source="https://demo.supabase.co",
        authenticated=True,
        progress=messages.append,
    )

    assert list(snapshot.tables) == [spec.name for spec in BACKUP_TABLES]
    assert snapshot.tables["products"] == []
    assert len(snapshot.tables["orders"]) == 3
    assert snapshot.source_database == "https://demo.supabase.co"
    assert snapshot.authenticated is True
    assert any("Failed to fetch products" in m for m in messages)
    assert "   ✅ Fetched 3 records" in messages
