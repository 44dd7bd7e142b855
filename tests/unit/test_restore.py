"""Unit tests for snapshot restore and reference repair."""

import pytest
from services.backup_service.restore import (
    TableState,
    fill_price_fields,
    has_identity_references,
    repair_products,
    restore_snapshot,
    write_rows,
)
from services.backup_service.snapshot import Snapshot
from tests.fakes import FakeStore


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _orders_snapshot() -> Snapshot:
    items = [
        {"id": "i1", "order_id": "o1", "product_id": "p1"},
        {"id": "i2", "order_id": "o1", "product_id": "p1"},
        {"id": "i3", "order_id": "o2", "product_id": "p1"},
        {"id": "i4", "order_id": "o3", "product_id": "p1"},
        {"id": "i5", "order_id": "o-missing", "product_id": "p1"},
    ]
    return Snapshot(
        tables={
            "products": [{"id": "p1", "name": "Truffle", "selling_price": 299}],
            "orders": [
                {"id": "o1", "user_id": "u1"},
                {"id": "o2", "user_id": "u1"},
                {"id": "o3", "user_id": "u1"},
            ],
            "order_items": items,
        }
    )


@pytest.mark.unit
def test_fill_price_fields_both_directions():
    assert fill_price_fields({"price": 150, "selling_price": None}) == {
        "price": 150,
        "selling_price": 150,
    }
    assert fill_price_fields({"selling_price": 99}) == {"selling_price": 99, "price": 99}
    assert fill_price_fields({"price": 1, "selling_price": 2}) == {"price": 1, "selling_price": 2}


@pytest.mark.unit
def test_has_identity_references():
    assert has_identity_references([{"user_id": None}, {"user_id": "u1"}])
    assert not has_identity_references([{"user_id": None}, {}])


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_items_with_unknown_order_are_dropped():
    store = FakeStore()
    summary = await restore_snapshot(store, _orders_snapshot(), delay=0)

    items = summary.result("order_items")
    assert items.state == TableState.WRITTEN
    assert items.written == 4
    assert items.dropped == 1
    assert store.ids("order_items") == {"i1", "i2", "i3", "i4"}
    assert summary.result("orders").written == 3
    assert not summary.has_errors


@pytest.mark.asyncio
@pytest.mark.unit
async def test_products_are_rewritten_to_destination_category_by_name():
    store = FakeStore(
        tables={"categories": [{"id": "dest-c1", "name": "Cakes"}]},
        unique_names={"categories": "name"},
    )
    snapshot = Snapshot(
        tables={
            "categories": [
                {"id": "c1", "name": "Cakes"},
                {"id": "c2", "name": "Cookies"},
            ],
            "products": [
                {"id": "p1", "name": "Truffle", "category_id": "c1", "price": 299},
                {"id": "p2", "name": "Oat", "category_id": "c2", "selling_price": 100},
                {"id": "p3", "name": "Ghost", "category_id": "c-gone"},
                {"id": "p4", "name": "Loose", "category_id": None},
            ],
        }
    )

    summary = await restore_snapshot(store, snapshot, delay=0)

    categories = summary.result("categories")
    assert categories.written == 1  # "Cakes" already exists under another id
    assert store.ids("categories") == {"dest-c1", "c2"}

    products = summary.result("products")
    assert products.written == 3
    assert products.rewritten == 1
    assert products.dropped == 1

    restored = {p["id"]: p for p in store.tables["products"]}
    assert restored["p1"]["category_id"] == "dest-c1"
    assert restored["p1"]["selling_price"] == 299
    assert restored["p2"]["price"] == 100
    assert "p3" not in restored


@pytest.mark.asyncio
@pytest.mark.unit
async def test_category_rewrite_matches_names_case_insensitively():
    store = FakeStore(tables={"categories": [{"id": "dest-c1", "name": "cakes"}]})
    snapshot = Snapshot(tables={"categories": [{"id": "c1", "name": "Cakes"}]})
    rows = [
        {"id": "p1", "name": "Truffle", "category_id": "c1"},
        {"id": "p2", "name": "Plain", "category_id": "dest-c1"},
    ]

    outcome = await repair_products(store, rows, snapshot)

    assert outcome.rewritten == 1
    assert outcome.dropped == []
    assert [row["category_id"] for row in outcome.rows] == ["dest-c1", "dest-c1"]
    # the caller's rows are left as they were
    assert rows[0]["category_id"] == "c1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_product_tags_with_missing_references_are_dropped():
    store = FakeStore(tables={"tags": [{"id": "t1", "name": "vegan"}]})
    snapshot = Snapshot(
        tables={
            "products": [{"id": "p1", "name": "Truffle"}],
            "product_tags": [
                {"id": "pt1", "product_id": "p1", "tag_id": "t1"},
                {"id": "pt2", "product_id": "p1", "tag_id": "t-gone"},
                {"id": "pt3", "product_id": "p-gone", "tag_id": "t1"},
            ],
        }
    )

    summary = await restore_snapshot(store, snapshot, delay=0)

    result = summary.result("product_tags")
    assert result.written == 1
    assert result.dropped == 2
    assert summary.total_dropped == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_tables_without_user_references_are_skipped():
    store = FakeStore()
    snapshot = Snapshot(
        tables={
            "profiles": [{"id": "pr1", "user_id": None, "email": "a@b.com"}],
            "orders": [{"id": "o1", "user_id": None}],
            "invoice_settings": [{"id": "s1", "user_id": "u1"}],
        }
    )

    summary = await restore_snapshot(store, snapshot, delay=0)

    assert summary.skipped_tables == ["profiles", "orders"]
    assert summary.result("profiles").skip_reason == "no user references"
    assert summary.result("invoice_settings").written == 1
    assert summary.result("tags").skip_reason == "no records"
    assert "orders" not in store.tables


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delay_follows_each_processed_table():
    sleep = SleepRecorder()
    await restore_snapshot(FakeStore(), _orders_snapshot(), delay=0.5, sleep=sleep)
    # products, orders, order_items; empty tables do not wait
    assert sleep.calls == [0.5, 0.5, 0.5]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_restore_is_rerunnable():
    store = FakeStore()
    snapshot = _orders_snapshot()
    await restore_snapshot(store, snapshot, delay=0)
    summary = await restore_snapshot(store, snapshot, delay=0)

    assert not summary.has_errors
    assert len(store.tables["order_items"]) == 4


@pytest.mark.asyncio
@pytest.mark.unit
async def test_write_failure_marks_table_failed_and_continues():
    store = FakeStore(
        tables={"products": [{"id": "existing", "name": "Truffle"}]},
        unique_names={"products": "name"},
    )
    snapshot = Snapshot(
        tables={
            "tags": [{"id": "t1", "name": "vegan"}],
            "products": [{"id": "p1", "name": "Truffle"}],
        }
    )
    messages = []

    summary = await restore_snapshot(store, snapshot, delay=0, progress=messages.append)

    assert summary.result("products").state == TableState.FAILED
    assert summary.result("tags").state == TableState.WRITTEN
    assert summary.has_errors
    assert summary.total_errors == 1
    assert any(m.startswith("❌ Error restoring products") for m in messages)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_destination_read_failure_marks_table_failed():
    store = FakeStore(fail_always=("categories",))
    snapshot = Snapshot(tables={"products": [{"id": "p1", "category_id": "c1"}]})

    summary = await restore_snapshot(store, snapshot, delay=0)

    assert summary.result("products").state == TableState.FAILED
    assert "products" not in store.tables


@pytest.mark.asyncio
@pytest.mark.unit
async def test_write_rows_counts_row_by_row_successes():
    store = FakeStore(
        tables={"tags": [{"id": "old", "name": "vegan"}]},
        unique_names={"tags": "name"},
    )
    rows = [
        {"id": "t1", "name": "vegan"},
        {"id": "t2", "name": "eggless"},
        {"id": "t3", "name": "sugar-free"},
    ]

    written = await write_rows(store, "tags", rows)

    assert written == 2
    assert store.ids("tags") == {"old", "t2", "t3"}
    # One failed batch, then one call per row
    assert [call["count"] for call in store.upsert_calls] == [3, 1, 1, 1]
