"""Restore a snapshot into a (possibly different) hosted store.

Tables are processed strictly in ``INSERT_ORDER``. Each table moves through

    pending -> fetched -> repaired -> written | skipped

(or ``failed`` when the write is rejected). Nothing is rolled back: rows written
for an earlier table stay written when a later table fails, and a re-run
converges because every write is an upsert on the primary key.

Repair rules applied before writing:

* products: a missing ``selling_price`` is filled from the legacy ``price``
  (and vice versa). A ``category_id`` that does not exist in the destination is
  rewritten to the destination category with the same name (case-insensitive,
  name taken from the snapshot's categories); products whose category cannot
  be matched are dropped.
* product_tags: rows whose product or tag is missing in the destination are
  dropped.
* order_items: rows whose order or product is missing in the destination are
  dropped.
* profiles, invoice_settings, orders: skipped entirely when no row carries a
  ``user_id``.
"""

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol, Union

from libs.common.logging import get_logger
from libs.common.supabase import STORE_ERRORS, SupabaseError
from services.backup_service.export import ReadableStore
from services.backup_service.snapshot import Rows, Snapshot
from services.backup_service.tables import (
    AUTH_DEPENDENT_TABLES,
    INSERT_ORDER,
    NAME_UNIQUE_TABLES,
)

logger = get_logger(__name__)


class WritableStore(ReadableStore, Protocol):
    async def upsert(
        self,
        table: str,
        rows: Union[dict, list],
        *,
        on_conflict: str = "id",
        ignore_duplicates: bool = False,
    ) -> None: ...


class TableState(str, enum.Enum):
    PENDING = "pending"
    FETCHED = "fetched"
    REPAIRED = "repaired"
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class TableResult:
    table: str
    state: TableState = TableState.PENDING
    records: int = 0
    written: int = 0
    dropped: int = 0
    rewritten: int = 0
    skip_reason: Optional[str] = None
    errors: list[str] = field(default_factory=list)


@dataclass
class RestoreSummary:
    results: list[TableResult] = field(default_factory=list)

    def result(self, table: str) -> Optional[TableResult]:
        for result in self.results:
            if result.table == table:
                return result
        return None

    @property
    def total_written(self) -> int:
        return sum(r.written for r in self.results)

    @property
    def total_dropped(self) -> int:
        return sum(r.dropped for r in self.results)

    @property
    def total_errors(self) -> int:
        return sum(len(r.errors) for r in self.results)

    @property
    def skipped_tables(self) -> list[str]:
        """Tables skipped for lack of identity references."""
        return [
            r.table
            for r in self.results
            if r.state == TableState.SKIPPED and r.table in AUTH_DEPENDENT_TABLES
        ]

    @property
    def has_errors(self) -> bool:
        return self.total_errors > 0


@dataclass
class RepairOutcome:
    """Rows kept for writing plus what was dropped or rewritten."""

    rows: Rows
    dropped: Rows = field(default_factory=list)
    rewritten: int = 0


# ============================================================================
# REPAIR RULES
# ============================================================================


async def _existing_ids(store: ReadableStore, table: str) -> set[str]:
    rows = await store.select(table, "id")
    return {str(row["id"]) for row in rows}


def fill_price_fields(row: dict) -> dict:
    """Fill ``selling_price`` from ``price`` (and back) when one is missing."""
    row = dict(row)
    if row.get("selling_price") is None and row.get("price") is not None:
        row["selling_price"] = row["price"]
    if row.get("price") is None and row.get("selling_price") is not None:
        row["price"] = row["selling_price"]
    return row


async def repair_products(
    store: ReadableStore, rows: Rows, snapshot: Snapshot
) -> RepairOutcome:
    destination = await store.select("categories", "id,name")
    destination_ids = {str(c["id"]) for c in destination}
    destination_by_name = {
        (c.get("name") or "").lower(): str(c["id"]) for c in destination
    }
    backup_names = {
        str(c["id"]): (c.get("name") or "").lower()
        for c in snapshot.rows("categories")
        if c.get("id") is not None
    }

    kept, dropped, rewritten = [], [], 0
    for row in rows:
        row = fill_price_fields(row)
        category_id = row.get("category_id")
        if not category_id or str(category_id) in destination_ids:
            kept.append(row)
            continue

        name = backup_names.get(str(category_id))
        new_id = destination_by_name.get(name) if name else None
        if new_id:
            row["category_id"] = new_id
            rewritten += 1
            kept.append(row)
        else:
            logger.warning(
                "Dropping product %r: category %s not found",
                row.get("name"),
                name or category_id,
            )
            dropped.append(row)
    return RepairOutcome(kept, dropped, rewritten)


async def _keep_resolved(
    store: ReadableStore, rows: Rows, references: dict[str, str]
) -> RepairOutcome:
    """Keep rows whose every ``column -> table`` reference exists."""
    valid = {
        column: await _existing_ids(store, table) for column, table in references.items()
    }
    kept, dropped = [], []
    for row in rows:
        if all(
            row.get(column) is not None and str(row[column]) in ids
            for column, ids in valid.items()
        ):
            kept.append(row)
        else:
            dropped.append(row)
    return RepairOutcome(kept, dropped)


async def repair_product_tags(store: ReadableStore, rows: Rows) -> RepairOutcome:
    return await _keep_resolved(
        store, rows, {"product_id": "products", "tag_id": "tags"}
    )


async def repair_order_items(store: ReadableStore, rows: Rows) -> RepairOutcome:
    return await _keep_resolved(
        store, rows, {"order_id": "orders", "product_id": "products"}
    )


def has_identity_references(rows: Iterable[dict]) -> bool:
    return any(row.get("user_id") for row in rows)


async def repair_rows(
    store: ReadableStore, table: str, rows: Rows, snapshot: Snapshot
) -> RepairOutcome:
    if table == "products":
        return await repair_products(store, rows, snapshot)
    if table == "product_tags":
        return await repair_product_tags(store, rows)
    if table == "order_items":
        return await repair_order_items(store, rows)
    return RepairOutcome(rows)


# ============================================================================
# WRITES
# ============================================================================


async def write_rows(store: WritableStore, table: str, rows: Rows) -> int:
    """Upsert ``rows`` by primary key and return how many were written.

    Name-unique tables ignore conflicting duplicates. When such a table's batch
    still fails with a duplicate-key error, rows are written one at a time and
    the successes counted.
    """
    ignore_duplicates = table in NAME_UNIQUE_TABLES
    try:
        await store.upsert(table, rows, on_conflict="id", ignore_duplicates=ignore_duplicates)
        return len(rows)
    except SupabaseError as exc:
        if not (ignore_duplicates and exc.is_duplicate_key):
            raise
        logger.info("Duplicate key restoring %s, retrying row by row", table)

    written = 0
    for row in rows:
        try:
            await store.upsert(table, row, on_conflict="id", ignore_duplicates=True)
        except STORE_ERRORS as exc:
            logger.debug("Row %s of %s not written: %s", row.get("id"), table, exc)
            continue
        written += 1
    return written


# ============================================================================
# PIPELINE
# ============================================================================


Progress = Callable[[str], Any]


async def restore_table(
    store: WritableStore,
    table: str,
    snapshot: Snapshot,
    report: Progress,
) -> TableResult:
    rows = snapshot.rows(table)
    result = TableResult(table=table, records=len(rows), state=TableState.FETCHED)

    if not rows:
        result.state = TableState.SKIPPED
        result.skip_reason = "no records"
        report(f"⏭️  Skipping {table} (no records)")
        return result

    if table in AUTH_DEPENDENT_TABLES and not has_identity_references(rows):
        result.state = TableState.SKIPPED
        result.skip_reason = "no user references"
        report(f"⏭️  Skipping {table} (no user references)")
        return result

    report(f"📦 Restoring {table} ({len(rows)} records)...")
    try:
        outcome = await repair_rows(store, table, rows, snapshot)
    except STORE_ERRORS as exc:
        result.state = TableState.FAILED
        result.errors.append(str(exc))
        report(f"❌ Error reading destination for {table}: {exc}")
        return result

    result.state = TableState.REPAIRED
    result.dropped = len(outcome.dropped)
    result.rewritten = outcome.rewritten
    if outcome.rewritten:
        report(f"   🔄 Updated category_id for {outcome.rewritten} {table}")
    if outcome.dropped:
        report(f"   ⚠️  {len(outcome.dropped)} {table} skipped due to invalid references")

    if not outcome.rows:
        result.state = TableState.WRITTEN
        return result

    try:
        result.written = await write_rows(store, table, outcome.rows)
    except STORE_ERRORS as exc:
        result.state = TableState.FAILED
        result.errors.append(str(exc))
        logger.error("Restoring %s failed: %s", table, exc)
        report(f"❌ Error restoring {table}: {exc}")
        return result

    result.state = TableState.WRITTEN
    report(f"✅ Restored {result.written}/{len(outcome.rows)} records to {table}")
    return result


async def restore_snapshot(
    store: WritableStore,
    snapshot: Snapshot,
    *,
    delay: float = 0.5,
    tables: Iterable[str] = INSERT_ORDER,
    progress: Optional[Progress] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RestoreSummary:
    """Restore tables sequentially, pausing ``delay`` seconds after each write."""
    report = progress or (lambda message: None)
    summary = RestoreSummary()

    for table in tables:
        result = await restore_table(store, table, snapshot, report)
        summary.results.append(result)
        if result.state != TableState.SKIPPED and delay > 0:
            await sleep(delay)

    logger.info(
        "Restore finished: %d written, %d dropped, %d errors",
        summary.total_written,
        summary.total_dropped,
        summary.total_errors,
    )
    return summary
