"""Export the backed-up tables from the hosted store into a snapshot."""

from typing import Callable, Iterable, Optional, Protocol

from libs.common.logging import get_logger
from libs.common.supabase import STORE_ERRORS
from services.backup_service.snapshot import Rows, Snapshot
from services.backup_service.tables import BACKUP_TABLES, TableSpec

logger = get_logger(__name__)

# Cap for the unordered retry when no limit is configured
FALLBACK_LIMIT = 1000


class ReadableStore(Protocol):
    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters=None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> Rows: ...


async def fetch_table(
    store: ReadableStore, spec: TableSpec, limit: Optional[int] = None
) -> Rows:
    """Fetch a table in its natural order, retrying once without ordering.

    Raises the fetch error when the retry fails too.
    """
    try:
        return await store.select(
            spec.name, order_by=spec.order_by, ascending=spec.ascending, limit=limit
        )
    except STORE_ERRORS as exc:
        logger.warning("Ordered fetch of %s failed: %s", spec.name, _describe(exc))
        return await store.select(spec.name, limit=limit or FALLBACK_LIMIT)


async def export_snapshot(
    store: ReadableStore,
    *,
    source: str,
    limit: Optional[int] = None,
    authenticated: bool = False,
    tables: Iterable[TableSpec] = BACKUP_TABLES,
    progress: Optional[Callable[[str], None]] = None,
) -> Snapshot:
    """Snapshot every table; a table that cannot be fetched is recorded empty."""
    report = progress or (lambda message: None)
    snapshot = Snapshot(limit=limit, source_database=source, authenticated=authenticated)

    for spec in tables:
        report(f"→ Fetching {spec.name}...")
        try:
            rows = await fetch_table(store, spec, limit)
        except STORE_ERRORS as exc:
            logger.error("Failed to fetch %s: %s", spec.name, _describe(exc))
            report(f"   ❌ Error: Failed to fetch {spec.name}: {_describe(exc)}")
            rows = []
        else:
            if rows:
                report(f"   ✅ Fetched {len(rows)} records")
            else:
                report("   ℹ️  No records")
        snapshot.tables[spec.name] = rows

    return snapshot


def _describe(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)
