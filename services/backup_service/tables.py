"""Tables covered by backup and restore, and the order they are processed in."""

from typing import NamedTuple, Optional


class TableSpec(NamedTuple):
    name: str
    order_by: Optional[str] = "created_at"
    ascending: bool = False


# Export order; each table's natural ordering column and direction
BACKUP_TABLES = (
    TableSpec("orders"),
    TableSpec("order_items"),
    TableSpec("products"),
    TableSpec("invoice_settings"),
    TableSpec("profiles"),
    TableSpec("tags", order_by="name", ascending=True),
    TableSpec("product_tags"),
    TableSpec("categories"),
    TableSpec("base_categories"),
)

# Referenced rows are written before the rows that reference them
INSERT_ORDER = (
    "base_categories",
    "categories",
    "tags",
    "products",
    "product_tags",
    "profiles",
    "invoice_settings",
    "orders",
    "order_items",
)

# Unique on name: conflicting rows are left as they are
NAME_UNIQUE_TABLES = frozenset({"base_categories", "categories", "tags"})

# Rows carry a user_id from the hosted auth system
AUTH_DEPENDENT_TABLES = frozenset({"profiles", "invoice_settings", "orders"})
