"""Weight unit helpers shared by the cart, orders and invoices."""

from decimal import Decimal
from typing import Optional, Union

# Units whose weight is a count; a missing weight means one piece
PIECE_UNITS = frozenset({"piece", "pieces"})


def is_piece_unit(unit: Optional[str]) -> bool:
    return bool(unit) and unit.strip().lower() in PIECE_UNITS


def format_weight(weight: Optional[Union[int, float, Decimal, str]]) -> str:
    """``Decimal("500.00")`` -> ``"500"``, ``0.5`` -> ``"0.5"``."""
    if weight is None:
        return ""
    value = Decimal(str(weight)).normalize()
    return format(value, "f")
