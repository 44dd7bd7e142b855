"""Price arithmetic for carts, orders and invoices.

All money is in whole rupees once it has been stored. Unit prices may carry
paise (e.g. ₹149.50) but every derived amount passes through ``round_price``
before it is persisted or displayed.

Derived fields
--------------
line total = round_price(unit price × quantity)
subtotal   = Σ line totals
discount   = round_price(subtotal × percent / 100)   (checkout only)
total      = round_price(subtotal + shipping − discount)
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Iterable, NamedTuple, Union

Number = Union[int, float, Decimal, str]

_HALF = Decimal("0.5")


def to_decimal(value: Number | None) -> Decimal:
    """Convert a price-like value to Decimal without float artefacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_price(amount: Number | None) -> int:
    """Round to the nearest whole unit, halves going up.

    The fractional part is measured from the floor, so ``-10.5`` becomes
    ``-10`` and ``10.5`` becomes ``11``.
    """
    value = to_decimal(amount)
    floor = value.to_integral_value(rounding=ROUND_FLOOR)
    if value - floor >= _HALF:
        floor += 1
    return int(floor)


def compute_line_total(unit_price: Number | None, quantity: int) -> int:
    """Line total for ``quantity`` units at ``unit_price``."""
    return round_price(to_decimal(unit_price) * quantity)


class OrderTotals(NamedTuple):
    subtotal: int
    total: int


def compute_order_totals(
    line_totals: Iterable[Number],
    shipping: Number | None = 0,
    discount_amount: Number | None = 0,
) -> OrderTotals:
    """Subtotal and total from stored line totals and the adjustments."""
    subtotal = sum((to_decimal(t) for t in line_totals), Decimal("0"))
    total = round_price(subtotal + to_decimal(shipping) - to_decimal(discount_amount))
    return OrderTotals(subtotal=round_price(subtotal), total=total)


def compute_discount_from_percent(subtotal: Number, percent: Number | None) -> int:
    """Checkout discount amount for a percentage off the subtotal."""
    return round_price(to_decimal(subtotal) * to_decimal(percent) / 100)
