"""Shopping cart state.

``CartState`` is immutable: every operation returns a new cart, so a request
handler can replay a sequence of edits without sharing state between sessions.
Lines are keyed by product id and resolved weight; adding the same product at
the same weight bumps the quantity of the existing line.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import NamedTuple, Optional, Tuple

from libs.common.pricing import (
    compute_discount_from_percent,
    compute_line_total,
    compute_order_totals,
    round_price,
    to_decimal,
)
from libs.common.units import format_weight, is_piece_unit
from services.bakery_service.catalog import ProductRecord

CartKey = Tuple[str, Optional[Decimal]]


class UnknownWeightOption(ValueError):
    """Requested weight is neither the base weight nor a declared option."""


class ResolvedVariant(NamedTuple):
    weight: Optional[Decimal]
    unit: Optional[str]
    price: Decimal


def base_variant_weight(
    product: ProductRecord, unit: Optional[str] = None
) -> Optional[Decimal]:
    """Weight of the base variant; piece-counted products default to 1."""
    if product.base_weight:
        return product.base_weight
    if is_piece_unit(unit or product.weight_unit):
        return Decimal("1")
    return None


def resolve_variant(
    product: ProductRecord,
    weight: Optional[Decimal] = None,
    unit: Optional[str] = None,
) -> ResolvedVariant:
    """Pick the weight, unit and unit price a product is added to the cart at.

    With no weight the product's base weight and price are used. A weight
    matching one of ``weight_options`` takes that option's selling price. A
    weight equal to the resolved base weight selects the base variant, so a
    line echoed back from a quote resolves to the same line.
    """
    price = product.unit_price
    if weight is None:
        weight = product.base_weight
        unit = unit or product.weight_unit
    else:
        weight = to_decimal(weight)
        option = product.find_option(weight, unit)
        if option is not None:
            price = option.selling_price
            unit = option.unit
        elif weight == base_variant_weight(product, unit):
            unit = unit or product.weight_unit
        else:
            raise UnknownWeightOption(
                f"Product {product.id} has no {format_weight(weight)} {unit or ''} option".strip()
            )

    if is_piece_unit(unit) and not weight:
        weight = Decimal("1")
    return ResolvedVariant(weight=weight or None, unit=unit, price=price)


def display_name(
    name: str,
    category: Optional[str],
    weight: Optional[Decimal],
    unit: Optional[str],
) -> str:
    """``"Walnut Brownie (Eggless) (6pieces)"``-style cart label."""
    category_lower = (category or "").lower()
    if "brownie" in category_lower:
        name = f"{name} (Eggless)" if "eggless" in category_lower else f"{name} (Regular)"
    if weight and unit:
        return f"{name} ({format_weight(weight)}{unit})"
    return name


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None

    @property
    def key(self) -> CartKey:
        return (self.product_id, self.weight or None)

    @property
    def total(self) -> int:
        return compute_line_total(self.unit_price, self.quantity)


class CartTotals(NamedTuple):
    subtotal: int
    shipping: int
    discount_amount: int
    total: int


@dataclass(frozen=True)
class CartState:
    lines: Tuple[CartLine, ...] = ()
    shipping: Decimal = Decimal("0")
    discount_percent: Decimal = Decimal("0")

    def _find(self, key: CartKey) -> Optional[int]:
        for idx, line in enumerate(self.lines):
            if line.key == key:
                return idx
        return None

    def get(self, key: CartKey) -> Optional[CartLine]:
        idx = self._find(key)
        return None if idx is None else self.lines[idx]

    def add(
        self,
        product: ProductRecord,
        weight: Optional[Decimal] = None,
        unit: Optional[str] = None,
        quantity: int = 1,
    ) -> "CartState":
        if quantity <= 0:
            return self
        variant = resolve_variant(product, weight, unit)
        key = (str(product.id), variant.weight)
        idx = self._find(key)
        if idx is not None:
            existing = self.lines[idx]
            updated = replace(existing, quantity=existing.quantity + quantity)
            lines = self.lines[:idx] + (updated,) + self.lines[idx + 1 :]
            return replace(self, lines=lines)

        line = CartLine(
            product_id=str(product.id),
            name=display_name(product.name, product.category, variant.weight, variant.unit),
            unit_price=variant.price,
            quantity=quantity,
            weight=variant.weight,
            weight_unit=variant.unit,
            image=product.image,
            category=product.category,
        )
        return replace(self, lines=self.lines + (line,))

    def update_quantity(self, key: CartKey, quantity: int) -> "CartState":
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.remove(key)
        idx = self._find(key)
        if idx is None:
            return self
        updated = replace(self.lines[idx], quantity=quantity)
        return replace(self, lines=self.lines[:idx] + (updated,) + self.lines[idx + 1 :])

    def remove(self, key: CartKey) -> "CartState":
        return replace(self, lines=tuple(ln for ln in self.lines if ln.key != key))

    def clear(self) -> "CartState":
        return replace(self, lines=())

    def with_shipping(self, amount) -> "CartState":
        return replace(self, shipping=to_decimal(amount))

    def with_discount_percent(self, percent) -> "CartState":
        value = to_decimal(percent)
        value = min(max(value, Decimal("0")), Decimal("100"))
        return replace(self, discount_percent=value)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def subtotal(self) -> int:
        return sum(line.total for line in self.lines)

    def totals(self) -> CartTotals:
        subtotal = self.subtotal
        discount_amount = compute_discount_from_percent(subtotal, self.discount_percent)
        order_totals = compute_order_totals(
            [line.total for line in self.lines], self.shipping, discount_amount
        )
        return CartTotals(
            subtotal=order_totals.subtotal,
            shipping=round_price(self.shipping),
            discount_amount=discount_amount,
            total=order_totals.total,
        )
