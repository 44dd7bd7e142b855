"""Keep stored order totals consistent with their line items.

``Order.subtotal``/``Order.total`` and ``OrderItem.total`` are persisted
fields. Every mutation path (checkout, admin edit, item removal) goes through
the functions here so that after a flush:

    item.total     == round_price(item.product_price * item.quantity)
    order.subtotal == sum(item.total for item in order.items)
    order.total    == round_price(order.subtotal + shipping - discount)

The caller must have ``Order.items`` loaded (``selectinload``) before calling.
"""

import uuid
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from libs.common.logging import get_logger
from libs.common.pricing import compute_line_total, compute_order_totals, to_decimal
from services.bakery_service.cart import CartState
from services.bakery_service.models import Order, OrderItem, OrderStatus

logger = get_logger(__name__)

ITEM_EDITABLE_FIELDS = (
    "product_name",
    "product_price",
    "quantity",
    "weight",
    "weight_unit",
)


def reprice_item(item: OrderItem) -> OrderItem:
    item.total = Decimal(compute_line_total(item.product_price, item.quantity))
    return item


def recompute_order(order: Order) -> Order:
    """Re-derive subtotal and total from the stored line totals."""
    totals = compute_order_totals(
        (item.total for item in order.items),
        order.shipping_charges,
        order.discount_amount,
    )
    order.subtotal = Decimal(totals.subtotal)
    order.total = Decimal(totals.total)
    return order


def order_from_cart(cart: CartState, **order_fields) -> Order:
    """Build a pending order and its items from a priced cart."""
    totals = cart.totals()
    order = Order(
        status=OrderStatus.PENDING,
        shipping_charges=Decimal(totals.shipping),
        discount_amount=Decimal(totals.discount_amount),
        **order_fields,
    )
    order.items = [
        OrderItem(
            product_id=uuid.UUID(line.product_id),
            product_name=line.name,
            product_price=line.unit_price,
            quantity=line.quantity,
            total=Decimal(line.total),
            weight=line.weight,
            weight_unit=line.weight_unit,
        )
        for line in cart.lines
    ]
    recompute_order(order)
    return order


def apply_item_edits(order: Order, edits: Iterable[Mapping]) -> list:
    """Apply per-item edits keyed by ``id``.

    Only fields present in an edit are changed. An item edited to quantity 0
    (or less) is removed from the order. Later edits for an item already
    removed are skipped. Edits naming an item that does not
    belong to the order are ignored and returned.
    """
    by_id = {str(item.id): item for item in order.items}
    removed = set()
    unknown = []
    for edit in edits:
        key = str(edit.get("id"))
        if key in removed:
            continue
        item = by_id.get(key)
        if item is None:
            unknown.append(edit.get("id"))
            continue
        for name in ITEM_EDITABLE_FIELDS:
            if name in edit and edit[name] is not None:
                setattr(item, name, edit[name])
            elif name in ("weight", "weight_unit") and name in edit:
                setattr(item, name, None)
        if item.quantity <= 0:
            order.items.remove(item)
            removed.add(key)
            logger.info("Removed item %s from order %s", item.id, order.id)
            continue
        reprice_item(item)

    if unknown:
        logger.warning("Ignored edits for unknown items on order %s: %s", order.id, unknown)
    recompute_order(order)
    return unknown


def set_adjustments(
    order: Order,
    shipping_charges: Optional[Decimal] = None,
    discount_amount: Optional[Decimal] = None,
) -> Order:
    """Change shipping and/or the absolute discount, then recompute."""
    if shipping_charges is not None:
        order.shipping_charges = to_decimal(shipping_charges)
    if discount_amount is not None:
        order.discount_amount = to_decimal(discount_amount)
    return recompute_order(order)
