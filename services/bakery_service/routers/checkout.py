"""Cart quoting, checkout and WhatsApp order requests."""

from typing import Iterable, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_optional_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.whatsapp import build_order_message, build_whatsapp_url
from libs.db.session import get_async_db
from services.bakery_service.cart import CartState, UnknownWeightOption
from services.bakery_service.reconciliation import order_from_cart
from services.bakery_service.routers._helpers import (
    get_order_or_404,
    load_product_records,
)
from services.bakery_service.schemas import (
    CartLineRequest,
    CartLineResponse,
    CartQuoteRequest,
    CartQuoteResponse,
    CheckoutRequest,
    OrderDetail,
    WhatsAppOrderRequest,
    WhatsAppOrderResponse,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])
logger = get_logger(__name__)
settings = get_settings()


async def build_cart(
    db: AsyncSession,
    items: Iterable[CartLineRequest],
    shipping_charges=0,
    discount_percent=0,
) -> CartState:
    """Replay requested lines into a cart, pricing them from the catalog."""
    items = list(items)
    products = await load_product_records(db, (i.product_id for i in items))

    cart = CartState()
    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.site_display:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {item.product_id} is not available",
            )
        try:
            cart = cart.add(product, item.weight, item.unit, item.quantity)
        except UnknownWeightOption as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
    return cart.with_shipping(shipping_charges).with_discount_percent(discount_percent)


def _quote_response(cart: CartState) -> CartQuoteResponse:
    totals = cart.totals()
    return CartQuoteResponse(
        items=[
            CartLineResponse(
                product_id=line.product_id,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                weight=line.weight,
                weight_unit=line.weight_unit,
                image=line.image,
                total=line.total,
            )
            for line in cart.lines
        ],
        item_count=cart.item_count,
        subtotal=totals.subtotal,
        shipping_charges=totals.shipping,
        discount_amount=totals.discount_amount,
        total=totals.total,
    )


def _require_items(cart: CartState) -> None:
    if cart.is_empty:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty"
        )


# ============================================================================
# CART
# ============================================================================


@router.post("/cart/quote", response_model=CartQuoteResponse)
async def quote_cart(
    body: CartQuoteRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Price a cart without persisting anything."""
    cart = await build_cart(
        db, body.items, body.shipping_charges, body.discount_percent
    )
    return _quote_response(cart)


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post(
    "/checkout", response_model=OrderDetail, status_code=status.HTTP_201_CREATED
)
async def checkout(
    body: CheckoutRequest,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a pending order with its items from the submitted cart."""
    cart = await build_cart(
        db, body.items, body.shipping_charges, body.discount_percent
    )
    _require_items(cart)

    customer = body.customer
    order = order_from_cart(
        cart,
        user_id=current_user.user_id if current_user else None,
        customer_name=customer.name,
        customer_email=customer.email or f"{customer.phone}@placeholder.com",
        customer_phone=customer.phone,
        customer_address=customer.address,
        notes=body.notes,
        custom_order_date=body.order_date,
        custom_invoice_date=body.invoice_date,
        delivery_date=customer.delivery_date,
    )
    db.add(order)
    await db.commit()

    logger.info(
        "Created order %s: %d items, total %s", order.id, len(cart.lines), order.total
    )
    return await get_order_or_404(db, order.id)


@router.post("/checkout/whatsapp", response_model=WhatsAppOrderResponse)
async def whatsapp_order(
    body: WhatsAppOrderRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Build the order request message and its wa.me link."""
    cart = await build_cart(db, body.items)
    _require_items(cart)

    customer = body.customer
    subtotal = cart.totals().subtotal
    message = build_order_message(
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_address=customer.address,
        lines=cart.lines,
        subtotal=subtotal,
        delivery_date=(
            customer.delivery_date.isoformat() if customer.delivery_date else None
        ),
    )
    url = build_whatsapp_url(settings.WHATSAPP_ADMIN_NUMBER, message)
    return WhatsAppOrderResponse(message=message, url=url, subtotal=subtotal)
