"""Admin order router: listing, status, full edit, deletion, PDF invoices."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.pdf import generate_invoice_pdf, invoice_filename
from libs.db.session import get_async_db
from services.bakery_service.models import InvoiceSettings, Order, OrderStatus
from services.bakery_service.reconciliation import apply_item_edits, set_adjustments
from services.bakery_service.routers._helpers import get_order_or_404
from services.bakery_service.schemas import (
    OrderDetail,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])
logger = get_logger(__name__)
settings = get_settings()

ORDER_CONTACT_FIELDS = (
    "customer_name",
    "customer_email",
    "customer_phone",
    "customer_address",
    "notes",
    "status",
    "shipment_number",
    "custom_order_date",
    "custom_invoice_date",
    "delivery_date",
)


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List orders, newest first."""
    query = select(Order)
    if status_filter:
        query = query.where(Order.status == status_filter)
    query = query.order_by(Order.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_order_or_404(db, order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    body: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Move an order to another status."""
    order = await get_order_or_404(db, order_id)
    old_status = order.status
    order.status = body.status
    await db.commit()
    logger.info(
        "Order %s status %s -> %s by %s",
        order_id,
        old_status.value,
        body.status.value,
        current_user.user_id,
    )
    return order


@router.put("/orders/{order_id}", response_model=OrderDetail)
async def update_order(
    order_id: uuid.UUID,
    body: OrderUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Edit an order and its items, re-deriving every stored total.

    The order and its items are written in one transaction.
    """
    order = await get_order_or_404(db, order_id)

    known_ids = {item.id for item in order.items}
    unknown = [str(edit.id) for edit in body.items if edit.id not in known_ids]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Items not on this order: {', '.join(unknown)}",
        )

    update_data = body.model_dump(exclude_unset=True)
    for field in ORDER_CONTACT_FIELDS:
        if field in update_data:
            setattr(order, field, update_data[field])

    apply_item_edits(order, [item.model_dump(exclude_unset=True) for item in body.items])
    set_adjustments(
        order,
        shipping_charges=body.shipping_charges,
        discount_amount=body.discount_amount,
    )
    await db.commit()

    logger.info("Order %s edited by %s", order_id, current_user.user_id)
    return await get_order_or_404(db, order_id)


@router.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete an order together with its items."""
    order = await get_order_or_404(db, order_id)
    total = order.total
    await db.delete(order)
    await db.commit()
    logger.info(
        "Order %s deleted by %s, revenue reduced by %s",
        order_id,
        current_user.user_id,
        total,
    )


# ============================================================================
# INVOICE
# ============================================================================


async def invoice_header(db: AsyncSession, user_id: str) -> dict:
    """The admin's saved invoice header, or the configured business defaults."""
    result = await db.execute(
        select(InvoiceSettings).where(InvoiceSettings.user_id == user_id)
    )
    saved = result.scalar_one_or_none()
    if saved:
        return {
            "business_name": saved.business_name,
            "business_subtitle": saved.business_subtitle,
            "business_phone": saved.phone,
            "business_email": saved.email,
        }
    return {
        "business_name": settings.BUSINESS_NAME,
        "business_subtitle": settings.BUSINESS_SUBTITLE,
        "business_phone": settings.BUSINESS_PHONE,
        "business_email": settings.BUSINESS_EMAIL,
    }


@router.get("/orders/{order_id}/invoice")
async def download_invoice(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Render the order's invoice as a PDF download."""
    order = await get_order_or_404(db, order_id)
    header = await invoice_header(db, current_user.user_id)

    pdf_bytes = generate_invoice_pdf(
        order_id=str(order.id),
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_address=order.customer_address,
        items=[
            {
                "product_name": item.product_name,
                "weight": item.weight,
                "weight_unit": item.weight_unit,
                "quantity": item.quantity,
                "product_price": item.product_price,
                "total": item.total,
            }
            for item in order.items
        ],
        subtotal=order.subtotal,
        shipping_charges=order.shipping_charges,
        discount_amount=order.discount_amount,
        total=order.total,
        order_date=order.custom_order_date or order.order_date,
        invoice_date=order.custom_invoice_date,
        delivery_date=order.delivery_date,
        shipment_number=order.shipment_number,
        **header,
    )

    filename = invoice_filename(order.customer_name, str(order.id))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
