"""Admin account router: invoice settings, user profiles, dashboard stats."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.bakery_service.models import (
    InvoiceSettings,
    Order,
    OrderStatus,
    Product,
    Profile,
)
from services.bakery_service.routers.admin_orders import invoice_header
from services.bakery_service.schemas import (
    DashboardStats,
    InvoiceSettingsResponse,
    InvoiceSettingsUpdate,
    ProfileResponse,
    ProfileUpdate,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])
logger = get_logger(__name__)


# ============================================================================
# INVOICE SETTINGS
# ============================================================================


@router.get("/invoice-settings", response_model=InvoiceSettingsResponse)
async def get_invoice_settings(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """The signed-in admin's invoice header (defaults when none is saved)."""
    result = await db.execute(
        select(InvoiceSettings).where(InvoiceSettings.user_id == current_user.user_id)
    )
    saved = result.scalar_one_or_none()
    if saved:
        return saved
    header = await invoice_header(db, current_user.user_id)
    return InvoiceSettingsResponse(
        business_name=header["business_name"],
        business_subtitle=header["business_subtitle"],
        phone=header["business_phone"],
        email=header["business_email"],
    )


@router.put("/invoice-settings", response_model=InvoiceSettingsResponse)
async def save_invoice_settings(
    body: InvoiceSettingsUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create or replace the signed-in admin's invoice header."""
    result = await db.execute(
        select(InvoiceSettings).where(InvoiceSettings.user_id == current_user.user_id)
    )
    saved = result.scalar_one_or_none()
    if saved is None:
        saved = InvoiceSettings(user_id=current_user.user_id, **body.model_dump())
        db.add(saved)
    else:
        for field, value in body.model_dump().items():
            setattr(saved, field, value)
    await db.commit()
    await db.refresh(saved)
    return saved


# ============================================================================
# USERS
# ============================================================================


@router.get("/users", response_model=list[ProfileResponse])
async def list_profiles(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(select(Profile).order_by(Profile.created_at.desc()))
    return result.scalars().all()


@router.patch("/users/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: uuid.UUID,
    body: ProfileUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    await db.commit()
    await db.refresh(profile)
    return profile


@router.delete("/users/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    profile_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a profile row. The auth identity itself is left untouched."""
    profile = await db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    await db.delete(profile)
    await db.commit()
    logger.info("Profile %s deleted by %s", profile_id, current_user.user_id)


# ============================================================================
# DASHBOARD
# ============================================================================


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Order counts by status, revenue and catalog size."""
    rows = await db.execute(
        select(Order.status, func.count(Order.id)).group_by(Order.status)
    )
    by_status = {s.value: 0 for s in OrderStatus}
    for order_status, count in rows.all():
        by_status[OrderStatus(order_status).value] = count

    revenue = await db.execute(select(func.coalesce(func.sum(Order.total), 0)))
    products = await db.execute(select(func.count(Product.id)))

    return DashboardStats(
        total_orders=sum(by_status.values()),
        pending_orders=by_status[OrderStatus.PENDING.value],
        shipped_orders=by_status[OrderStatus.SHIPPED.value],
        orders_by_status=by_status,
        total_revenue=revenue.scalar() or 0,
        total_products=products.scalar() or 0,
    )
