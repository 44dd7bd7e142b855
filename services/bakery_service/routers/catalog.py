"""Storefront catalog router: products, categories, tags."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from libs.db.session import get_async_db
from services.bakery_service.catalog import category_filter
from services.bakery_service.models import Category, Product, ProductTag, Tag
from services.bakery_service.routers._helpers import (
    get_product_or_404,
    product_detail_payload,
    resolve_category,
)
from services.bakery_service.schemas import (
    CategoryWithBase,
    ProductDetail,
    ProductResponse,
    TagResponse,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


# ============================================================================
# CATALOG - PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """List storefront products, newest first.

    ``category`` accepts a category id or name. Products linked by
    ``category_id`` match on the id; older products without one match on the
    legacy category name.
    """
    query = select(Product).where(Product.site_display.is_(True))

    if category:
        resolved = await resolve_category(db, category)
        if resolved:
            query = query.where(category_filter(resolved))
        else:
            query = query.where(
                Product.category_id.is_(None),
                func.lower(Product.category) == category.strip().lower(),
            )

    if tag:
        tag_query = select(ProductTag.product_id).join(Tag)
        try:
            tag_query = tag_query.where(Tag.id == uuid.UUID(tag))
        except ValueError:
            tag_query = tag_query.where(func.lower(Tag.name) == tag.strip().lower())
        query = query.where(Product.id.in_(tag_query))

    query = query.order_by(Product.created_at.desc())
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/products/{product_id}", response_model=ProductDetail)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Get a storefront product with its tags."""
    product = await get_product_or_404(db, product_id)
    if not product.site_display:
        raise HTTPException(status_code=404, detail="Product not found")
    return product_detail_payload(product)


# ============================================================================
# CATALOG - TAXONOMY
# ============================================================================


@router.get("/categories", response_model=list[CategoryWithBase])
async def list_categories(
    db: AsyncSession = Depends(get_async_db),
):
    """List categories with their base category."""
    query = (
        select(Category)
        .options(selectinload(Category.base_category))
        .order_by(Category.name)
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/tags", response_model=list[TagResponse])
async def list_tags(
    db: AsyncSession = Depends(get_async_db),
):
    """List all tags."""
    result = await db.execute(select(Tag).order_by(Tag.name))
    return result.scalars().all()
