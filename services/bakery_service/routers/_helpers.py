"""Shared lookups for bakery routers."""

import uuid
from typing import Iterable, Optional

from fastapi import HTTPException
from services.bakery_service.catalog import ProductRecord
from services.bakery_service.models import Category, Order, Product, ProductTag
from services.bakery_service.schemas import ProductResponse, TagResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload


async def resolve_category(db: AsyncSession, value: str) -> Optional[Category]:
    """Find a category by id, falling back to a case-insensitive name match."""
    try:
        category_id = uuid.UUID(value)
    except ValueError:
        category_id = None
    if category_id is not None:
        category = await db.get(Category, category_id)
        if category:
            return category
    result = await db.execute(
        select(Category).where(func.lower(Category.name) == value.strip().lower())
    )
    return result.scalars().first()


async def load_product_records(
    db: AsyncSession, product_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, ProductRecord]:
    ids = set(product_ids)
    if not ids:
        return {}
    result = await db.execute(select(Product).where(Product.id.in_(ids)))
    return {p.id: ProductRecord.model_validate(p) for p in result.scalars().all()}


async def get_product_or_404(db: AsyncSession, product_id: uuid.UUID) -> Product:
    result = await db.execute(
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.product_tags).selectinload(ProductTag.tag))
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def get_order_or_404(db: AsyncSession, order_id: uuid.UUID) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_id).options(selectinload(Order.items))
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def product_detail_payload(product: Product) -> dict:
    """ProductDetail fields, flattening the tag links."""
    payload = ProductResponse.model_validate(product).model_dump()
    payload["tags"] = [
        TagResponse.model_validate(pt.tag) for pt in product.product_tags if pt.tag
    ]
    return payload
