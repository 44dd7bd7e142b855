"""Admin catalog router: products, categories, base categories, tags."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.bakery_service.catalog import dump_weight_options
from services.bakery_service.models import (
    BaseCategory,
    Category,
    OrderItem,
    Product,
    ProductTag,
    Tag,
)
from services.bakery_service.routers._helpers import (
    get_product_or_404,
    product_detail_payload,
)
from services.bakery_service.schemas import (
    BaseCategoryCreate,
    BaseCategoryResponse,
    BaseCategoryUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductDetail,
    ProductResponse,
    ProductUpdate,
    TagCreate,
    TagResponse,
    TagUpdate,
)
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])
logger = get_logger(__name__)


async def _ensure_unique_name(
    db: AsyncSession, model, name: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    query = select(model).where(func.lower(model.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalars().first():
        raise HTTPException(
            status_code=400,
            detail=f"{model.__name__} with this name already exists",
        )


async def _get_or_404(db: AsyncSession, model, entity_id: uuid.UUID):
    entity = await db.get(model, entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail=f"{model.__name__} not found")
    return entity


# ============================================================================
# PRODUCTS
# ============================================================================


async def _sync_category_name(db: AsyncSession, product: Product) -> None:
    """Keep the legacy ``category`` string in step with ``category_id``."""
    if product.category_id is None:
        return
    category = await db.get(Category, product.category_id)
    if not category:
        raise HTTPException(status_code=400, detail="Category not found")
    product.category = category.name


async def _replace_tags(
    db: AsyncSession, product_id: uuid.UUID, tag_ids: list[uuid.UUID]
) -> None:
    """Delete the product's tag links, then insert the new set."""
    await db.execute(delete(ProductTag).where(ProductTag.product_id == product_id))
    unique_ids = list(dict.fromkeys(tag_ids))
    if unique_ids:
        found = await db.execute(select(Tag.id).where(Tag.id.in_(unique_ids)))
        missing = set(unique_ids) - set(found.scalars().all())
        if missing:
            raise HTTPException(status_code=400, detail="Unknown tag id(s)")
    for tag_id in unique_ids:
        db.add(ProductTag(product_id=product_id, tag_id=tag_id))


@router.get("/products", response_model=list[ProductResponse])
async def list_all_products(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all products, including hidden ones."""
    result = await db.execute(select(Product).order_by(Product.created_at.desc()))
    return result.scalars().all()


@router.post(
    "/products", response_model=ProductDetail, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a product and its tag links."""
    data = product_in.model_dump(exclude={"tag_ids", "weight_options"})
    product = Product(
        **data,
        weight_options=dump_weight_options(product_in.weight_options),
    )
    await _sync_category_name(db, product)
    db.add(product)
    await db.flush()

    await _replace_tags(db, product.id, product_in.tag_ids)
    await db.commit()

    logger.info("Product %s created by %s", product.id, current_user.user_id)
    db.expunge(product)
    return product_detail_payload(await get_product_or_404(db, product.id))


@router.patch("/products/{product_id}", response_model=ProductDetail)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a product. A supplied ``tag_ids`` replaces the whole tag set."""
    product = await _get_or_404(db, Product, product_id)

    update_data = product_in.model_dump(exclude_unset=True, exclude={"tag_ids"})
    if "weight_options" in update_data:
        update_data["weight_options"] = dump_weight_options(product_in.weight_options)
    for field, value in update_data.items():
        setattr(product, field, value)
    if "category_id" in update_data:
        if product.category_id is None:
            product.category = None
        await _sync_category_name(db, product)

    if product_in.tag_ids is not None:
        await _replace_tags(db, product.id, product_in.tag_ids)

    await db.commit()
    db.expunge(product)
    return product_detail_payload(await get_product_or_404(db, product_id))


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product; order items keep their snapshot without the link."""
    product = await _get_or_404(db, Product, product_id)
    await db.execute(delete(ProductTag).where(ProductTag.product_id == product_id))
    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id == product_id)
        .values(product_id=None)
    )
    await db.delete(product)
    await db.commit()
    logger.info("Product %s deleted by %s", product_id, current_user.user_id)


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_all_categories(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(select(Category).order_by(Category.name))
    return result.scalars().all()


@router.post(
    "/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(
    category_in: CategoryCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a new category."""
    await _ensure_unique_name(db, Category, category_in.name)
    if category_in.base_category_id:
        await _get_or_404(db, BaseCategory, category_in.base_category_id)

    category = Category(**category_in.model_dump())
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    category_in: CategoryUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a category; a rename is carried to linked products' legacy name."""
    category = await _get_or_404(db, Category, category_id)
    update_data = category_in.model_dump(exclude_unset=True)

    if "name" in update_data and update_data["name"] != category.name:
        await _ensure_unique_name(db, Category, update_data["name"], category_id)
        await db.execute(
            update(Product)
            .where(Product.category_id == category_id)
            .values(category=update_data["name"])
        )
    if update_data.get("base_category_id"):
        await _get_or_404(db, BaseCategory, update_data["base_category_id"])

    for field, value in update_data.items():
        setattr(category, field, value)

    await db.commit()
    await db.refresh(category)
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a category after unlinking its products."""
    category = await _get_or_404(db, Category, category_id)
    await db.execute(
        update(Product)
        .where(Product.category_id == category_id)
        .values(category_id=None)
    )
    await db.delete(category)
    await db.commit()


# ============================================================================
# BASE CATEGORIES
# ============================================================================


@router.get("/base-categories", response_model=list[BaseCategoryResponse])
async def list_base_categories(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(select(BaseCategory).order_by(BaseCategory.name))
    return result.scalars().all()


@router.post(
    "/base-categories",
    response_model=BaseCategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_base_category(
    base_in: BaseCategoryCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _ensure_unique_name(db, BaseCategory, base_in.name)
    base = BaseCategory(**base_in.model_dump())
    db.add(base)
    await db.commit()
    await db.refresh(base)
    return base


@router.patch("/base-categories/{base_id}", response_model=BaseCategoryResponse)
async def update_base_category(
    base_id: uuid.UUID,
    base_in: BaseCategoryUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    base = await _get_or_404(db, BaseCategory, base_id)
    update_data = base_in.model_dump(exclude_unset=True)
    if "name" in update_data:
        await _ensure_unique_name(db, BaseCategory, update_data["name"], base_id)
    for field, value in update_data.items():
        setattr(base, field, value)
    await db.commit()
    await db.refresh(base)
    return base


@router.delete("/base-categories/{base_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_base_category(
    base_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a base category after unlinking its categories."""
    base = await _get_or_404(db, BaseCategory, base_id)
    await db.execute(
        update(Category)
        .where(Category.base_category_id == base_id)
        .values(base_category_id=None)
    )
    await db.delete(base)
    await db.commit()


# ============================================================================
# TAGS
# ============================================================================


@router.get("/tags", response_model=list[TagResponse])
async def list_all_tags(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(select(Tag).order_by(Tag.name))
    return result.scalars().all()


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    tag_in: TagCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _ensure_unique_name(db, Tag, tag_in.name)
    tag = Tag(**tag_in.model_dump())
    db.add(tag)
    await db.commit()
    await db.refresh(tag)
    return tag


@router.patch("/tags/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: uuid.UUID,
    tag_in: TagUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    tag = await _get_or_404(db, Tag, tag_id)
    update_data = tag_in.model_dump(exclude_unset=True)
    if "name" in update_data:
        await _ensure_unique_name(db, Tag, update_data["name"], tag_id)
    for field, value in update_data.items():
        setattr(tag, field, value)
    await db.commit()
    await db.refresh(tag)
    return tag


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a tag and its product links."""
    tag = await _get_or_404(db, Tag, tag_id)
    await db.execute(delete(ProductTag).where(ProductTag.tag_id == tag_id))
    await db.delete(tag)
    await db.commit()
