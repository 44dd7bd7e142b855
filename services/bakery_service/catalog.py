"""Catalog boundary types and category resolution.

Rows arrive from the database (or a backup) loosely typed: ``weight_options``
may be a JSON string, a list or null, and old rows only carry the flat
``price``. ``ProductRecord`` normalises both on ingestion so the cart never
has to.
"""

import json
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from services.bakery_service.models import Category, Product
from sqlalchemy import and_, or_


class WeightOption(BaseModel):
    """An alternate priced variant of a product, distinguished by weight."""

    model_config = ConfigDict(frozen=True)

    weight: Decimal
    unit: str
    mrp: Optional[Decimal] = None
    selling_price: Decimal


class ProductRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    name: str
    mrp: Decimal = Decimal("0")
    selling_price: Optional[Decimal] = None
    price: Optional[Decimal] = None
    category: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    image: Optional[str] = None
    base_weight: Optional[Decimal] = None
    weight_unit: Optional[str] = None
    weight_options: list[WeightOption] = []
    site_display: bool = True

    @field_validator("weight_options", mode="before")
    @classmethod
    def parse_weight_options(cls, v):
        if v is None or v == "":
            return []
        if isinstance(v, str):
            v = json.loads(v)
        return v or []

    @property
    def unit_price(self) -> Decimal:
        """Selling price, falling back to the legacy flat price."""
        if self.selling_price is not None:
            return self.selling_price
        if self.price is not None:
            return self.price
        return Decimal("0")

    def find_option(self, weight: Decimal, unit: Optional[str] = None) -> Optional[WeightOption]:
        for option in self.weight_options:
            if option.weight == weight and (unit is None or option.unit == unit):
                return option
        return None


def product_in_category(product, category) -> bool:
    """Whether ``product`` belongs to ``category``.

    A product with a ``category_id`` is matched by id only; older products
    without one fall back to the legacy category name string.
    """
    if product.category_id:
        return product.category_id == category.id
    return (product.category or "") == category.name


def category_filter(category: Category):
    """SQL expression equivalent of ``product_in_category``."""
    return or_(
        Product.category_id == category.id,
        and_(Product.category_id.is_(None), Product.category == category.name),
    )


def _json_number(value):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def dump_weight_options(options) -> list[dict]:
    """Weight options as stored in the JSON column, with plain numbers."""
    return [
        {key: _json_number(val) for key, val in option.model_dump().items()}
        for option in options or []
    ]
