"""Bakery service models package."""

from services.bakery_service.models.accounts import InvoiceSettings, Profile
from services.bakery_service.models.catalog import (
    BaseCategory,
    Category,
    Product,
    ProductTag,
    Tag,
)
from services.bakery_service.models.commerce import Order, OrderItem
from services.bakery_service.models.enums import OrderStatus

__all__ = [
    "BaseCategory",
    "Category",
    "InvoiceSettings",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "ProductTag",
    "Profile",
    "Tag",
]
