"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(name="Walnut Brownie")
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_name(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:6]}"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class BaseCategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.bakery_service.models import BaseCategory

        defaults = {
            "id": _uuid(),
            "name": _unique_name("base"),
            "display_name": "Bakes",
        }
        defaults.update(overrides)
        return BaseCategory(**defaults)


class CategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.bakery_service.models import Category

        defaults = {
            "id": _uuid(),
            "name": _unique_name("category"),
            "display_name": "Category",
        }
        defaults.update(overrides)
        return Category(**defaults)


class TagFactory:
    @staticmethod
    def create(**overrides):
        from services.bakery_service.models import Tag

        defaults = {"id": _uuid(), "name": _unique_name("tag"), "color": "#d4a574"}
        defaults.update(overrides)
        return Tag(**defaults)


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.bakery_service.models import Product

        defaults = {
            "id": _uuid(),
            "name": "Chocolate Truffle Cake",
            "mrp": Decimal("350"),
            "selling_price": Decimal("299"),
            "stock": 10,
            "base_weight": Decimal("500"),
            "weight_unit": "grams",
            "weight_options": [],
            "site_display": True,
            "created_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderFactory:
    @staticmethod
    def create(items=(), **overrides):
        """Order with ``items`` (OrderItem instances); totals are not derived."""
        from services.bakery_service.models import Order, OrderStatus

        defaults = {
            "id": _uuid(),
            "user_id": "admin-user-id",
            "customer_name": "Asha Kumar",
            "customer_email": "9876543210@placeholder.com",
            "customer_phone": "9876543210",
            "customer_address": "12 Lake Road, Chennai",
            "subtotal": Decimal("0"),
            "shipping_charges": Decimal("0"),
            "discount_amount": Decimal("0"),
            "total": Decimal("0"),
            "status": OrderStatus.PENDING,
            "order_date": _now(),
            "created_at": _now(),
        }
        defaults.update(overrides)
        order = Order(**defaults)
        order.items = list(items)
        return order


class OrderItemFactory:
    _sequence = 0

    @classmethod
    def create(cls, **overrides):
        from services.bakery_service.models import OrderItem

        # Distinct created_at keeps Order.items ordering stable
        cls._sequence += 1
        defaults = {
            "id": _uuid(),
            "product_id": None,
            "product_name": "Chocolate Truffle Cake (500grams)",
            "product_price": Decimal("299"),
            "quantity": 1,
            "total": Decimal("299"),
            "weight": Decimal("500"),
            "weight_unit": "grams",
            "created_at": _now() + timedelta(microseconds=cls._sequence),
        }
        defaults.update(overrides)
        return OrderItem(**defaults)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class ProfileFactory:
    @staticmethod
    def create(**overrides):
        from services.bakery_service.models import Profile

        defaults = {
            "id": _uuid(),
            "user_id": str(_uuid()),
            "email": f"{uuid.uuid4().hex[:8]}@test.com",
            "full_name": "Test Admin",
            "phone": "9876543210",
        }
        defaults.update(overrides)
        return Profile(**defaults)
