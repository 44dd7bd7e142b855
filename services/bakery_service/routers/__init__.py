"""Bakery service routers package."""

from services.bakery_service.routers.admin_accounts import (
    router as admin_accounts_router,
)
from services.bakery_service.routers.admin_catalog import router as admin_catalog_router
from services.bakery_service.routers.admin_orders import router as admin_orders_router
from services.bakery_service.routers.catalog import router as catalog_router
from services.bakery_service.routers.checkout import router as checkout_router

__all__ = [
    "admin_accounts_router",
    "admin_catalog_router",
    "admin_orders_router",
    "catalog_router",
    "checkout_router",
]
