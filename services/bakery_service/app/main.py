"""FastAPI application for the Bakery Service."""

from fastapi import FastAPI
from libs.common.config import get_settings
from libs.common.logging import configure_logging, get_logger
from services.bakery_service.routers import (
    admin_accounts_router,
    admin_catalog_router,
    admin_orders_router,
    catalog_router,
    checkout_router,
)

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure the Bakery Service FastAPI app."""
    configure_logging(service="bakery")
    settings = get_settings()

    app = FastAPI(
        title="Bakery Storefront Service",
        version="0.1.0",
        description="Catalog, cart pricing, checkout and order administration for the bakery.",
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "bakery"}

    # Public storefront routes (catalog, cart quote, checkout)
    app.include_router(catalog_router, prefix="/store")
    app.include_router(checkout_router, prefix="/store")

    # Admin routes (catalog management, orders, invoices, users)
    app.include_router(admin_catalog_router, prefix="/admin/store")
    app.include_router(admin_orders_router, prefix="/admin/store")
    app.include_router(admin_accounts_router, prefix="/admin/store")

    logger.info("Bakery service configured (environment=%s)", settings.ENVIRONMENT)
    return app


app = create_app()
