"""FastAPI application for the VendorVault marketplace service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from libs.db.config import Database
from services.marketplace_service.routers import (
    admin_catalog_router,
    admin_evaluations_router,
    admin_goods_router,
    admin_members_router,
    admin_orders_router,
    admin_statistics_router,
    admin_stores_router,
    auth_router,
    buyer_account_router,
    buyer_catalog_router,
    buyer_evaluations_router,
    buyer_orders_router,
    payments_router,
    store_evaluations_router,
    store_goods_router,
    store_orders_router,
    store_settings_router,
    store_statistics_router,
    uploads_router,
)
from slowapi.errors import RateLimitExceeded

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db = Database()
    logger.info("Database engine created")
    try:
        yield
    finally:
        await app.state.db.dispose()
        logger.info("Database engine disposed")


def create_app() -> FastAPI:
    """Create and configure the marketplace FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="VendorVault Marketplace Service",
        version="0.1.0",
        description="Multi-vendor marketplace: catalogue, stores, orders and evaluations.",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured logging + request tracing
    add_observability_middleware(app)

    # Typed errors -> {"code", "detail"} responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "service": "marketplace"}

    app.include_router(auth_router)

    # Buyer-facing routes
    app.include_router(buyer_catalog_router)
    app.include_router(buyer_account_router)
    app.include_router(buyer_orders_router)
    app.include_router(buyer_evaluations_router)

    # Seller routes (store session tokens)
    app.include_router(store_goods_router)
    app.include_router(store_orders_router)
    app.include_router(store_evaluations_router)
    app.include_router(store_settings_router)
    app.include_router(store_statistics_router)

    # Admin routes
    app.include_router(admin_catalog_router)
    app.include_router(admin_goods_router)
    app.include_router(admin_stores_router)
    app.include_router(admin_members_router)
    app.include_router(admin_orders_router)
    app.include_router(admin_evaluations_router)
    app.include_router(admin_statistics_router)

    app.include_router(payments_router)
    app.include_router(uploads_router)

    return app


app = create_app()
