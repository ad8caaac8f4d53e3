"""Marketplace service routers."""

from services.marketplace_service.routers.admin_catalog import (
    router as admin_catalog_router,
)
from services.marketplace_service.routers.admin_evaluations import (
    router as admin_evaluations_router,
)
from services.marketplace_service.routers.admin_goods import router as admin_goods_router
from services.marketplace_service.routers.admin_members import (
    router as admin_members_router,
)
from services.marketplace_service.routers.admin_orders import router as admin_orders_router
from services.marketplace_service.routers.admin_stores import router as admin_stores_router
from services.marketplace_service.routers.auth import router as auth_router
from services.marketplace_service.routers.buyer_account import (
    router as buyer_account_router,
)
from services.marketplace_service.routers.buyer_catalog import (
    router as buyer_catalog_router,
)
from services.marketplace_service.routers.buyer_evaluations import (
    router as buyer_evaluations_router,
)
from services.marketplace_service.routers.buyer_orders import router as buyer_orders_router
from services.marketplace_service.routers.payments import router as payments_router
from services.marketplace_service.routers.statistics import (
    router as admin_statistics_router,
)
from services.marketplace_service.routers.statistics import (
    store_router as store_statistics_router,
)
from services.marketplace_service.routers.store_evaluations import (
    router as store_evaluations_router,
)
from services.marketplace_service.routers.store_goods import router as store_goods_router
from services.marketplace_service.routers.store_orders import router as store_orders_router
from services.marketplace_service.routers.store_settings import (
    router as store_settings_router,
)
from services.marketplace_service.routers.uploads import router as uploads_router

__all__ = [
    "admin_catalog_router",
    "admin_evaluations_router",
    "admin_goods_router",
    "admin_members_router",
    "admin_orders_router",
    "admin_stores_router",
    "admin_statistics_router",
    "auth_router",
    "buyer_account_router",
    "buyer_catalog_router",
    "buyer_evaluations_router",
    "buyer_orders_router",
    "payments_router",
    "store_evaluations_router",
    "store_goods_router",
    "store_orders_router",
    "store_settings_router",
    "store_statistics_router",
    "uploads_router",
]
