"""Marketplace models package."""

from services.marketplace_service.models.accounts import (
    AdminUser,
    GoodsCollection,
    Member,
    MemberAddress,
    Store,
    StoreCollection,
)
from services.marketplace_service.models.catalog import (
    Brand,
    Category,
    CategoryBrand,
    CategorySpecification,
    Goods,
    GoodsGallery,
    GoodsSku,
    GoodsSkuSpecValue,
    GoodsUnit,
    Specification,
    SpecValue,
)
from services.marketplace_service.models.commerce import (
    AuditLog,
    Evaluation,
    Order,
    OrderItem,
    PaymentLog,
    SubOrder,
)
from services.marketplace_service.models.enums import (
    AuditEntityType,
    AuthStatus,
    EvaluationGrade,
    EvaluationStatus,
    MarketStatus,
    MemberRole,
    OrderStatus,
    PaymentType,
    PayStatus,
    StoreStatus,
)

__all__ = [
    "AdminUser",
    "AuditEntityType",
    "AuditLog",
    "AuthStatus",
    "Brand",
    "Category",
    "CategoryBrand",
    "CategorySpecification",
    "Evaluation",
    "EvaluationGrade",
    "EvaluationStatus",
    "Goods",
    "GoodsCollection",
    "GoodsGallery",
    "GoodsSku",
    "GoodsSkuSpecValue",
    "GoodsUnit",
    "MarketStatus",
    "Member",
    "MemberAddress",
    "MemberRole",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentLog",
    "PaymentType",
    "PayStatus",
    "SpecValue",
    "Specification",
    "Store",
    "StoreCollection",
    "StoreStatus",
    "SubOrder",
]
