"""Marketplace schemas package.

Re-exports all schemas so routers can import from
``services.marketplace_service.schemas`` directly.

When adding a new schema, add its import and __all__ entry.
"""

from services.marketplace_service.schemas.accounts import (  # noqa: F401
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    AdminMemberCreate,
    AdminMemberUpdate,
    AdminUserResponse,
    CollectionStatusResponse,
    LoginRequest,
    MemberListResponse,
    MemberProfileUpdate,
    MemberRegisterRequest,
    MemberResponse,
    PasswordChangeRequest,
    PasswordForgotRequest,
    PasswordResetRequest,
    RefreshRequest,
    StockWarningRequest,
    StoreApplyRequest,
    StoreAuditRequest,
    StoreFeeRequest,
    StoreListResponse,
    StoreResponse,
    StoreSettingsUpdate,
)
from services.marketplace_service.schemas.catalog import (  # noqa: F401
    BrandCreate,
    BrandListResponse,
    BrandResponse,
    BrandUpdate,
    CategoryBindingRequest,
    CategoryCreate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
    GoodsUnitCreate,
    GoodsUnitListResponse,
    GoodsUnitResponse,
    IdListRequest,
    SpecificationCreate,
    SpecificationListResponse,
    SpecificationResponse,
    SpecificationUpdate,
)
from services.marketplace_service.schemas.evaluations import (  # noqa: F401
    EvaluationCountResponse,
    EvaluationListResponse,
    EvaluationReplyRequest,
    EvaluationResponse,
    EvaluationSubmitRequest,
)
from services.marketplace_service.schemas.goods import (  # noqa: F401
    BuyerGoodsDetailResponse,
    GoodsAuditRequest,
    GoodsDetailResponse,
    GoodsListResponse,
    GoodsResponse,
    GoodsSaveRequest,
    GoodsUnderRequest,
    SkuResponse,
    SkuRow,
    SpecGroupResponse,
    SpecPairResponse,
    StorePageResponse,
)
from services.marketplace_service.schemas.orders import (  # noqa: F401
    CancelOrderRequest,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    MarkPaidRequest,
    OrderCreateRequest,
    OrderDetailResponse,
    OrderItemResponse,
    OrderLineRequest,
    OrderListResponse,
    OrderResponse,
    PaymentLogListResponse,
    PaymentLogResponse,
    StoreOrderListResponse,
    StoreOrderResponse,
    SubOrderResponse,
    UploadResponse,
)
from services.marketplace_service.schemas.statistics import (  # noqa: F401
    AdminIndexResponse,
    GoodsRankItem,
    StoreDashboardResponse,
    StoreRankItem,
)

__all__ = [
    # Accounts
    "MemberRegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "PasswordForgotRequest",
    "PasswordResetRequest",
    "PasswordChangeRequest",
    "AdminUserResponse",
    "MemberResponse",
    "MemberProfileUpdate",
    "AdminMemberCreate",
    "AdminMemberUpdate",
    "MemberListResponse",
    "AddressCreate",
    "AddressUpdate",
    "AddressResponse",
    "StoreApplyRequest",
    "StoreSettingsUpdate",
    "StockWarningRequest",
    "StoreFeeRequest",
    "StoreAuditRequest",
    "StoreResponse",
    "StoreListResponse",
    "CollectionStatusResponse",
    # Catalog
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryTreeNode",
    "CategoryBindingRequest",
    "BrandCreate",
    "BrandUpdate",
    "BrandResponse",
    "BrandListResponse",
    "SpecificationCreate",
    "SpecificationUpdate",
    "SpecificationResponse",
    "SpecificationListResponse",
    "IdListRequest",
    "GoodsUnitCreate",
    "GoodsUnitResponse",
    "GoodsUnitListResponse",
    # Evaluations
    "EvaluationSubmitRequest",
    "EvaluationReplyRequest",
    "EvaluationResponse",
    "EvaluationListResponse",
    "EvaluationCountResponse",
    # Goods
    "SkuRow",
    "GoodsSaveRequest",
    "SpecPairResponse",
    "StorePageResponse",
    "SpecGroupResponse",
    "SkuResponse",
    "GoodsResponse",
    "GoodsDetailResponse",
    "BuyerGoodsDetailResponse",
    "GoodsListResponse",
    "GoodsUnderRequest",
    "GoodsAuditRequest",
    # Orders
    "OrderLineRequest",
    "OrderCreateRequest",
    "CancelOrderRequest",
    "MarkPaidRequest",
    "OrderItemResponse",
    "SubOrderResponse",
    "OrderResponse",
    "OrderDetailResponse",
    "OrderListResponse",
    "StoreOrderResponse",
    "StoreOrderListResponse",
    "PaymentLogResponse",
    "PaymentLogListResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "UploadResponse",
    # Statistics
    "StoreDashboardResponse",
    "AdminIndexResponse",
    "GoodsRankItem",
    "StoreRankItem",
]
