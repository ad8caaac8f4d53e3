"""Order, payment log and checkout schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.marketplace_service.models.enums import (
    OrderStatus,
    PaymentType,
    PayStatus,
)
from services.marketplace_service.schemas.evaluations import EvaluationResponse


class OrderLineRequest(BaseModel):
    sku_id: int
    quantity: int = Field(..., ge=1)


class OrderCreateRequest(BaseModel):
    items: list[OrderLineRequest] = Field(..., min_length=1)
    address_id: Optional[int] = None
    pay_now: bool = True
    payment_method: Optional[str] = Field("STRIPE", max_length=30)
    remark: Optional[str] = Field(None, max_length=500)


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class MarkPaidRequest(BaseModel):
    payment_method: Optional[str] = Field(None, max_length=30)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goods_id: int
    sku_id: int
    goods_name: str
    image: Optional[str] = None
    num: int
    unit_price: Decimal
    sub_total: Decimal


class SubOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    store_id: int
    status: OrderStatus
    goods_num: int
    sub_total: Decimal
    items: list[OrderItemResponse] = []


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sn: str
    member_id: int
    order_status: OrderStatus
    pay_status: PayStatus
    payment_method: Optional[str] = None
    goods_num: int
    goods_price: Decimal
    flow_price: Decimal
    consignee_name: Optional[str] = None
    consignee_mobile: Optional[str] = None
    consignee_address_path: Optional[str] = None
    consignee_detail: Optional[str] = None
    remark: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None
    sub_orders: list[SubOrderResponse] = []


class OrderDetailResponse(OrderResponse):
    evaluations: list[EvaluationResponse] = []


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class StoreOrderResponse(SubOrderResponse):
    """A store's view of its part of an order."""

    order_sn: str
    pay_status: PayStatus
    consignee_name: Optional[str] = None
    consignee_mobile: Optional[str] = None
    consignee_address_path: Optional[str] = None
    consignee_detail: Optional[str] = None
    remark: Optional[str] = None
    created_at: datetime


class StoreOrderListResponse(BaseModel):
    items: list[StoreOrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PaymentLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: PaymentType
    order_sn: Optional[str] = None
    store_id: Optional[int] = None
    member_id: Optional[int] = None
    amount: Decimal
    pay_status: PayStatus
    payment_method: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None


class PaymentLogListResponse(BaseModel):
    items: list[PaymentLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# CHECKOUT
# ============================================================================


class CheckoutSessionRequest(BaseModel):
    items: list[OrderLineRequest] = Field(..., min_length=1)


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: str


class UploadResponse(BaseModel):
    url: str
