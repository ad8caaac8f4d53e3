"""Goods and SKU schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.marketplace_service.models.enums import AuthStatus, MarketStatus
from services.marketplace_service.schemas.accounts import StoreResponse


class SkuRow(BaseModel):
    """
    One submitted SKU. Besides the fixed columns, any extra key is a
    specification name and its value a spec value, e.g.
    ``{"price": 9.9, "quantity": 3, "Color": "Red", "Size": "M"}``.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    sn: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    weight: Optional[Decimal] = Field(None, ge=0)
    quantity: int = Field(0, ge=0)
    image: Optional[str] = Field(None, max_length=512)


class GoodsSaveRequest(BaseModel):
    goods_name: str = Field(..., min_length=1, max_length=255)
    category_id: int
    brand_id: Optional[int] = None
    goods_unit: Optional[str] = Field(None, max_length=50)
    selling_point: Optional[str] = Field(None, max_length=500)
    intro: Optional[str] = None
    original: Optional[str] = Field(None, max_length=512)
    gallery: list[str] = Field(default_factory=list)
    skus: list[SkuRow] = Field(..., min_length=1)
    release: bool = False  # put on sale right away (still needs audit)


class SpecPairResponse(BaseModel):
    spec_name: str
    spec_value: str


class SpecGroupResponse(BaseModel):
    spec_name: str
    values: list[str]


class SkuResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goods_id: int
    sn: Optional[str] = None
    price: Decimal
    cost: Optional[Decimal] = None
    weight: Optional[Decimal] = None
    quantity: int
    image: Optional[str] = None
    specs: list[SpecPairResponse] = []


class GoodsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goods_name: str
    store_id: int
    category_id: int
    brand_id: Optional[int] = None
    goods_unit: Optional[str] = None
    price: Decimal
    selling_point: Optional[str] = None
    original: Optional[str] = None
    market_enable: MarketStatus
    auth_flag: AuthStatus
    auth_message: Optional[str] = None
    under_message: Optional[str] = None
    recommend: bool
    quantity: int
    buy_count: int
    grade: float
    comment_num: int
    created_at: datetime


class GoodsDetailResponse(GoodsResponse):
    intro: Optional[str] = None
    gallery: list[str] = []
    skus: list[SkuResponse] = []
    spec_list: list[SpecGroupResponse] = []


class BuyerGoodsDetailResponse(BaseModel):
    goods: GoodsDetailResponse
    sku: SkuResponse
    category_name: Optional[str] = None
    store_name: Optional[str] = None


class GoodsListResponse(BaseModel):
    items: list[GoodsResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class GoodsUnderRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class GoodsAuditRequest(BaseModel):
    auth_flag: AuthStatus
    message: Optional[str] = Field(None, max_length=500)


class StorePageResponse(BaseModel):
    store: StoreResponse
    goods: GoodsListResponse
