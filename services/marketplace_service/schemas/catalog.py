"""Category, brand, specification and goods unit schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    parent_id: Optional[int] = None
    sort_order: int = 0
    commission_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    image: Optional[str] = Field(None, max_length=512)


class CategoryUpdate(BaseModel):
    """Full or partial update; the id travels in the body."""

    id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    parent_id: Optional[int] = None
    sort_order: Optional[int] = None
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    image: Optional[str] = Field(None, max_length=512)
    disabled: Optional[bool] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: Optional[int] = None
    store_id: Optional[int] = None
    level: int
    sort_order: int
    commission_rate: Decimal
    image: Optional[str] = None
    disabled: bool
    created_at: datetime


class CategoryTreeNode(CategoryResponse):
    children: list["CategoryTreeNode"] = []


class CategoryBindingRequest(BaseModel):
    ids: list[int] = Field(default_factory=list)


# ============================================================================
# BRAND SCHEMAS
# ============================================================================


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    logo: Optional[str] = Field(None, max_length=512)


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    logo: Optional[str] = Field(None, max_length=512)


class BrandResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    logo: Optional[str] = None
    disabled: bool
    created_at: datetime


class BrandListResponse(BaseModel):
    items: list[BrandResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# SPECIFICATION SCHEMAS
# ============================================================================


class SpecificationCreate(BaseModel):
    spec_name: str = Field(..., min_length=1, max_length=100)
    values: list[str] = Field(default_factory=list)


class SpecificationUpdate(BaseModel):
    spec_name: Optional[str] = Field(None, min_length=1, max_length=100)
    values: Optional[list[str]] = None


class SpecificationResponse(BaseModel):
    id: int
    spec_name: str
    store_id: Optional[int] = None
    spec_value: str = ""  # values joined by ","


class SpecificationListResponse(BaseModel):
    items: list[SpecificationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class IdListRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


# ============================================================================
# GOODS UNIT SCHEMAS
# ============================================================================


class GoodsUnitCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class GoodsUnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime


class GoodsUnitListResponse(BaseModel):
    items: list[GoodsUnitResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
