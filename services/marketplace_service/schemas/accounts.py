"""Auth, member, address and store schemas."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.marketplace_service.models.enums import MemberRole, StoreStatus

# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class MemberRegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)
    mobile: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class PasswordForgotRequest(BaseModel):
    username: str


class PasswordResetRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=6, max_length=128)


class PasswordChangeRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class AdminUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    nickname: Optional[str] = None
    avatar: Optional[str] = None
    is_super: bool


# ============================================================================
# MEMBER SCHEMAS
# ============================================================================


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    mobile: Optional[str] = None
    email: Optional[str] = None
    nick_name: Optional[str] = None
    face: Optional[str] = None
    sex: Optional[int] = None
    birthday: Optional[date] = None
    role: MemberRole
    disabled: bool
    created_at: datetime


class MemberProfileUpdate(BaseModel):
    nick_name: Optional[str] = Field(None, max_length=100)
    face: Optional[str] = Field(None, max_length=512)
    sex: Optional[int] = Field(None, ge=0, le=2)
    birthday: Optional[date] = None
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=30)


class AdminMemberCreate(MemberRegisterRequest):
    nick_name: Optional[str] = Field(None, max_length=100)


class AdminMemberUpdate(MemberProfileUpdate):
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class MemberListResponse(BaseModel):
    items: list[MemberResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# ADDRESS SCHEMAS
# ============================================================================


class AddressCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    mobile: str = Field(..., min_length=1, max_length=30)
    address_path: Optional[str] = Field(None, max_length=255)
    detail: str = Field(..., min_length=1, max_length=500)
    alias: Optional[str] = Field(None, max_length=50)
    is_default: bool = False


class AddressUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    mobile: Optional[str] = Field(None, min_length=1, max_length=30)
    address_path: Optional[str] = Field(None, max_length=255)
    detail: Optional[str] = Field(None, min_length=1, max_length=500)
    alias: Optional[str] = Field(None, max_length=50)
    is_default: Optional[bool] = None


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    name: str
    mobile: str
    address_path: Optional[str] = None
    detail: str
    alias: Optional[str] = None
    is_default: bool


# ============================================================================
# STORE SCHEMAS
# ============================================================================


class StoreApplyRequest(BaseModel):
    store_name: str = Field(..., min_length=1, max_length=150)
    company_name: str = Field(..., min_length=1, max_length=200)
    company_phone: Optional[str] = Field(None, max_length=30)
    company_email: Optional[EmailStr] = None
    legal_name: Optional[str] = Field(None, max_length=100)
    legal_id: Optional[str] = Field(None, max_length=50)
    license_photo: Optional[str] = Field(None, max_length=512)
    store_logo: Optional[str] = Field(None, max_length=512)
    store_desc: Optional[str] = None
    store_address_path: Optional[str] = Field(None, max_length=255)
    store_address_detail: Optional[str] = Field(None, max_length=500)


class StoreSettingsUpdate(BaseModel):
    store_name: Optional[str] = Field(None, min_length=1, max_length=150)
    store_logo: Optional[str] = Field(None, max_length=512)
    store_desc: Optional[str] = None
    store_address_path: Optional[str] = Field(None, max_length=255)
    store_address_detail: Optional[str] = Field(None, max_length=500)


class StockWarningRequest(BaseModel):
    stock_warning: int = Field(..., ge=0)


class StoreFeeRequest(BaseModel):
    months: int = Field(..., ge=1, le=24)


class StoreAuditRequest(BaseModel):
    passed: bool


class StoreResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    store_name: str
    store_logo: Optional[str] = None
    store_desc: Optional[str] = None
    store_address_path: Optional[str] = None
    store_address_detail: Optional[str] = None
    company_name: str
    company_phone: Optional[str] = None
    company_email: Optional[str] = None
    legal_name: Optional[str] = None
    legal_id: Optional[str] = None
    license_photo: Optional[str] = None
    status: StoreStatus
    stock_warning: int
    payment_due_date: Optional[datetime] = None
    created_at: datetime


class StoreListResponse(BaseModel):
    items: list[StoreResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class CollectionStatusResponse(BaseModel):
    collected: bool
