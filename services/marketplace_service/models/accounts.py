"""Account models: admin users, members, addresses, stores and collections."""

from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.marketplace_service.models.enums import (
    MemberRole,
    StoreStatus,
    enum_values,
)
from sqlalchemy import Boolean, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# USERS
# ============================================================================


class AdminUser(Base):
    """Platform operator account."""

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    is_super: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    disabled: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<AdminUser {self.username}>"


class Member(Base):
    """Buyer account. Sellers are members that own a store."""

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    mobile: Mapped[Optional[str]] = mapped_column(
        String(30), unique=True, nullable=True
    )
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    nick_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    face: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    sex: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    role: Mapped[MemberRole] = mapped_column(
        SAEnum(MemberRole, values_callable=enum_values, name="member_role_enum"),
        default=MemberRole.MEMBER,
        server_default="MEMBER",
    )
    disabled: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    store = relationship("Store", back_populates="member", uselist=False)

    def __repr__(self):
        return f"<Member {self.username}>"


class MemberAddress(Base):
    """Shipping address book entry."""

    __tablename__ = "member_addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    mobile: Mapped[str] = mapped_column(String(30), nullable=False)
    address_path: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    detail: Mapped[str] = mapped_column(String(500), nullable=False)
    alias: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


# ============================================================================
# STORES
# ============================================================================


class Store(Base):
    """Seller storefront. One per member."""

    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id"), unique=True, nullable=False
    )
    store_name: Mapped[str] = mapped_column(String(150), nullable=False)
    store_logo: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    store_desc: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    store_address_path: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    store_address_detail: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True
    )

    # Company info submitted with the application
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    company_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    company_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    legal_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    legal_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    license_photo: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    status: Mapped[StoreStatus] = mapped_column(
        SAEnum(StoreStatus, values_callable=enum_values, name="store_status_enum"),
        default=StoreStatus.APPLYING,
        server_default="APPLYING",
    )
    stock_warning: Mapped[int] = mapped_column(
        Integer, default=100, server_default="100"
    )
    payment_due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    member = relationship("Member", back_populates="store")

    def __repr__(self):
        return f"<Store {self.store_name} status={self.status}>"


# ============================================================================
# COLLECTIONS (favourites)
# ============================================================================


class GoodsCollection(Base):
    __tablename__ = "goods_collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    goods_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("member_id", "goods_id", name="uq_goods_collection"),
    )


class StoreCollection(Base):
    __tablename__ = "store_collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("member_id", "store_id", name="uq_store_collection"),
    )
