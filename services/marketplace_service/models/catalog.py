"""Catalog models: categories, brands, specifications, goods and SKUs."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.marketplace_service.models.enums import (
    AuthStatus,
    MarketStatus,
    enum_values,
)
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import (
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# CATEGORY / BRAND
# ============================================================================


class Category(Base):
    """Goods categories. Platform categories have no store; store labels do."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=True, index=True
    )
    store_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=True, index=True
    )
    level: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("0"), server_default="0"
    )
    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    disabled: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Category {self.name} level={self.level}>"


class Brand(Base):
    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    logo: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    disabled: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<Brand {self.name}>"


class CategoryBrand(Base):
    __tablename__ = "category_brands"

    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )
    brand_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="CASCADE"), primary_key=True
    )


# ============================================================================
# SPECIFICATIONS
# ============================================================================


class Specification(Base):
    """Attribute type (e.g. 'Color'). Store-scoped when ``store_id`` is set."""

    __tablename__ = "specifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    spec_name: Mapped[str] = mapped_column(String(100), nullable=False)
    store_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    values = relationship(
        "SpecValue",
        back_populates="specification",
        cascade="all, delete-orphan",
        order_by="SpecValue.id",
    )

    def __repr__(self):
        return f"<Specification {self.spec_name}>"


class SpecValue(Base):
    """One concrete value of a specification (e.g. 'Red')."""

    __tablename__ = "spec_values"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    specification_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("specifications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)

    specification = relationship("Specification", back_populates="values")

    def __repr__(self):
        return f"<SpecValue {self.value}>"


class CategorySpecification(Base):
    __tablename__ = "category_specifications"

    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )
    specification_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("specifications.id", ondelete="CASCADE"), primary_key=True
    )


class GoodsUnit(Base):
    """Unit of sale offered in the goods editor (piece, box, kg...)."""

    __tablename__ = "goods_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


# ============================================================================
# GOODS
# ============================================================================


class Goods(Base):
    """A sellable listing owned by a store."""

    __tablename__ = "goods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    goods_name: Mapped[str] = mapped_column(String(255), nullable=False)
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=False
    )
    brand_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("brands.id"), nullable=True
    )
    goods_unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selling_point: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    intro: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original: Mapped[Optional[str]] = mapped_column(
        String(512), nullable=True
    )  # cover image URL

    market_enable: Mapped[MarketStatus] = mapped_column(
        SAEnum(MarketStatus, values_callable=enum_values, name="market_status_enum"),
        default=MarketStatus.DOWN,
        server_default="DOWN",
    )
    auth_flag: Mapped[AuthStatus] = mapped_column(
        SAEnum(AuthStatus, values_callable=enum_values, name="auth_status_enum"),
        default=AuthStatus.TOBEAUDITED,
        server_default="TOBEAUDITED",
    )
    auth_message: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    under_message: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    recommend: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )

    # Derived fields
    quantity: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    buy_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    grade: Mapped[float] = mapped_column(Float, default=0.0, server_default="0")
    comment_num: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Optimistic lock for aggregate recomputes
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_goods_store_market", "store_id", "market_enable"),
        Index("ix_goods_category", "category_id"),
    )

    # Relationships
    skus = relationship(
        "GoodsSku",
        back_populates="goods",
        cascade="all, delete-orphan",
        order_by="GoodsSku.id",
    )
    gallery = relationship(
        "GoodsGallery",
        back_populates="goods",
        cascade="all, delete-orphan",
        order_by="GoodsGallery.sort_order",
    )
    store = relationship("Store")

    def __repr__(self):
        return f"<Goods {self.goods_name}>"


class GoodsSku(Base):
    """A purchasable variant of a goods listing."""

    __tablename__ = "goods_skus"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    goods_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sn: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    goods = relationship("Goods", back_populates="skus")
    spec_links = relationship(
        "GoodsSkuSpecValue",
        cascade="all, delete-orphan",
        order_by="GoodsSkuSpecValue.position",
    )

    @property
    def spec_value_ids(self) -> list[int]:
        return [link.spec_value_id for link in self.spec_links]

    def __repr__(self):
        return f"<GoodsSku {self.id} goods={self.goods_id}>"


class GoodsSkuSpecValue(Base):
    """Ordered link between a SKU and the spec values that describe it."""

    __tablename__ = "goods_sku_spec_values"

    sku_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods_skus.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    spec_value_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("spec_values.id"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint("sku_id", "spec_value_id", name="uq_sku_spec_value"),
    )


class GoodsGallery(Base):
    __tablename__ = "goods_gallery"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    goods_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(512), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    goods = relationship("Goods", back_populates="gallery")
