"""Commerce models: orders, payments, evaluations and audit logs."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.marketplace_service.models.enums import (
    AuditEntityType,
    EvaluationGrade,
    EvaluationStatus,
    OrderStatus,
    PaymentType,
    PayStatus,
    enum_values,
)
from sqlalchemy import JSON, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """A buyer's checkout. Split into one sub-order per store."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sn: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, index=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id"), nullable=False, index=True
    )

    order_status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, values_callable=enum_values, name="order_status_enum"),
        default=OrderStatus.UNPAID,
        server_default="UNPAID",
    )
    pay_status: Mapped[PayStatus] = mapped_column(
        SAEnum(PayStatus, values_callable=enum_values, name="pay_status_enum"),
        default=PayStatus.UNPAID,
        server_default="UNPAID",
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    goods_num: Mapped[int] = mapped_column(Integer, nullable=False)
    goods_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    flow_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )  # amount actually charged

    # Consignee snapshot
    consignee_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    consignee_mobile: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    consignee_address_path: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    consignee_detail: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    remark: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    sub_orders = relationship(
        "SubOrder",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SubOrder.id",
    )
    member = relationship("Member")

    def __repr__(self):
        return f"<Order {self.sn} status={self.order_status}>"


class SubOrder(Base):
    """The part of an order fulfilled by one store."""

    __tablename__ = "sub_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.id"), nullable=False, index=True
    )
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, values_callable=enum_values, name="order_status_enum"),
        default=OrderStatus.UNPAID,
        server_default="UNPAID",
    )
    goods_num: Mapped[int] = mapped_column(Integer, nullable=False)
    sub_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    order = relationship("Order", back_populates="sub_orders")
    items = relationship(
        "OrderItem",
        back_populates="sub_order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    store = relationship("Store")

    def __repr__(self):
        return f"<SubOrder {self.id} store={self.store_id}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sub_order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("sub_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    goods_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods.id"), nullable=False, index=True
    )
    sku_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods_skus.id"), nullable=False
    )

    # Snapshot at checkout time
    goods_name: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    num: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    sub_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    sub_order = relationship("SubOrder", back_populates="items")

    def __repr__(self):
        return f"<OrderItem sku={self.sku_id} num={self.num}>"


class PaymentLog(Base):
    """Record of money received: order payments and store fees."""

    __tablename__ = "payment_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[PaymentType] = mapped_column(
        SAEnum(PaymentType, values_callable=enum_values, name="payment_type_enum"),
        nullable=False,
    )
    order_sn: Mapped[Optional[str]] = mapped_column(
        String(40), nullable=True, index=True
    )
    store_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="SET NULL"), nullable=True
    )
    member_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    pay_status: Mapped[PayStatus] = mapped_column(
        SAEnum(PayStatus, values_callable=enum_values, name="pay_status_enum"),
        default=PayStatus.PAID,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


# ============================================================================
# EVALUATIONS
# ============================================================================


class Evaluation(Base):
    """A buyer's review of one purchased SKU."""

    __tablename__ = "evaluations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    goods_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods.id", ondelete="CASCADE"), nullable=False
    )
    sku_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("goods_skus.id", ondelete="CASCADE"), nullable=False
    )
    order_sn: Mapped[str] = mapped_column(String(40), nullable=False)
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )

    grade: Mapped[EvaluationGrade] = mapped_column(
        SAEnum(
            EvaluationGrade, values_callable=enum_values, name="evaluation_grade_enum"
        ),
        default=EvaluationGrade.GOOD,
    )
    service_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    reply: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reply_images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[EvaluationStatus] = mapped_column(
        SAEnum(
            EvaluationStatus,
            values_callable=enum_values,
            name="evaluation_status_enum",
        ),
        default=EvaluationStatus.OPEN,
        server_default="OPEN",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "member_id",
            "goods_id",
            "sku_id",
            "order_sn",
            "store_id",
            name="uq_evaluation_key",
        ),
        Index("ix_evaluations_goods_status", "goods_id", "status"),
        Index("ix_evaluations_store", "store_id"),
    )

    member = relationship("Member")
    goods = relationship("Goods")

    def __repr__(self):
        return f"<Evaluation goods={self.goods_id} score={self.service_score}>"


# ============================================================================
# AUDIT
# ============================================================================


class AuditLog(Base):
    """Admin moderation trail."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[AuditEntityType] = mapped_column(
        SAEnum(
            AuditEntityType, values_callable=enum_values, name="audit_entity_enum"
        ),
        nullable=False,
    )
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    performed_by: Mapped[str] = mapped_column(String(100), nullable=False)
    old_value: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (Index("ix_audit_logs_entity", "entity_type", "entity_id"),)
