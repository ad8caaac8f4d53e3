"""Order composition and the order lifecycle.

A checkout becomes one Order, one SubOrder per store (in the order the
stores first appear in the cart) and one OrderItem per line. Prices and
store ownership are read from the SKUs, never from the client.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from libs.common.datetime_utils import utc_now
from libs.common.errors import BusinessRuleViolation, NotFound, ValidationFailed
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    AuthStatus,
    Goods,
    GoodsSku,
    MarketStatus,
    MemberAddress,
    Order,
    OrderItem,
    OrderStatus,
    PaymentLog,
    PaymentType,
    PayStatus,
    SubOrder,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineItem:
    store_id: int
    goods_id: int
    sku_id: int
    unit_price: Decimal
    quantity: int
    goods_name: str = ""
    image: Optional[str] = None

    @property
    def sub_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class StoreGroup:
    store_id: int
    items: list[LineItem] = field(default_factory=list)

    @property
    def goods_num(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def sub_total(self) -> Decimal:
        return sum((item.sub_total for item in self.items), Decimal("0"))


@dataclass
class OrderDraft:
    groups: list[StoreGroup]

    @property
    def goods_num(self) -> int:
        return sum(group.goods_num for group in self.groups)

    @property
    def total_price(self) -> Decimal:
        return sum((group.sub_total for group in self.groups), Decimal("0"))


def compose_order(items: Sequence[LineItem]) -> OrderDraft:
    """Group line items by store, keeping first-occurrence store order."""
    if not items:
        raise ValidationFailed("ORDER_EMPTY", "An order needs at least one item")
    groups: dict[int, StoreGroup] = {}
    for item in items:
        groups.setdefault(item.store_id, StoreGroup(store_id=item.store_id)).items.append(item)
    return OrderDraft(groups=list(groups.values()))


def generate_order_sn() -> str:
    return f"ORD{utc_now():%Y%m%d%H%M%S}{uuid.uuid4().hex[:8].upper()}"


def merge_quantities(requested: Sequence[tuple[int, int]]) -> dict[int, int]:
    """Sum quantities of repeated SKU ids, keeping first-seen order."""
    merged: dict[int, int] = {}
    for sku_id, quantity in requested:
        if quantity <= 0:
            raise ValidationFailed("INVALID_QUANTITY", "Quantity must be positive")
        merged[sku_id] = merged.get(sku_id, 0) + quantity
    return merged


# ============================================================================
# PLACE ORDER
# ============================================================================


async def _resolve_address(
    db: AsyncSession, member_id: int, address_id: Optional[int]
) -> MemberAddress:
    query = select(MemberAddress).where(MemberAddress.member_id == member_id)
    if address_id:
        query = query.where(MemberAddress.id == address_id)
    else:
        query = query.where(MemberAddress.is_default.is_(True))
    result = await db.execute(query)
    address = result.scalars().first()
    if address:
        return address
    if address_id:
        raise NotFound("ADDRESS_NOT_EXIST", "Address not found")
    raise ValidationFailed("ADDRESS_REQUIRED", "A shipping address is required")


async def _lock_skus(db: AsyncSession, sku_ids: Sequence[int]) -> dict[int, GoodsSku]:
    """Lock the SKU rows and their Goods rows, both in id order."""
    result = await db.execute(
        select(GoodsSku)
        .where(GoodsSku.id.in_(sku_ids))
        .order_by(GoodsSku.id)
        .options(selectinload(GoodsSku.goods))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    skus = {sku.id: sku for sku in result.scalars().all()}
    goods_ids = sorted({sku.goods_id for sku in skus.values()})
    if goods_ids:
        # Refreshes the already-loaded Goods so their version is current.
        await db.execute(
            select(Goods)
            .where(Goods.id.in_(goods_ids))
            .order_by(Goods.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    return skus


async def place_order(
    db: AsyncSession,
    member_id: int,
    requested: Sequence[tuple[int, int]],
    address_id: Optional[int] = None,
    pay_now: bool = True,
    payment_method: Optional[str] = None,
    remark: Optional[str] = None,
) -> Order:
    """
    Create an order from ``(sku_id, quantity)`` pairs.

    Stock is decremented and the payment log written in the same
    transaction; any failure leaves the database untouched.
    """
    quantities = merge_quantities(requested)
    if not quantities:
        raise ValidationFailed("ORDER_EMPTY", "An order needs at least one item")
    address = await _resolve_address(db, member_id, address_id)
    skus = await _lock_skus(db, list(quantities))

    line_items = []
    for sku_id, quantity in quantities.items():
        sku = skus.get(sku_id)
        if sku is None:
            raise NotFound("SKU_NOT_EXIST", f"SKU {sku_id} not found")
        goods: Goods = sku.goods
        if goods.market_enable != MarketStatus.UPPER or goods.auth_flag != AuthStatus.PASS:
            raise BusinessRuleViolation(
                "GOODS_NOT_AVAILABLE", f"{goods.goods_name} is not on sale"
            )
        if sku.quantity < quantity:
            raise BusinessRuleViolation(
                "INSUFFICIENT_STOCK", f"Not enough stock for {goods.goods_name}"
            )
        line_items.append(
            LineItem(
                store_id=goods.store_id,
                goods_id=goods.id,
                sku_id=sku.id,
                unit_price=sku.price,
                quantity=quantity,
                goods_name=goods.goods_name,
                image=sku.image or goods.original,
            )
        )

    draft = compose_order(line_items)
    status = OrderStatus.PAID if pay_now else OrderStatus.UNPAID
    now = utc_now()
    order = Order(
        sn=generate_order_sn(),
        member_id=member_id,
        order_status=status,
        pay_status=PayStatus.PAID if pay_now else PayStatus.UNPAID,
        payment_method=payment_method if pay_now else None,
        goods_num=draft.goods_num,
        goods_price=draft.total_price,
        flow_price=draft.total_price,
        consignee_name=address.name,
        consignee_mobile=address.mobile,
        consignee_address_path=address.address_path,
        consignee_detail=address.detail,
        remark=remark,
        paid_at=now if pay_now else None,
        sub_orders=[
            SubOrder(
                store_id=group.store_id,
                status=status,
                goods_num=group.goods_num,
                sub_total=group.sub_total,
                items=[
                    OrderItem(
                        goods_id=item.goods_id,
                        sku_id=item.sku_id,
                        goods_name=item.goods_name,
                        image=item.image,
                        num=item.quantity,
                        unit_price=item.unit_price,
                        sub_total=item.sub_total,
                    )
                    for item in group.items
                ],
            )
            for group in draft.groups
        ],
    )
    db.add(order)

    for item in line_items:
        sku = skus[item.sku_id]
        sku.quantity -= item.quantity
        sku.goods.quantity -= item.quantity
        sku.goods.buy_count += item.quantity

    if pay_now:
        db.add(_order_payment_log(order, now))

    await db.commit()
    logger.info(
        "Order %s placed by member %s: %d stores, total=%s",
        order.sn,
        member_id,
        len(draft.groups),
        draft.total_price,
    )
    return await get_order(db, order.sn)


def _order_payment_log(order: Order, paid_at) -> PaymentLog:
    return PaymentLog(
        type=PaymentType.ORDER,
        order_sn=order.sn,
        member_id=order.member_id,
        amount=order.flow_price,
        pay_status=PayStatus.PAID,
        payment_method=order.payment_method,
        paid_at=paid_at,
    )


# ============================================================================
# LIFECYCLE
# ============================================================================


async def get_order(
    db: AsyncSession, order_sn: str, member_id: Optional[int] = None
) -> Order:
    query = (
        select(Order)
        .where(Order.sn == order_sn)
        .options(selectinload(Order.sub_orders).selectinload(SubOrder.items))
        .execution_options(populate_existing=True)
    )
    if member_id is not None:
        query = query.where(Order.member_id == member_id)
    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if not order:
        raise NotFound("ORDER_NOT_EXIST", "Order not found")
    return order


def _set_status(order: Order, status: OrderStatus) -> None:
    order.order_status = status
    for sub_order in order.sub_orders:
        sub_order.status = status


async def cancel_order(
    db: AsyncSession, order: Order, reason: Optional[str]
) -> Order:
    """Cancel an order that has not shipped yet and put its stock back."""
    if not reason or not reason.strip():
        raise ValidationFailed("CANCEL_REASON_REQUIRED", "A cancel reason is required")
    if order.order_status == OrderStatus.CANCELLED:
        raise BusinessRuleViolation(
            "ORDER_ALREADY_CANCELLED", "Order is already cancelled"
        )
    shipped = (OrderStatus.DELIVERED, OrderStatus.COMPLETED)
    if order.order_status in shipped or any(
        sub_order.status in shipped for sub_order in order.sub_orders
    ):
        raise BusinessRuleViolation(
            "ORDER_CANNOT_CANCEL", "Delivered orders cannot be cancelled"
        )

    items = [item for sub_order in order.sub_orders for item in sub_order.items]
    skus = await _lock_skus(db, list({item.sku_id for item in items}))
    for item in items:
        sku = skus.get(item.sku_id)
        if sku is None:
            continue
        sku.quantity += item.num
        sku.goods.quantity += item.num
        sku.goods.buy_count = max(0, sku.goods.buy_count - item.num)

    _set_status(order, OrderStatus.CANCELLED)
    order.cancel_reason = reason.strip()
    await db.commit()
    logger.info("Order %s cancelled: %s", order.sn, order.cancel_reason)
    return order


async def mark_paid(
    db: AsyncSession, order: Order, payment_method: Optional[str] = None
) -> Order:
    if order.pay_status == PayStatus.PAID:
        raise BusinessRuleViolation("ORDER_ALREADY_PAID", "Order is already paid")
    if order.order_status == OrderStatus.CANCELLED:
        raise BusinessRuleViolation(
            "ORDER_ALREADY_CANCELLED", "Order is already cancelled"
        )
    now = utc_now()
    order.pay_status = PayStatus.PAID
    order.payment_method = payment_method or order.payment_method
    order.paid_at = now
    _set_status(order, OrderStatus.PAID)
    db.add(_order_payment_log(order, now))
    await db.commit()
    return order


async def deliver_sub_order(db: AsyncSession, store_id: int, sub_order_id: int) -> SubOrder:
    """Ship one store's part; the order follows once every part shipped."""
    result = await db.execute(
        select(SubOrder)
        .where(SubOrder.id == sub_order_id, SubOrder.store_id == store_id)
        .options(selectinload(SubOrder.order).selectinload(Order.sub_orders))
    )
    sub_order = result.scalar_one_or_none()
    if not sub_order:
        raise NotFound("ORDER_NOT_EXIST", "Order not found")
    if sub_order.status != OrderStatus.PAID:
        raise BusinessRuleViolation(
            "ORDER_NOT_DELIVERABLE", "Only paid orders can be delivered"
        )

    sub_order.status = OrderStatus.DELIVERED
    order = sub_order.order
    if all(part.status == OrderStatus.DELIVERED for part in order.sub_orders):
        order.order_status = OrderStatus.DELIVERED
    await db.commit()
    return sub_order


async def complete_order(db: AsyncSession, order: Order) -> Order:
    if order.order_status != OrderStatus.DELIVERED:
        raise BusinessRuleViolation(
            "ORDER_NOT_DELIVERED", "Only delivered orders can be completed"
        )
    _set_status(order, OrderStatus.COMPLETED)
    await db.commit()
    return order


async def delete_order(db: AsyncSession, order: Order) -> None:
    if order.order_status not in (OrderStatus.CANCELLED, OrderStatus.COMPLETED):
        raise BusinessRuleViolation(
            "ORDER_CANNOT_DELETE", "Only cancelled or completed orders can be deleted"
        )
    await db.delete(order)
    await db.commit()
