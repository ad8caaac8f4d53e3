"""Unit tests for order composition and the order lifecycle."""

from decimal import Decimal

import pytest
from libs.common.errors import BusinessRuleViolation, NotFound, ValidationFailed
from services.marketplace_service.models import (
    Goods,
    MarketStatus,
    Order,
    OrderStatus,
    PaymentLog,
    PayStatus,
)
from services.marketplace_service.services.order_composition import (
    LineItem,
    cancel_order,
    complete_order,
    compose_order,
    deliver_sub_order,
    delete_order,
    mark_paid,
    merge_quantities,
    place_order,
)
from sqlalchemy import func, select, update


def _line(store_id, price, qty, sku_id=1):
    return LineItem(
        store_id=store_id,
        goods_id=sku_id,
        sku_id=sku_id,
        unit_price=Decimal(str(price)),
        quantity=qty,
    )


# ---------------------------------------------------------------------------
# compose_order
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_order_totals_and_store_subtotals():
    draft = compose_order([_line(1, 10, 2), _line(1, 5, 1), _line(2, 20, 1)])

    assert draft.goods_num == 4
    assert draft.total_price == Decimal("45")
    assert [(g.store_id, g.sub_total) for g in draft.groups] == [
        (1, Decimal("25")),
        (2, Decimal("20")),
    ]


@pytest.mark.unit
def test_groups_follow_first_occurrence_of_each_store():
    draft = compose_order([_line(7, 1, 1), _line(3, 1, 1), _line(7, 1, 1), _line(5, 1, 1)])

    assert [g.store_id for g in draft.groups] == [7, 3, 5]
    assert [len(g.items) for g in draft.groups] == [2, 1, 1]


@pytest.mark.unit
def test_empty_cart_is_rejected():
    with pytest.raises(ValidationFailed) as exc:
        compose_order([])
    assert exc.value.code == "ORDER_EMPTY"


@pytest.mark.unit
def test_merge_quantities_sums_repeats():
    assert merge_quantities([(4, 1), (2, 2), (4, 3)]) == {4: 4, 2: 2}


@pytest.mark.unit
def test_merge_quantities_rejects_non_positive():
    with pytest.raises(ValidationFailed) as exc:
        merge_quantities([(1, 0)])
    assert exc.value.code == "INVALID_QUANTITY"


# ---------------------------------------------------------------------------
# place_order
# ---------------------------------------------------------------------------


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_place_order_splits_per_store(db_session, marketplace):
    m = marketplace

    order = await place_order(
        db_session,
        m.buyer.id,
        [(m.red_sku.id, 2), (m.mug_sku.id, 1), (m.blue_sku.id, 1)],
        payment_method="STRIPE",
    )

    assert order.goods_num == 4
    assert order.flow_price == Decimal("37.50")
    assert [(s.store_id, s.sub_total) for s in order.sub_orders] == [
        (m.store.id, Decimal("32.50")),
        (m.other_store.id, Decimal("5.00")),
    ]
    assert order.pay_status == PayStatus.PAID
    assert order.consignee_detail == m.address.detail
    assert m.red_sku.quantity == 8
    assert m.shirt.quantity == 12
    assert m.shirt.buy_count == 3
    assert await _count(db_session, PaymentLog) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_sku_writes_nothing(db_session, marketplace):
    m = marketplace

    with pytest.raises(NotFound) as exc:
        await place_order(db_session, m.buyer.id, [(m.red_sku.id, 1), (999, 1)])
    await db_session.rollback()

    assert exc.value.code == "SKU_NOT_EXIST"
    assert await _count(db_session, Order) == 0
    await db_session.refresh(m.red_sku)
    assert m.red_sku.quantity == 10


@pytest.mark.asyncio
@pytest.mark.unit
async def test_insufficient_stock(db_session, marketplace):
    with pytest.raises(BusinessRuleViolation) as exc:
        await place_order(db_session, marketplace.buyer.id, [(marketplace.blue_sku.id, 6)])
    assert exc.value.code == "INSUFFICIENT_STOCK"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_goods_off_sale_cannot_be_ordered(db_session, marketplace):
    marketplace.mug.market_enable = MarketStatus.DOWN
    await db_session.commit()

    with pytest.raises(BusinessRuleViolation) as exc:
        await place_order(db_session, marketplace.buyer.id, [(marketplace.mug_sku.id, 1)])
    assert exc.value.code == "GOODS_NOT_AVAILABLE"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_address(db_session, marketplace):
    with pytest.raises(NotFound) as exc:
        await place_order(
            db_session, marketplace.buyer.id, [(marketplace.mug_sku.id, 1)], address_id=999
        )
    assert exc.value.code == "ADDRESS_NOT_EXIST"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_checkout_uses_current_goods_version(db_session, marketplace):
    m = marketplace
    stale_version = m.shirt.version
    await db_session.execute(
        update(Goods)
        .where(Goods.id == m.shirt.id)
        .values(version=Goods.version + 1)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()
    assert m.shirt.version == stale_version

    await place_order(db_session, m.buyer.id, [(m.red_sku.id, 1)])

    assert m.shirt.version == stale_version + 2
    assert m.shirt.buy_count == 1


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_restores_stock(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.red_sku.id, 3)])

    await cancel_order(db_session, order, "wrong size")

    assert order.order_status == OrderStatus.CANCELLED
    assert all(s.status == OrderStatus.CANCELLED for s in order.sub_orders)
    assert m.red_sku.quantity == 10
    assert m.shirt.buy_count == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_twice_fails(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.red_sku.id, 1)])
    await cancel_order(db_session, order, "first")

    with pytest.raises(BusinessRuleViolation) as exc:
        await cancel_order(db_session, order, "second")
    assert exc.value.code == "ORDER_ALREADY_CANCELLED"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_requires_reason(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.red_sku.id, 1)])

    with pytest.raises(ValidationFailed) as exc:
        await cancel_order(db_session, order, "  ")
    assert exc.value.code == "CANCEL_REASON_REQUIRED"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_partly_delivered_order_cannot_be_cancelled(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.red_sku.id, 2), (m.mug_sku.id, 1)])
    await deliver_sub_order(db_session, m.store.id, order.sub_orders[0].id)

    with pytest.raises(BusinessRuleViolation) as exc:
        await cancel_order(db_session, order, "changed mind")

    assert exc.value.code == "ORDER_CANNOT_CANCEL"
    assert [s.status for s in order.sub_orders] == [OrderStatus.DELIVERED, OrderStatus.PAID]
    assert m.red_sku.quantity == 8
    assert m.shirt.buy_count == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unpaid_order_paid_later(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.red_sku.id, 1)], pay_now=False)
    assert order.order_status == OrderStatus.UNPAID
    assert await _count(db_session, PaymentLog) == 0

    await mark_paid(db_session, order, "CASH")

    assert order.pay_status == PayStatus.PAID
    assert order.payment_method == "CASH"
    assert await _count(db_session, PaymentLog) == 1
    with pytest.raises(BusinessRuleViolation) as exc:
        await mark_paid(db_session, order)
    assert exc.value.code == "ORDER_ALREADY_PAID"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_delivered_once_every_store_ships(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.red_sku.id, 1), (m.mug_sku.id, 1)])
    first, second = order.sub_orders

    await deliver_sub_order(db_session, m.store.id, first.id)
    assert order.order_status == OrderStatus.PAID

    await deliver_sub_order(db_session, m.other_store.id, second.id)
    assert order.order_status == OrderStatus.DELIVERED

    await complete_order(db_session, order)
    assert order.order_status == OrderStatus.COMPLETED

    await delete_order(db_session, order)
    assert await _count(db_session, Order) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_store_cannot_deliver_other_stores_part(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.mug_sku.id, 1)])

    with pytest.raises(NotFound):
        await deliver_sub_order(db_session, m.store.id, order.sub_orders[0].id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_open_order_cannot_be_deleted_or_completed(db_session, marketplace):
    m = marketplace
    order = await place_order(db_session, m.buyer.id, [(m.mug_sku.id, 1)])

    with pytest.raises(BusinessRuleViolation) as exc:
        await complete_order(db_session, order)
    assert exc.value.code == "ORDER_NOT_DELIVERED"

    with pytest.raises(BusinessRuleViolation) as exc:
        await delete_order(db_session, order)
    assert exc.value.code == "ORDER_CANNOT_DELETE"
