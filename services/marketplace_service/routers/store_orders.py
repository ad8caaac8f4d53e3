"""Seller endpoints for the store's part of buyer orders."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_store
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import Order, OrderStatus, SubOrder
from services.marketplace_service.routers._helpers import paginate
from services.marketplace_service.schemas import (
    OrderItemResponse,
    StoreOrderListResponse,
    StoreOrderResponse,
)
from services.marketplace_service.services.order_composition import deliver_sub_order
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)
router = APIRouter(prefix="/store/orders", tags=["store-orders"])


def _store_order(sub_order: SubOrder) -> StoreOrderResponse:
    order: Order = sub_order.order
    return StoreOrderResponse(
        id=sub_order.id,
        store_id=sub_order.store_id,
        status=sub_order.status,
        goods_num=sub_order.goods_num,
        sub_total=sub_order.sub_total,
        items=[OrderItemResponse.model_validate(item) for item in sub_order.items],
        order_sn=order.sn,
        pay_status=order.pay_status,
        consignee_name=order.consignee_name,
        consignee_mobile=order.consignee_mobile,
        consignee_address_path=order.consignee_address_path,
        consignee_detail=order.consignee_detail,
        remark=order.remark,
        created_at=sub_order.created_at,
    )


def _store_orders_query(store_id: int):
    return (
        select(SubOrder)
        .where(SubOrder.store_id == store_id)
        .options(selectinload(SubOrder.items), selectinload(SubOrder.order))
    )


@router.get("", response_model=StoreOrderListResponse)
async def list_store_orders(
    sn: Optional[str] = None,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    query = _store_orders_query(current_user.store_id).order_by(
        SubOrder.created_at.desc(), SubOrder.id.desc()
    )
    if sn:
        query = query.where(
            SubOrder.order_id.in_(select(Order.id).where(Order.sn.ilike(f"%{sn}%")))
        )
    if order_status:
        query = query.where(SubOrder.status == order_status)

    sub_orders, total, total_pages = await paginate(db, query, page, page_size)
    return StoreOrderListResponse(
        items=[_store_order(s) for s in sub_orders],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{sub_order_id}", response_model=StoreOrderResponse)
async def get_store_order(
    sub_order_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        _store_orders_query(current_user.store_id).where(SubOrder.id == sub_order_id)
    )
    sub_order = result.scalar_one_or_none()
    if not sub_order:
        raise NotFound("ORDER_NOT_EXIST", "Order not found")
    return _store_order(sub_order)


@router.put("/{sub_order_id}/deliver", response_model=StoreOrderResponse)
async def deliver_store_order(
    sub_order_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    """Mark the store's part shipped. The order ships once all parts have."""
    await deliver_sub_order(db, current_user.store_id, sub_order_id)
    logger.info("Store %s delivered sub-order %s", current_user.store_id, sub_order_id)
    result = await db.execute(
        _store_orders_query(current_user.store_id)
        .where(SubOrder.id == sub_order_id)
        .execution_options(populate_existing=True)
    )
    return _store_order(result.scalar_one())
