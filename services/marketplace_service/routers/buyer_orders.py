"""Buyer order endpoints."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_member
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    Evaluation,
    Order,
    OrderStatus,
    SubOrder,
)
from services.marketplace_service.routers._helpers import paginate
from services.marketplace_service.schemas import (
    CancelOrderRequest,
    EvaluationResponse,
    MarkPaidRequest,
    OrderCreateRequest,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
)
from services.marketplace_service.services import order_composition
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)
router = APIRouter(prefix="/buyer/orders", tags=["buyer-orders"])

OrderTag = Literal["WAIT_PAY", "PAID", "DELIVERED", "COMPLETED", "CANCELLED"]

TAG_STATUS = {
    "WAIT_PAY": OrderStatus.UNPAID,
    "PAID": OrderStatus.PAID,
    "DELIVERED": OrderStatus.DELIVERED,
    "COMPLETED": OrderStatus.COMPLETED,
    "CANCELLED": OrderStatus.CANCELLED,
}


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreateRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Place an order. Lines are split per store into sub-orders; stock is
    taken in the same transaction.
    """
    return await order_composition.place_order(
        db,
        member_id=current_user.user_id,
        requested=[(line.sku_id, line.quantity) for line in payload.items],
        address_id=payload.address_id,
        pay_now=payload.pay_now,
        payment_method=payload.payment_method,
        remark=payload.remark,
    )


@router.get("", response_model=OrderListResponse)
async def list_orders(
    tag: Optional[OrderTag] = None,
    keyword: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Order)
        .where(Order.member_id == current_user.user_id)
        .options(selectinload(Order.sub_orders).selectinload(SubOrder.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if tag:
        query = query.where(Order.order_status == TAG_STATUS[tag])
    if keyword:
        query = query.where(Order.sn.ilike(f"%{keyword}%"))

    orders, total, total_pages = await paginate(db, query, page, page_size)
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{order_sn}", response_model=OrderDetailResponse)
async def get_order(
    order_sn: str,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """Order with its sub-orders and the caller's evaluations of it."""
    order = await order_composition.get_order(db, order_sn, current_user.user_id)
    result = await db.execute(
        select(Evaluation)
        .where(
            Evaluation.order_sn == order_sn,
            Evaluation.member_id == current_user.user_id,
        )
        .order_by(Evaluation.id)
    )
    detail = OrderResponse.model_validate(order).model_dump()
    return OrderDetailResponse(
        **detail,
        evaluations=[EvaluationResponse.model_validate(e) for e in result.scalars()],
    )


@router.put("/{order_sn}/pay", response_model=OrderResponse)
async def pay_order(
    order_sn: str,
    payload: MarkPaidRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    order = await order_composition.get_order(db, order_sn, current_user.user_id)
    await order_composition.mark_paid(db, order, payload.payment_method)
    return await order_composition.get_order(db, order_sn)


@router.put("/{order_sn}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_sn: str,
    payload: CancelOrderRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    order = await order_composition.get_order(db, order_sn, current_user.user_id)
    await order_composition.cancel_order(db, order, payload.reason)
    return await order_composition.get_order(db, order_sn)


@router.put("/{order_sn}/complete", response_model=OrderResponse)
async def complete_order(
    order_sn: str,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """Confirm receipt of a delivered order."""
    order = await order_composition.get_order(db, order_sn, current_user.user_id)
    await order_composition.complete_order(db, order)
    return await order_composition.get_order(db, order_sn)


@router.delete("/{order_sn}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_sn: str,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    order = await order_composition.get_order(db, order_sn, current_user.user_id)
    await order_composition.delete_order(db, order)
    logger.info("Member %s deleted order %s", current_user.user_id, order_sn)
