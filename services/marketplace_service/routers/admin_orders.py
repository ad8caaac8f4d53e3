"""Admin order and payment log endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuditEntityType,
    Order,
    OrderStatus,
    PaymentLog,
    PaymentType,
    PayStatus,
    SubOrder,
)
from services.marketplace_service.routers._helpers import log_audit, paginate
from services.marketplace_service.schemas import (
    CancelOrderRequest,
    MarkPaidRequest,
    OrderListResponse,
    OrderResponse,
    PaymentLogListResponse,
    PaymentLogResponse,
)
from services.marketplace_service.services import order_composition
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin-orders"])


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    sn: Optional[str] = None,
    member_id: Optional[int] = None,
    store_id: Optional[int] = None,
    order_status: Optional[OrderStatus] = None,
    pay_status: Optional[PayStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Order)
        .options(selectinload(Order.sub_orders).selectinload(SubOrder.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if sn:
        query = query.where(Order.sn.ilike(f"%{sn}%"))
    if member_id:
        query = query.where(Order.member_id == member_id)
    if store_id:
        query = query.where(
            Order.id.in_(select(SubOrder.order_id).where(SubOrder.store_id == store_id))
        )
    if order_status:
        query = query.where(Order.order_status == order_status)
    if pay_status:
        query = query.where(Order.pay_status == pay_status)

    orders, total, total_pages = await paginate(db, query, page, page_size)
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/orders/{order_sn}", response_model=OrderResponse)
async def get_order(
    order_sn: str,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_composition.get_order(db, order_sn)


@router.put("/orders/{order_sn}/pay", response_model=OrderResponse)
async def mark_order_paid(
    order_sn: str,
    payload: MarkPaidRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Record an offline payment for an unpaid order."""
    order = await order_composition.get_order(db, order_sn)
    await log_audit(db, AuditEntityType.ORDER, order.id, "paid", current_user.username)
    await order_composition.mark_paid(db, order, payload.payment_method or "OFFLINE")
    return await order_composition.get_order(db, order_sn)


@router.put("/orders/{order_sn}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_sn: str,
    payload: CancelOrderRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    order = await order_composition.get_order(db, order_sn)
    await log_audit(
        db,
        AuditEntityType.ORDER,
        order.id,
        "cancelled",
        current_user.username,
        notes=payload.reason,
    )
    await order_composition.cancel_order(db, order, payload.reason)
    return await order_composition.get_order(db, order_sn)


@router.get("/payment-logs", response_model=PaymentLogListResponse)
async def list_payment_logs(
    order_sn: Optional[str] = None,
    payment_type: Optional[PaymentType] = Query(None, alias="type"),
    store_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(PaymentLog).order_by(PaymentLog.created_at.desc(), PaymentLog.id.desc())
    if order_sn:
        query = query.where(PaymentLog.order_sn == order_sn)
    if payment_type:
        query = query.where(PaymentLog.type == payment_type)
    if store_id:
        query = query.where(PaymentLog.store_id == store_id)

    logs, total, total_pages = await paginate(db, query, page, page_size)
    return PaymentLogListResponse(
        items=[PaymentLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )
