"""Dashboard counters and rankings for admins and sellers."""

from decimal import Decimal

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin, require_store
from libs.auth.models import AuthUser
from libs.common.datetime_utils import start_of_today
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuthStatus,
    Evaluation,
    Goods,
    Member,
    Order,
    OrderItem,
    OrderStatus,
    Store,
    StoreStatus,
    SubOrder,
)
from services.marketplace_service.routers._helpers import get_store
from services.marketplace_service.schemas import (
    AdminIndexResponse,
    GoodsRankItem,
    StoreDashboardResponse,
    StoreRankItem,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/statistics", tags=["admin-statistics"])
store_router = APIRouter(prefix="/store/statistics", tags=["store-statistics"])

RANK_LIMIT = 10


async def _count(db: AsyncSession, model, *conditions) -> int:
    query = select(func.count()).select_from(model)
    if conditions:
        query = query.where(*conditions)
    return (await db.scalar(query)) or 0


# ============================================================================
# ADMIN
# ============================================================================


@router.get("", response_model=AdminIndexResponse)
async def admin_index(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    today = start_of_today()
    today_price = await db.scalar(
        select(func.coalesce(func.sum(Order.flow_price), 0)).where(
            Order.created_at >= today, Order.order_status != OrderStatus.CANCELLED
        )
    )
    return AdminIndexResponse(
        member_num=await _count(db, Member),
        store_num=await _count(db, Store, Store.status == StoreStatus.OPEN),
        goods_num=await _count(db, Goods),
        order_num=await _count(db, Order),
        waiting_audit_goods_num=await _count(
            db, Goods, Goods.auth_flag == AuthStatus.TOBEAUDITED
        ),
        applying_store_num=await _count(db, Store, Store.status == StoreStatus.APPLYING),
        today_member_num=await _count(db, Member, Member.created_at >= today),
        today_order_num=await _count(db, Order, Order.created_at >= today),
        today_order_price=Decimal(str(today_price or 0)),
    )


@router.get("/goods-rank", response_model=list[GoodsRankItem])
async def top_goods(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Top goods by quantity sold in orders that were not cancelled."""
    num = func.sum(OrderItem.num).label("num")
    result = await db.execute(
        select(
            OrderItem.goods_id,
            func.max(OrderItem.goods_name).label("goods_name"),
            num,
            func.sum(OrderItem.sub_total).label("price"),
        )
        .join(SubOrder, SubOrder.id == OrderItem.sub_order_id)
        .where(SubOrder.status != OrderStatus.CANCELLED)
        .group_by(OrderItem.goods_id)
        .order_by(num.desc(), OrderItem.goods_id)
        .limit(RANK_LIMIT)
    )
    return [
        GoodsRankItem(
            goods_id=row.goods_id,
            goods_name=row.goods_name,
            num=row.num,
            price=Decimal(str(row.price)),
        )
        for row in result.all()
    ]


@router.get("/store-rank", response_model=list[StoreRankItem])
async def top_stores(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Top stores by revenue from orders that were not cancelled."""
    price = func.sum(SubOrder.sub_total).label("price")
    result = await db.execute(
        select(
            SubOrder.store_id,
            Store.store_name,
            func.count(SubOrder.id).label("num"),
            price,
        )
        .join(Store, Store.id == SubOrder.store_id)
        .where(SubOrder.status != OrderStatus.CANCELLED)
        .group_by(SubOrder.store_id, Store.store_name)
        .order_by(price.desc(), SubOrder.store_id)
        .limit(RANK_LIMIT)
    )
    return [
        StoreRankItem(
            store_id=row.store_id,
            store_name=row.store_name,
            num=row.num,
            price=Decimal(str(row.price)),
        )
        for row in result.all()
    ]


# ============================================================================
# STORE
# ============================================================================


@store_router.get("", response_model=StoreDashboardResponse)
async def store_dashboard(
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    store_id = current_user.store_id
    store = await get_store(db, store_id)
    today = start_of_today()
    today_price = await db.scalar(
        select(func.coalesce(func.sum(SubOrder.sub_total), 0)).where(
            SubOrder.store_id == store_id,
            SubOrder.created_at >= today,
            SubOrder.status != OrderStatus.CANCELLED,
        )
    )
    return StoreDashboardResponse(
        order_num=await _count(db, SubOrder, SubOrder.store_id == store_id),
        goods_num=await _count(db, Goods, Goods.store_id == store_id),
        unpaid_order_num=await _count(
            db,
            SubOrder,
            SubOrder.store_id == store_id,
            SubOrder.status == OrderStatus.UNPAID,
        ),
        unreplied_evaluation_num=await _count(
            db, Evaluation, Evaluation.store_id == store_id, Evaluation.reply.is_(None)
        ),
        alert_goods_num=await _count(
            db, Goods, Goods.store_id == store_id, Goods.quantity < store.stock_warning
        ),
        waiting_audit_goods_num=await _count(
            db,
            Goods,
            Goods.store_id == store_id,
            Goods.auth_flag == AuthStatus.TOBEAUDITED,
        ),
        today_order_num=await _count(
            db, SubOrder, SubOrder.store_id == store_id, SubOrder.created_at >= today
        ),
        today_order_price=Decimal(str(today_price or 0)),
    )
