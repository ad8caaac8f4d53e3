"""Admin goods moderation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import ValidationFailed
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuditEntityType,
    AuthStatus,
    Goods,
    MarketStatus,
)
from services.marketplace_service.routers._helpers import (
    goods_detail,
    load_goods,
    log_audit,
    paginate,
)
from services.marketplace_service.schemas import (
    GoodsAuditRequest,
    GoodsDetailResponse,
    GoodsListResponse,
    GoodsResponse,
    GoodsUnderRequest,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/goods", tags=["admin-goods"])


async def _goods_page(db: AsyncSession, query, page: int, page_size: int):
    goods, total, total_pages = await paginate(
        db, query.order_by(Goods.created_at.desc(), Goods.id.desc()), page, page_size
    )
    return GoodsListResponse(
        items=[GoodsResponse.model_validate(g) for g in goods],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("", response_model=GoodsListResponse)
async def list_goods(
    goods_name: Optional[str] = None,
    store_id: Optional[int] = None,
    category_id: Optional[int] = None,
    market_enable: Optional[MarketStatus] = None,
    auth_flag: Optional[AuthStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Goods)
    if goods_name:
        query = query.where(Goods.goods_name.ilike(f"%{goods_name}%"))
    if store_id:
        query = query.where(Goods.store_id == store_id)
    if category_id:
        query = query.where(Goods.category_id == category_id)
    if market_enable:
        query = query.where(Goods.market_enable == market_enable)
    if auth_flag:
        query = query.where(Goods.auth_flag == auth_flag)
    return await _goods_page(db, query, page, page_size)


@router.get("/pending", response_model=GoodsListResponse)
async def list_pending_goods(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Goods waiting for audit."""
    query = select(Goods).where(Goods.auth_flag == AuthStatus.TOBEAUDITED)
    return await _goods_page(db, query, page, page_size)


@router.get("/{goods_id}", response_model=GoodsDetailResponse)
async def get_goods(
    goods_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await goods_detail(db, await load_goods(db, goods_id))


@router.put("/{goods_id}/up", response_model=GoodsResponse)
async def put_goods_up(
    goods_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    goods = await load_goods(db, goods_id)
    goods.market_enable = MarketStatus.UPPER
    goods.under_message = None
    await log_audit(db, AuditEntityType.GOODS, goods.id, "up", current_user.username)
    await db.commit()
    await db.refresh(goods)
    return goods


@router.put("/{goods_id}/under", response_model=GoodsResponse)
async def put_goods_under(
    goods_id: int,
    payload: GoodsUnderRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Force goods off sale. A reason is required and shown to the seller."""
    goods = await load_goods(db, goods_id)
    goods.market_enable = MarketStatus.DOWN
    goods.under_message = payload.reason
    await log_audit(
        db,
        AuditEntityType.GOODS,
        goods.id,
        "under",
        current_user.username,
        notes=payload.reason,
    )
    await db.commit()
    await db.refresh(goods)
    return goods


@router.put("/{goods_id}/audit", response_model=GoodsResponse)
async def audit_goods(
    goods_id: int,
    payload: GoodsAuditRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Pass or refuse goods. Refused goods are also taken off sale, which
    makes every SKU unpurchasable.
    """
    if payload.auth_flag == AuthStatus.TOBEAUDITED:
        raise ValidationFailed("INVALID_AUTH_FLAG", "Audit result must be PASS or REFUSED")
    goods = await load_goods(db, goods_id)
    old_flag = goods.auth_flag
    goods.auth_flag = payload.auth_flag
    goods.auth_message = payload.message
    if payload.auth_flag == AuthStatus.REFUSED:
        goods.market_enable = MarketStatus.DOWN
    await log_audit(
        db,
        AuditEntityType.GOODS,
        goods.id,
        "audited",
        current_user.username,
        old_value={"auth_flag": old_flag.value},
        new_value={"auth_flag": payload.auth_flag.value},
        notes=payload.message,
    )
    await db.commit()
    await db.refresh(goods)
    logger.info("Goods %s audited: %s", goods.id, payload.auth_flag.value)
    return goods


@router.put("/{goods_id}/recommend", response_model=GoodsResponse)
async def toggle_goods_recommend(
    goods_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Flip whether the goods shows in the buyer's recommended list."""
    goods = await load_goods(db, goods_id)
    goods.recommend = not goods.recommend
    await log_audit(
        db,
        AuditEntityType.GOODS,
        goods.id,
        "recommended" if goods.recommend else "unrecommended",
        current_user.username,
    )
    await db.commit()
    await db.refresh(goods)
    return goods
