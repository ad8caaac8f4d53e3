"""Seller endpoints for goods and store labels."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_store
from libs.auth.models import AuthUser
from libs.common.errors import BusinessRuleViolation
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuthStatus,
    Goods,
    MarketStatus,
)
from services.marketplace_service.routers._helpers import (
    goods_detail,
    load_goods,
    paginate,
    tree_response,
)
from services.marketplace_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
    GoodsDetailResponse,
    GoodsListResponse,
    GoodsResponse,
    GoodsSaveRequest,
)
from services.marketplace_service.services import category_tree
from services.marketplace_service.services.goods_service import (
    delete_goods,
    save_goods,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/store", tags=["store-goods"])


# ============================================================================
# GOODS
# ============================================================================


@router.get("/goods", response_model=GoodsListResponse)
async def list_store_goods(
    goods_name: Optional[str] = None,
    market_enable: Optional[MarketStatus] = None,
    auth_flag: Optional[AuthStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Goods).where(Goods.store_id == current_user.store_id)
    if goods_name:
        query = query.where(Goods.goods_name.ilike(f"%{goods_name}%"))
    if market_enable:
        query = query.where(Goods.market_enable == market_enable)
    if auth_flag:
        query = query.where(Goods.auth_flag == auth_flag)
    query = query.order_by(Goods.created_at.desc(), Goods.id.desc())

    goods, total, total_pages = await paginate(db, query, page, page_size)
    return GoodsListResponse(
        items=[GoodsResponse.model_validate(g) for g in goods],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/goods/{goods_id}", response_model=GoodsDetailResponse)
async def get_store_goods(
    goods_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    goods = await load_goods(db, goods_id, store_id=current_user.store_id)
    return await goods_detail(db, goods)


@router.post(
    "/goods", response_model=GoodsDetailResponse, status_code=status.HTTP_201_CREATED
)
async def create_goods(
    payload: GoodsSaveRequest,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create goods with its SKUs. Extra keys on each SKU row become
    specifications of the store (reused when the name already exists).
    """
    goods = await save_goods(db, current_user.store_id, payload.model_dump())
    goods = await load_goods(db, goods.id)
    return await goods_detail(db, goods)


@router.put("/goods/{goods_id}", response_model=GoodsDetailResponse)
async def update_goods(
    goods_id: int,
    payload: GoodsSaveRequest,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    goods = await load_goods(db, goods_id, store_id=current_user.store_id)
    await save_goods(db, current_user.store_id, payload.model_dump(), goods=goods)
    goods = await load_goods(db, goods_id)
    return await goods_detail(db, goods)


@router.put("/goods/{goods_id}/up", response_model=GoodsResponse)
async def put_goods_on_sale(
    goods_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    goods = await load_goods(db, goods_id, store_id=current_user.store_id)
    if goods.auth_flag == AuthStatus.REFUSED:
        raise BusinessRuleViolation(
            "GOODS_AUTH_REFUSED", "Refused goods must be edited before going on sale"
        )
    goods.market_enable = MarketStatus.UPPER
    goods.under_message = None
    await db.commit()
    await db.refresh(goods)
    return goods


@router.put("/goods/{goods_id}/under", response_model=GoodsResponse)
async def take_goods_off_sale(
    goods_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    goods = await load_goods(db, goods_id, store_id=current_user.store_id)
    goods.market_enable = MarketStatus.DOWN
    await db.commit()
    await db.refresh(goods)
    return goods


@router.delete("/goods/{goods_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_goods(
    goods_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    goods = await load_goods(db, goods_id, store_id=current_user.store_id)
    await delete_goods(db, goods)
    return None


# ============================================================================
# LABELS (store-scoped categories)
# ============================================================================


@router.get("/labels", response_model=list[CategoryTreeNode])
async def get_label_tree(
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    nodes = await category_tree.category_tree(db, store_id=current_user.store_id)
    return tree_response(nodes)


@router.post(
    "/labels", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_label(
    label_in: CategoryCreate,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    label = await category_tree.create_category(
        db, label_in.model_dump(), store_id=current_user.store_id
    )
    await db.commit()
    await db.refresh(label)
    return label


@router.put("/labels", response_model=CategoryResponse)
async def update_label(
    label_in: CategoryUpdate,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    data = label_in.model_dump(exclude_unset=True)
    label = await category_tree.update_category(
        db, data.pop("id", None), data, store_id=current_user.store_id
    )
    await db.commit()
    await db.refresh(label)
    return label


@router.delete("/labels/{label_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_label(
    label_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    await category_tree.delete_category(db, label_id, store_id=current_user.store_id)
    await db.commit()
    return None
