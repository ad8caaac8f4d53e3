"""Buyer catalogue browsing: categories, goods search, goods detail and store pages."""

from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from libs.common.errors import NotFound
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuthStatus,
    Category,
    Goods,
    MarketStatus,
    StoreStatus,
)
from services.marketplace_service.routers._helpers import (
    get_store,
    goods_detail,
    load_goods,
    paginate,
    tree_response,
)
from services.marketplace_service.schemas import (
    BuyerGoodsDetailResponse,
    CategoryTreeNode,
    GoodsListResponse,
    GoodsResponse,
    StorePageResponse,
    StoreResponse,
)
from services.marketplace_service.services import category_tree
from services.marketplace_service.services.goods_service import (
    on_sale,
    search_goods_query,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/buyer", tags=["buyer-catalog"])

SortField = Literal["price", "buy_count", "grade", "created_at"]


async def _category_with_descendants(db: AsyncSession, category_id: int) -> list[int]:
    categories = await category_tree.list_scope_categories(db, include_disabled=False)
    if not any(category.id == category_id for category in categories):
        return []
    return category_tree.subtree_ids(category_tree.index_children(categories), category_id)


async def _search_page(db: AsyncSession, query, page: int, page_size: int):
    goods, total, total_pages = await paginate(db, query, page, page_size)
    return GoodsListResponse(
        items=[GoodsResponse.model_validate(g) for g in goods],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/categories", response_model=list[CategoryTreeNode])
async def get_category_tree(db: AsyncSession = Depends(get_async_db)):
    """Enabled platform categories; disabled ones hide their whole subtree."""
    nodes = await category_tree.category_tree(db, include_disabled=False)
    return tree_response(nodes)


@router.get("/goods", response_model=GoodsListResponse)
async def search_goods(
    keyword: Optional[str] = None,
    category_id: Optional[int] = None,
    brand_id: Optional[int] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: Optional[SortField] = None,
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Search goods on sale. A category filter also matches goods in its
    subcategories.
    """
    category_ids = None
    if category_id is not None:
        category_ids = await _category_with_descendants(db, category_id)
    query = search_goods_query(
        keyword=keyword,
        category_ids=category_ids,
        brand_id=brand_id,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        order=order,
    )
    return await _search_page(db, query, page, page_size)


@router.get("/goods/recommended", response_model=list[GoodsResponse])
async def recommended_goods(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        on_sale(select(Goods))
        .where(Goods.recommend.is_(True))
        .order_by(Goods.buy_count.desc(), Goods.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


@router.get("/goods/newest", response_model=list[GoodsResponse])
async def newest_goods(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        on_sale(select(Goods)).order_by(Goods.created_at.desc(), Goods.id.desc()).limit(limit)
    )
    return result.scalars().all()


@router.get("/goods/{goods_id}/sku/{sku_id}", response_model=BuyerGoodsDetailResponse)
async def get_goods_sku(
    goods_id: int,
    sku_id: int,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Goods detail as shown on the product page: the selected SKU, every
    SKU with its own specs, the goods-level spec list and the gallery.
    """
    goods = await load_goods(db, goods_id)
    if not _buyer_visible(goods):
        raise NotFound("GOODS_NOT_EXIST", "Goods not found")
    detail = await goods_detail(db, goods)
    sku = next((s for s in detail.skus if s.id == sku_id), None)
    if sku is None:
        raise NotFound("SKU_NOT_EXIST", "SKU not found")

    category = await db.get(Category, goods.category_id)
    store = await get_store(db, goods.store_id)
    return BuyerGoodsDetailResponse(
        goods=detail,
        sku=sku,
        category_name=category.name if category else None,
        store_name=store.store_name,
    )


@router.get("/goods/{goods_id}/related", response_model=list[GoodsResponse])
async def related_goods(
    goods_id: int,
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_async_db),
):
    """Other goods on sale in the same category."""
    goods = await db.get(Goods, goods_id)
    if not goods:
        raise NotFound("GOODS_NOT_EXIST", "Goods not found")
    result = await db.execute(
        on_sale(select(Goods))
        .where(Goods.category_id == goods.category_id, Goods.id != goods_id)
        .order_by(Goods.buy_count.desc(), Goods.id.desc())
        .limit(limit)
    )
    return result.scalars().all()


@router.get("/stores/{store_id}", response_model=StorePageResponse)
async def store_page(
    store_id: int,
    keyword: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    store = await get_store(db, store_id)
    if store.status != StoreStatus.OPEN:
        raise NotFound("STORE_NOT_EXIST", "Store not found")
    query = search_goods_query(keyword=keyword, store_id=store_id)
    return StorePageResponse(
        store=StoreResponse.model_validate(store),
        goods=await _search_page(db, query, page, page_size),
    )


def _buyer_visible(goods: Goods) -> bool:
    return goods.market_enable == MarketStatus.UPPER and goods.auth_flag == AuthStatus.PASS
