"""Goods writes and catalogue queries shared by the store, admin and buyer routers."""

from decimal import Decimal
from typing import Any, Optional

from libs.common.errors import BusinessRuleViolation, NotFound
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    AuthStatus,
    Brand,
    Category,
    Goods,
    GoodsCollection,
    GoodsGallery,
    GoodsSku,
    MarketStatus,
    OrderItem,
)
from services.marketplace_service.services.spec_resolver import save_goods_skus
from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

GOODS_FIELDS = (
    "goods_name",
    "category_id",
    "brand_id",
    "goods_unit",
    "selling_point",
    "intro",
    "original",
)

SORT_COLUMNS = {
    "price": Goods.price,
    "buy_count": Goods.buy_count,
    "grade": Goods.grade,
    "created_at": Goods.created_at,
}


async def _check_references(db: AsyncSession, data: dict) -> None:
    category = await db.get(Category, data["category_id"])
    if not category or category.store_id is not None or category.disabled:
        raise NotFound("CATEGORY_NOT_EXIST", "Category not found")
    if data.get("brand_id"):
        brand = await db.get(Brand, data["brand_id"])
        if not brand or brand.disabled:
            raise NotFound("BRAND_NOT_EXIST", "Brand not found")


async def save_goods(
    db: AsyncSession,
    store_id: int,
    data: dict[str, Any],
    goods: Optional[Goods] = None,
) -> Goods:
    """
    Create goods for ``store_id`` or update ``goods`` in place.

    ``data`` is a goods payload with ``skus`` (rows with dynamic spec
    attributes) and ``gallery`` (image urls). Any edit sends the goods back
    to the audit queue. Commits once at the end.
    """
    await _check_references(db, data)

    if goods is None:
        goods = Goods(store_id=store_id, skus=[], gallery=[], price=Decimal("0"))
        db.add(goods)
    for field in GOODS_FIELDS:
        setattr(goods, field, data.get(field))
    goods.auth_flag = AuthStatus.TOBEAUDITED
    goods.auth_message = None
    goods.market_enable = MarketStatus.UPPER if data.get("release") else MarketStatus.DOWN

    await save_goods_skus(db, goods, data["skus"])

    goods.gallery.clear()
    goods.gallery.extend(
        GoodsGallery(url=url, sort_order=position)
        for position, url in enumerate(data.get("gallery") or [])
    )
    if not goods.original and data.get("gallery"):
        goods.original = data["gallery"][0]

    await db.commit()
    logger.info("Saved goods %s for store %s (%d skus)", goods.id, store_id, len(data["skus"]))
    return goods


async def delete_goods(db: AsyncSession, goods: Goods) -> None:
    ordered = await db.scalar(
        select(func.count()).select_from(OrderItem).where(OrderItem.goods_id == goods.id)
    )
    if ordered:
        raise BusinessRuleViolation(
            "GOODS_HAS_ORDERS", "Goods that were already ordered cannot be deleted"
        )
    await db.execute(delete(GoodsCollection).where(GoodsCollection.goods_id == goods.id))
    await db.delete(goods)
    await db.commit()


def on_sale(query: Select) -> Select:
    """Restrict to goods buyers may see."""
    return query.where(
        Goods.market_enable == MarketStatus.UPPER, Goods.auth_flag == AuthStatus.PASS
    )


def search_goods_query(
    keyword: Optional[str] = None,
    category_id: Optional[int] = None,
    category_ids: Optional[list[int]] = None,
    brand_id: Optional[int] = None,
    store_id: Optional[int] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    sort: Optional[str] = None,
    order: str = "desc",
) -> Select:
    query = on_sale(select(Goods))
    if keyword:
        query = query.where(Goods.goods_name.ilike(f"%{keyword}%"))
    if category_ids is not None:
        query = query.where(Goods.category_id.in_(category_ids))
    elif category_id is not None:
        query = query.where(Goods.category_id == category_id)
    if brand_id is not None:
        query = query.where(Goods.brand_id == brand_id)
    if store_id is not None:
        query = query.where(Goods.store_id == store_id)
    if min_price is not None:
        query = query.where(Goods.price >= min_price)
    if max_price is not None:
        query = query.where(Goods.price <= max_price)

    column = SORT_COLUMNS.get(sort or "", Goods.created_at)
    ordering = column.asc() if order == "asc" else column.desc()
    return query.order_by(ordering, Goods.id.desc())


async def get_sku(db: AsyncSession, goods_id: int, sku_id: int) -> GoodsSku:
    result = await db.execute(
        select(GoodsSku).where(GoodsSku.id == sku_id, GoodsSku.goods_id == goods_id)
    )
    sku = result.scalar_one_or_none()
    if not sku:
        raise NotFound("SKU_NOT_EXIST", "SKU not found")
    return sku
