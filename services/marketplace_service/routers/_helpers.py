"""Shared helpers for marketplace routers."""

from typing import Any, Optional, Sequence

from libs.common.errors import NotFound
from services.marketplace_service.models import (
    AuditEntityType,
    AuditLog,
    Goods,
    GoodsSku,
    Store,
)
from services.marketplace_service.schemas import (
    CategoryResponse,
    CategoryTreeNode,
    GoodsDetailResponse,
    GoodsResponse,
    SkuResponse,
    SpecGroupResponse,
    SpecPairResponse,
)
from services.marketplace_service.services.category_tree import CategoryNode
from services.marketplace_service.services.spec_resolver import resolve_goods_specs
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload


async def log_audit(
    db: AsyncSession,
    entity_type: AuditEntityType,
    entity_id: int,
    action: str,
    performed_by: str,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
    notes: Optional[str] = None,
):
    """Log an audit event."""
    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        old_value=old_value,
        new_value=new_value,
        performed_by=performed_by,
        notes=notes,
    )
    db.add(audit_log)


async def paginate(
    db: AsyncSession, query: Select, page: int, page_size: int
) -> tuple[Sequence[Any], int, int]:
    """Run ``query`` for one page. Returns ``(rows, total, total_pages)``."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    return result.scalars().all(), total, (total + page_size - 1) // page_size


def tree_response(nodes: Sequence[CategoryNode]) -> list[CategoryTreeNode]:
    return [
        CategoryTreeNode(
            **CategoryResponse.model_validate(node.category).model_dump(),
            children=tree_response(node.children),
        )
        for node in nodes
    ]


def goods_detail_query():
    return select(Goods).options(
        selectinload(Goods.skus).selectinload(GoodsSku.spec_links),
        selectinload(Goods.gallery),
    )


async def load_goods(
    db: AsyncSession, goods_id: int, store_id: Optional[int] = None
) -> Goods:
    """Goods with SKUs, spec links and gallery, optionally scoped to a store."""
    query = goods_detail_query().where(Goods.id == goods_id)
    if store_id is not None:
        query = query.where(Goods.store_id == store_id)
    result = await db.execute(query.execution_options(populate_existing=True))
    goods = result.scalar_one_or_none()
    if not goods:
        raise NotFound("GOODS_NOT_EXIST", "Goods not found")
    return goods


async def goods_detail(db: AsyncSession, goods: Goods) -> GoodsDetailResponse:
    resolved = await resolve_goods_specs(db, goods.skus)
    skus = [
        SkuResponse.model_validate(sku).model_copy(
            update={
                "specs": [
                    SpecPairResponse(spec_name=pair.spec_name, spec_value=pair.spec_value)
                    for pair in resolved.sku_specs.get(sku.id, [])
                ]
            }
        )
        for sku in goods.skus
    ]
    return GoodsDetailResponse(
        **GoodsResponse.model_validate(goods).model_dump(),
        intro=goods.intro,
        gallery=[image.url for image in goods.gallery],
        skus=skus,
        spec_list=[
            SpecGroupResponse(spec_name=group.spec_name, values=group.values)
            for group in resolved.spec_list
        ],
    )


async def get_store(db: AsyncSession, store_id: int) -> Store:
    store = await db.get(Store, store_id)
    if not store:
        raise NotFound("STORE_NOT_EXIST", "Store not found")
    return store
