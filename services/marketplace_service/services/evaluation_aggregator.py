"""Evaluation upserts and the goods-level grade aggregate.

``grade`` on Goods is the mean of the non-null service scores while
``comment_num`` counts every evaluation, scored or not.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from libs.common.errors import BusinessRuleViolation, NotFound
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    Evaluation,
    EvaluationGrade,
    Goods,
    Order,
    OrderItem,
    OrderStatus,
    SubOrder,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class GradeAggregate:
    average_grade: float
    comment_count: int


def aggregate_scores(scores: Iterable[Optional[int]]) -> GradeAggregate:
    scores = list(scores)
    scored = [score for score in scores if score is not None]
    average = sum(scored) / len(scored) if scored else 0.0
    return GradeAggregate(average_grade=float(average), comment_count=len(scores))


async def recompute_goods_aggregate(db: AsyncSession, goods_id: int) -> Goods:
    """
    Lock the goods row and rewrite ``grade`` / ``comment_num`` from its
    evaluations. Pending evaluation changes must be flushed first.
    """
    result = await db.execute(
        select(Goods)
        .where(Goods.id == goods_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    goods = result.scalar_one_or_none()
    if not goods:
        raise NotFound("GOODS_NOT_EXIST", "Goods not found")

    scores = await db.execute(
        select(Evaluation.service_score).where(Evaluation.goods_id == goods_id)
    )
    aggregate = aggregate_scores(scores.scalars().all())
    goods.grade = aggregate.average_grade
    goods.comment_num = aggregate.comment_count
    # The version counter is bumped on flush; a concurrent writer that read
    # an older version fails with StaleDataError instead of overwriting.
    await db.flush()
    logger.info(
        "Recomputed goods %s aggregate: grade=%.2f comments=%d",
        goods_id,
        aggregate.average_grade,
        aggregate.comment_count,
    )
    return goods


async def _purchased_item(
    db: AsyncSession, member_id: int, order_sn: str, sku_id: int
) -> tuple[Order, SubOrder, OrderItem]:
    result = await db.execute(
        select(Order, SubOrder, OrderItem)
        .join(SubOrder, SubOrder.order_id == Order.id)
        .join(OrderItem, OrderItem.sub_order_id == SubOrder.id)
        .where(
            Order.sn == order_sn,
            Order.member_id == member_id,
            OrderItem.sku_id == sku_id,
        )
    )
    row = result.first()
    if not row:
        raise NotFound("ORDER_NOT_EXIST", "No purchase of this SKU in the order")
    return row[0], row[1], row[2]


async def submit_evaluation(
    db: AsyncSession,
    member_id: int,
    order_sn: str,
    sku_id: int,
    grade: EvaluationGrade,
    content: str,
    service_score: Optional[int] = None,
    images: Optional[list[str]] = None,
) -> Evaluation:
    """
    Create or update the member's evaluation of one purchased SKU and
    refresh the goods aggregate, committing both together.
    """
    order, sub_order, item = await _purchased_item(db, member_id, order_sn, sku_id)
    if order.order_status == OrderStatus.CANCELLED:
        raise BusinessRuleViolation(
            "ORDER_ALREADY_CANCELLED", "Cancelled orders cannot be evaluated"
        )

    result = await db.execute(
        select(Evaluation).where(
            Evaluation.member_id == member_id,
            Evaluation.goods_id == item.goods_id,
            Evaluation.sku_id == sku_id,
            Evaluation.order_sn == order_sn,
            Evaluation.store_id == sub_order.store_id,
        )
    )
    evaluation = result.scalar_one_or_none()
    if evaluation is None:
        evaluation = Evaluation(
            member_id=member_id,
            goods_id=item.goods_id,
            sku_id=sku_id,
            order_sn=order_sn,
            store_id=sub_order.store_id,
        )
        db.add(evaluation)
    evaluation.grade = grade
    evaluation.content = content
    evaluation.service_score = service_score
    evaluation.images = list(images or [])

    await db.flush()
    await recompute_goods_aggregate(db, item.goods_id)
    await db.commit()
    await db.refresh(evaluation)
    return evaluation


async def delete_evaluation(db: AsyncSession, evaluation_id: int) -> None:
    evaluation = await db.get(Evaluation, evaluation_id)
    if not evaluation:
        raise NotFound("EVALUATION_NOT_EXIST", "Evaluation not found")
    goods_id = evaluation.goods_id
    await db.delete(evaluation)
    await db.flush()
    await recompute_goods_aggregate(db, goods_id)
    await db.commit()
