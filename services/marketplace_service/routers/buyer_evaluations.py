"""Buyer evaluation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_member
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    Evaluation,
    EvaluationGrade,
    EvaluationStatus,
)
from services.marketplace_service.routers._helpers import paginate
from services.marketplace_service.schemas import (
    EvaluationCountResponse,
    EvaluationListResponse,
    EvaluationResponse,
    EvaluationSubmitRequest,
)
from services.marketplace_service.services.evaluation_aggregator import (
    submit_evaluation,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/buyer", tags=["buyer-evaluations"])


def _page(evaluations, total, total_pages, page, page_size) -> EvaluationListResponse:
    return EvaluationListResponse(
        items=[EvaluationResponse.model_validate(e) for e in evaluations],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/goods/{goods_id}/evaluations", response_model=EvaluationListResponse)
async def list_goods_evaluations(
    goods_id: int,
    grade: Optional[EvaluationGrade] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """Visible (OPEN) evaluations of a goods, newest first."""
    query = (
        select(Evaluation)
        .where(
            Evaluation.goods_id == goods_id,
            Evaluation.status == EvaluationStatus.OPEN,
        )
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
    )
    if grade:
        query = query.where(Evaluation.grade == grade)
    evaluations, total, total_pages = await paginate(db, query, page, page_size)
    return _page(evaluations, total, total_pages, page, page_size)


@router.get("/goods/{goods_id}/evaluations/count", response_model=EvaluationCountResponse)
async def count_goods_evaluations(
    goods_id: int,
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(Evaluation.grade, func.count())
        .where(
            Evaluation.goods_id == goods_id,
            Evaluation.status == EvaluationStatus.OPEN,
        )
        .group_by(Evaluation.grade)
    )
    counts = {grade: count for grade, count in result.all()}
    return EvaluationCountResponse(
        all=sum(counts.values()),
        good=counts.get(EvaluationGrade.GOOD, 0),
        moderate=counts.get(EvaluationGrade.MODERATE, 0),
        worse=counts.get(EvaluationGrade.BAD, 0),
    )


@router.post("/evaluations", response_model=EvaluationResponse)
async def submit_member_evaluation(
    payload: EvaluationSubmitRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Evaluate a purchased SKU. Submitting again for the same order and SKU
    updates the existing evaluation.
    """
    evaluation = await submit_evaluation(
        db,
        member_id=current_user.user_id,
        order_sn=payload.order_sn,
        sku_id=payload.sku_id,
        grade=payload.grade,
        content=payload.content,
        service_score=payload.service_score,
        images=payload.images,
    )
    logger.info(
        "Member %s evaluated sku %s of order %s",
        current_user.user_id,
        payload.sku_id,
        payload.order_sn,
    )
    return evaluation


@router.get("/evaluations", response_model=EvaluationListResponse)
async def list_my_evaluations(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Evaluation)
        .where(Evaluation.member_id == current_user.user_id)
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
    )
    evaluations, total, total_pages = await paginate(db, query, page, page_size)
    return _page(evaluations, total, total_pages, page, page_size)


@router.get("/evaluations/{evaluation_id}", response_model=EvaluationResponse)
async def get_my_evaluation(
    evaluation_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(Evaluation).where(
            Evaluation.id == evaluation_id,
            Evaluation.member_id == current_user.user_id,
        )
    )
    evaluation = result.scalar_one_or_none()
    if not evaluation:
        raise NotFound("EVALUATION_NOT_EXIST", "Evaluation not found")
    return evaluation
