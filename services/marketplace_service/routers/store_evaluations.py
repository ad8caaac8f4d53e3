"""Seller endpoints for evaluations of the store's goods."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_store
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.db.session import get_async_db
from services.marketplace_service.models import Evaluation, EvaluationGrade
from services.marketplace_service.routers._helpers import paginate
from services.marketplace_service.schemas import (
    EvaluationListResponse,
    EvaluationReplyRequest,
    EvaluationResponse,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/store/evaluations", tags=["store-evaluations"])


async def _get_store_evaluation(
    db: AsyncSession, evaluation_id: int, store_id: int
) -> Evaluation:
    result = await db.execute(
        select(Evaluation).where(
            Evaluation.id == evaluation_id, Evaluation.store_id == store_id
        )
    )
    evaluation = result.scalar_one_or_none()
    if not evaluation:
        raise NotFound("EVALUATION_NOT_EXIST", "Evaluation not found")
    return evaluation


@router.get("", response_model=EvaluationListResponse)
async def list_store_evaluations(
    goods_id: Optional[int] = None,
    grade: Optional[EvaluationGrade] = None,
    replied: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Evaluation)
        .where(Evaluation.store_id == current_user.store_id)
        .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
    )
    if goods_id:
        query = query.where(Evaluation.goods_id == goods_id)
    if grade:
        query = query.where(Evaluation.grade == grade)
    if replied is True:
        query = query.where(Evaluation.reply.is_not(None))
    elif replied is False:
        query = query.where(Evaluation.reply.is_(None))

    evaluations, total, total_pages = await paginate(db, query, page, page_size)
    return EvaluationListResponse(
        items=[EvaluationResponse.model_validate(e) for e in evaluations],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{evaluation_id}", response_model=EvaluationResponse)
async def get_store_evaluation(
    evaluation_id: int,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_store_evaluation(db, evaluation_id, current_user.store_id)


@router.put("/{evaluation_id}/reply", response_model=EvaluationResponse)
async def reply_evaluation(
    evaluation_id: int,
    payload: EvaluationReplyRequest,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    evaluation = await _get_store_evaluation(db, evaluation_id, current_user.store_id)
    evaluation.reply = payload.reply
    evaluation.reply_images = list(payload.reply_images)
    await db.commit()
    await db.refresh(evaluation)
    return evaluation
