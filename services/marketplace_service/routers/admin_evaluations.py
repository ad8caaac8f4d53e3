"""Admin evaluation moderation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuditEntityType,
    Evaluation,
    EvaluationGrade,
    EvaluationStatus,
)
from services.marketplace_service.routers._helpers import log_audit, paginate
from services.marketplace_service.schemas import (
    EvaluationListResponse,
    EvaluationResponse,
)
from services.marketplace_service.services.evaluation_aggregator import (
    delete_evaluation,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/evaluations", tags=["admin-evaluations"])


async def _get_evaluation(db: AsyncSession, evaluation_id: int) -> Evaluation:
    evaluation = await db.get(Evaluation, evaluation_id)
    if not evaluation:
        raise NotFound("EVALUATION_NOT_EXIST", "Evaluation not found")
    return evaluation


@router.get("", response_model=EvaluationListResponse)
async def list_evaluations(
    goods_id: Optional[int] = None,
    store_id: Optional[int] = None,
    member_id: Optional[int] = None,
    grade: Optional[EvaluationGrade] = None,
    evaluation_status: Optional[EvaluationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Evaluation).order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
    if goods_id:
        query = query.where(Evaluation.goods_id == goods_id)
    if store_id:
        query = query.where(Evaluation.store_id == store_id)
    if member_id:
        query = query.where(Evaluation.member_id == member_id)
    if grade:
        query = query.where(Evaluation.grade == grade)
    if evaluation_status:
        query = query.where(Evaluation.status == evaluation_status)

    evaluations, total, total_pages = await paginate(db, query, page, page_size)
    return EvaluationListResponse(
        items=[EvaluationResponse.model_validate(e) for e in evaluations],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{evaluation_id}", response_model=EvaluationResponse)
async def get_evaluation(
    evaluation_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_evaluation(db, evaluation_id)


@router.put("/{evaluation_id}/status", response_model=EvaluationResponse)
async def toggle_evaluation_status(
    evaluation_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Hide (CLOSED) or show (OPEN) an evaluation on the goods page."""
    evaluation = await _get_evaluation(db, evaluation_id)
    evaluation.status = (
        EvaluationStatus.CLOSED
        if evaluation.status == EvaluationStatus.OPEN
        else EvaluationStatus.OPEN
    )
    await log_audit(
        db,
        AuditEntityType.EVALUATION,
        evaluation.id,
        f"status_{evaluation.status.value.lower()}",
        current_user.username,
    )
    await db.commit()
    await db.refresh(evaluation)
    return evaluation


@router.delete("/{evaluation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_evaluation(
    evaluation_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete an evaluation and refresh the goods grade aggregate."""
    await log_audit(
        db, AuditEntityType.EVALUATION, evaluation_id, "deleted", current_user.username
    )
    await delete_evaluation(db, evaluation_id)
    return None
