"""Admin store management and application audit."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import BusinessRuleViolation
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuditEntityType,
    Goods,
    MarketStatus,
    Member,
    MemberRole,
    Store,
    StoreStatus,
)
from services.marketplace_service.routers._helpers import get_store, log_audit, paginate
from services.marketplace_service.schemas import (
    StoreAuditRequest,
    StoreListResponse,
    StoreResponse,
)
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/stores", tags=["admin-stores"])


@router.get("", response_model=StoreListResponse)
async def list_stores(
    store_name: Optional[str] = None,
    member_id: Optional[int] = None,
    store_status: Optional[StoreStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Store).order_by(Store.created_at.desc(), Store.id.desc())
    if store_name:
        query = query.where(Store.store_name.ilike(f"%{store_name}%"))
    if member_id:
        query = query.where(Store.member_id == member_id)
    if store_status:
        query = query.where(Store.status == store_status)

    stores, total, total_pages = await paginate(db, query, page, page_size)
    return StoreListResponse(
        items=[StoreResponse.model_validate(s) for s in stores],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{store_id}", response_model=StoreResponse)
async def get_store_detail(
    store_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_store(db, store_id)


@router.put("/{store_id}/disable", response_model=StoreResponse)
async def disable_store(
    store_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Close an open store and take all its goods off sale."""
    store = await get_store(db, store_id)
    if store.status != StoreStatus.OPEN:
        raise BusinessRuleViolation("STORE_NOT_OPEN", "Only open stores can be closed")
    store.status = StoreStatus.CLOSED
    await db.execute(
        update(Goods)
        .where(Goods.store_id == store_id)
        .values(market_enable=MarketStatus.DOWN, version=Goods.version + 1)
        .execution_options(synchronize_session=False)
    )
    await log_audit(db, AuditEntityType.STORE, store.id, "disabled", current_user.username)
    await db.commit()
    await db.refresh(store)
    return store


@router.put("/{store_id}/enable", response_model=StoreResponse)
async def enable_store(
    store_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    store = await get_store(db, store_id)
    if store.status != StoreStatus.CLOSED:
        raise BusinessRuleViolation("STORE_NOT_CLOSED", "Only closed stores can be reopened")
    store.status = StoreStatus.OPEN
    await log_audit(db, AuditEntityType.STORE, store.id, "enabled", current_user.username)
    await db.commit()
    await db.refresh(store)
    return store


@router.put("/{store_id}/audit", response_model=StoreResponse)
async def audit_store(
    store_id: int,
    payload: StoreAuditRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Approve or refuse a store application."""
    store = await get_store(db, store_id)
    if store.status != StoreStatus.APPLYING:
        raise BusinessRuleViolation(
            "STORE_NOT_APPLYING", "Only applying stores can be audited"
        )
    store.status = StoreStatus.OPEN if payload.passed else StoreStatus.REFUSED
    if not payload.passed:
        member = await db.get(Member, store.member_id)
        if member:
            member.role = MemberRole.MEMBER
    await log_audit(
        db,
        AuditEntityType.STORE,
        store.id,
        "approved" if payload.passed else "refused",
        current_user.username,
    )
    await db.commit()
    await db.refresh(store)
    logger.info("Store %s audited: %s", store.id, store.status.value)
    return store
