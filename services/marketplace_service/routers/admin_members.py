"""Admin member management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.auth.security import hash_password
from libs.common.errors import BusinessRuleViolation, NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import AuditEntityType, Member, MemberAddress
from services.marketplace_service.routers._helpers import log_audit, paginate
from services.marketplace_service.schemas import (
    AddressResponse,
    AdminMemberCreate,
    AdminMemberUpdate,
    MemberListResponse,
    MemberResponse,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/admin/members", tags=["admin-members"])


async def _get_member(db: AsyncSession, member_id: int) -> Member:
    member = await db.get(Member, member_id)
    if not member:
        raise NotFound("USER_NOT_EXIST", "Member not found")
    return member


async def _ensure_mobile_free(
    db: AsyncSession, mobile: Optional[str], exclude_id: Optional[int] = None
) -> None:
    if not mobile:
        return
    query = select(Member.id).where(Member.mobile == mobile)
    if exclude_id is not None:
        query = query.where(Member.id != exclude_id)
    if (await db.execute(query)).first():
        raise BusinessRuleViolation("USER_EXISTS", "Mobile already registered")


@router.get("", response_model=MemberListResponse)
async def list_members(
    keyword: Optional[str] = None,
    disabled: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Page members; ``keyword`` matches username, nickname or mobile."""
    query = select(Member).order_by(Member.created_at.desc(), Member.id.desc())
    if keyword:
        term = f"%{keyword}%"
        query = query.where(
            or_(
                Member.username.ilike(term),
                Member.nick_name.ilike(term),
                Member.mobile.ilike(term),
            )
        )
    if disabled is not None:
        query = query.where(Member.disabled.is_(disabled))

    members, total, total_pages = await paginate(db, query, page, page_size)
    return MemberListResponse(
        items=[MemberResponse.model_validate(m) for m in members],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_member(db, member_id)


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    member_in: AdminMemberCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    existing = await db.execute(
        select(Member.id).where(Member.username == member_in.username)
    )
    if existing.first():
        raise BusinessRuleViolation("USER_EXISTS", "Username already registered")
    await _ensure_mobile_free(db, member_in.mobile)

    member = Member(
        username=member_in.username,
        mobile=member_in.mobile,
        email=member_in.email,
        nick_name=member_in.nick_name or member_in.username,
        password_hash=hash_password(member_in.password),
    )
    db.add(member)
    await db.flush()
    await log_audit(db, AuditEntityType.MEMBER, member.id, "created", current_user.username)
    await db.commit()
    await db.refresh(member)
    return member


@router.put("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    member_in: AdminMemberUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    member = await _get_member(db, member_id)
    update_data = member_in.model_dump(exclude_unset=True)
    await _ensure_mobile_free(db, update_data.get("mobile"), exclude_id=member_id)

    password = update_data.pop("password", None)
    if password:
        member.password_hash = hash_password(password)
    for field, value in update_data.items():
        setattr(member, field, value)

    await log_audit(
        db,
        AuditEntityType.MEMBER,
        member.id,
        "updated",
        current_user.username,
        new_value=member_in.model_dump(mode="json", exclude_unset=True, exclude={"password"}),
    )
    await db.commit()
    await db.refresh(member)
    return member


@router.put("/{member_id}/disable", response_model=MemberResponse)
async def toggle_member(
    member_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Flip the disabled flag. Disabled members cannot log in."""
    member = await _get_member(db, member_id)
    member.disabled = not member.disabled
    await log_audit(
        db,
        AuditEntityType.MEMBER,
        member.id,
        "disabled" if member.disabled else "enabled",
        current_user.username,
    )
    await db.commit()
    await db.refresh(member)
    return member


@router.get("/{member_id}/addresses", response_model=list[AddressResponse])
async def list_member_addresses(
    member_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _get_member(db, member_id)
    result = await db.execute(
        select(MemberAddress)
        .where(MemberAddress.member_id == member_id)
        .order_by(MemberAddress.is_default.desc(), MemberAddress.id)
    )
    return result.scalars().all()
