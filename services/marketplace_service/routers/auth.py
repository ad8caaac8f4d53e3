"""Login, registration and token endpoints for members, sellers and admins."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser, TokenPair
from libs.auth.security import (
    PASSWORD_RESET,
    REFRESH,
    check_password_reset_claims,
    decode_token,
    hash_password,
    issue_password_reset_token,
    issue_token_pair,
    user_from_claims,
    verify_password,
)
from libs.common.config import get_settings
from libs.common.emails.accounts import send_password_reset_email
from libs.common.errors import (
    AuthenticationFailed,
    BusinessRuleViolation,
    NotFound,
    PermissionDenied,
)
from libs.common.logging import get_logger
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.marketplace_service.models import AdminUser, Member, Store, StoreStatus
from services.marketplace_service.schemas import (
    AdminUserResponse,
    LoginRequest,
    MemberRegisterRequest,
    MemberResponse,
    PasswordForgotRequest,
    PasswordResetRequest,
    RefreshRequest,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Incorrect username or password"


async def _authenticate_member(
    db: AsyncSession, username: str, password: str
) -> Member:
    result = await db.execute(
        select(Member).where(or_(Member.username == username, Member.mobile == username))
    )
    member = result.scalars().first()
    if not member or not verify_password(password, member.password_hash):
        raise AuthenticationFailed("INVALID_CREDENTIALS", INVALID_CREDENTIALS)
    if member.disabled:
        raise PermissionDenied("USER_DISABLED", "This account has been disabled")
    return member


# ============================================================================
# MEMBER
# ============================================================================


@router.post(
    "/member/register",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
@auth_limit
async def register_member(
    request: Request,
    payload: MemberRegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Create a buyer account. Username and mobile must both be unused."""
    conditions = [Member.username == payload.username]
    if payload.mobile:
        conditions.append(Member.mobile == payload.mobile)
    existing = await db.execute(select(Member.id).where(or_(*conditions)))
    if existing.first():
        raise BusinessRuleViolation("USER_EXISTS", "Username or mobile already registered")

    member = Member(
        username=payload.username,
        mobile=payload.mobile,
        email=payload.email,
        nick_name=payload.username,
        password_hash=hash_password(payload.password),
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    logger.info("Registered member %s", member.id)
    return member


@router.post("/member/login", response_model=TokenPair)
@auth_limit
async def login_member(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    member = await _authenticate_member(db, payload.username, payload.password)
    return issue_token_pair(member.id, member.username, "member")


@router.post("/member/logout")
async def logout_member():
    """
    Tokens are stateless; clients drop them. Kept so the frontend has a
    single place to call.
    """
    return {"message": "Logged out"}


@router.post("/member/password/forgot")
@auth_limit
async def forgot_password(
    request: Request,
    payload: PasswordForgotRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Email a reset link. The response never reveals whether the user exists."""
    result = await db.execute(
        select(Member).where(
            or_(Member.username == payload.username, Member.email == payload.username)
        )
    )
    member = result.scalars().first()
    if member and member.email and not member.disabled:
        settings = get_settings()
        token = issue_password_reset_token(
            member.id, member.username, member.password_hash
        )
        await send_password_reset_email(
            to_email=member.email,
            username=member.username,
            reset_link=f"{settings.FRONTEND_URL}/reset-password?token={token}",
            expires_minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES,
        )
    return {"message": "If the account exists, a reset link has been sent"}


@router.post("/member/password/reset")
async def reset_password(
    payload: PasswordResetRequest,
    db: AsyncSession = Depends(get_async_db),
):
    claims = decode_token(payload.token, PASSWORD_RESET)
    member = await db.get(Member, int(claims["sub"]))
    if not member:
        raise NotFound("USER_NOT_EXIST", "Member not found")
    check_password_reset_claims(claims, member.password_hash)
    member.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("Password reset for member %s", member.id)
    return {"message": "Password updated"}


# ============================================================================
# STORE
# ============================================================================


@router.post("/store/login", response_model=TokenPair)
@auth_limit
async def login_store(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Seller login: the member must own an open store."""
    member = await _authenticate_member(db, payload.username, payload.password)
    result = await db.execute(select(Store).where(Store.member_id == member.id))
    store = result.scalar_one_or_none()
    if not store:
        raise PermissionDenied("STORE_NOT_EXIST", "This account has no store")
    if store.status != StoreStatus.OPEN:
        raise PermissionDenied("STORE_NOT_OPEN", "The store is not open")
    return issue_token_pair(member.id, member.username, "seller", store_id=store.id)


# ============================================================================
# ADMIN
# ============================================================================


@router.post("/admin/login", response_model=TokenPair)
@auth_limit
async def login_admin(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(AdminUser).where(AdminUser.username == payload.username)
    )
    admin = result.scalar_one_or_none()
    if not admin or not verify_password(payload.password, admin.password_hash):
        raise AuthenticationFailed("INVALID_CREDENTIALS", INVALID_CREDENTIALS)
    if admin.disabled:
        raise PermissionDenied("USER_DISABLED", "This account has been disabled")
    return issue_token_pair(admin.id, admin.username, "admin")


@router.get("/admin/me", response_model=AdminUserResponse)
async def admin_me(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    admin = await db.get(AdminUser, current_user.user_id)
    if not admin:
        raise NotFound("USER_NOT_EXIST", "Admin user not found")
    return admin


# ============================================================================
# REFRESH
# ============================================================================


@router.post("/refresh", response_model=TokenPair)
async def refresh_tokens(payload: RefreshRequest):
    """Exchange a refresh token for a new pair with the same identity."""
    user = user_from_claims(decode_token(payload.refresh_token, REFRESH))
    return issue_token_pair(user.user_id, user.username, user.role, user.store_id)
