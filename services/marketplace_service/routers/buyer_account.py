"""Buyer account endpoints: profile, addresses, collections and store applications."""

from dateutil.relativedelta import relativedelta
from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_member
from libs.auth.models import AuthUser
from libs.auth.security import hash_password, verify_password
from libs.common.datetime_utils import utc_now
from libs.common.errors import BusinessRuleViolation, NotFound, ValidationFailed
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    Goods,
    GoodsCollection,
    Member,
    MemberAddress,
    MemberRole,
    Store,
    StoreCollection,
    StoreStatus,
)
from services.marketplace_service.routers._helpers import get_store, paginate
from services.marketplace_service.schemas import (
    AddressCreate,
    AddressResponse,
    AddressUpdate,
    CollectionStatusResponse,
    GoodsListResponse,
    GoodsResponse,
    MemberProfileUpdate,
    MemberResponse,
    PasswordChangeRequest,
    StoreApplyRequest,
    StoreListResponse,
    StoreResponse,
)
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/buyer", tags=["buyer-account"])


async def _get_member(db: AsyncSession, member_id: int) -> Member:
    member = await db.get(Member, member_id)
    if not member:
        raise NotFound("USER_NOT_EXIST", "Member not found")
    return member


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/profile", response_model=MemberResponse)
async def get_profile(
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_member(db, current_user.user_id)


@router.put("/profile", response_model=MemberResponse)
async def update_profile(
    payload: MemberProfileUpdate,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    member = await _get_member(db, current_user.user_id)
    update_data = payload.model_dump(exclude_unset=True)
    mobile = update_data.get("mobile")
    if mobile:
        taken = await db.execute(
            select(Member.id).where(Member.mobile == mobile, Member.id != member.id)
        )
        if taken.first():
            raise BusinessRuleViolation("USER_EXISTS", "Mobile already registered")
    for field, value in update_data.items():
        setattr(member, field, value)
    await db.commit()
    await db.refresh(member)
    return member


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    payload: PasswordChangeRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    member = await _get_member(db, current_user.user_id)
    if not verify_password(payload.old_password, member.password_hash):
        raise ValidationFailed("OLD_PASSWORD_ERROR", "Current password is incorrect")
    member.password_hash = hash_password(payload.new_password)
    await db.commit()
    logger.info("Member %s changed password", member.id)


# ============================================================================
# ADDRESSES
# ============================================================================


async def _get_address(db: AsyncSession, member_id: int, address_id: int) -> MemberAddress:
    result = await db.execute(
        select(MemberAddress).where(
            MemberAddress.id == address_id, MemberAddress.member_id == member_id
        )
    )
    address = result.scalar_one_or_none()
    if not address:
        raise NotFound("ADDRESS_NOT_EXIST", "Address not found")
    return address


async def _clear_default(db: AsyncSession, member_id: int) -> None:
    await db.execute(
        update(MemberAddress)
        .where(MemberAddress.member_id == member_id, MemberAddress.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


@router.get("/addresses", response_model=list[AddressResponse])
async def list_addresses(
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(MemberAddress)
        .where(MemberAddress.member_id == current_user.user_id)
        .order_by(MemberAddress.is_default.desc(), MemberAddress.id)
    )
    return result.scalars().all()


@router.get("/addresses/{address_id}", response_model=AddressResponse)
async def get_address(
    address_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_address(db, current_user.user_id, address_id)


@router.post(
    "/addresses", response_model=AddressResponse, status_code=status.HTTP_201_CREATED
)
async def create_address(
    payload: AddressCreate,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """Add an address. The member's first address becomes the default."""
    existing = await db.execute(
        select(MemberAddress.id).where(MemberAddress.member_id == current_user.user_id)
    )
    is_default = payload.is_default or existing.first() is None
    if is_default:
        await _clear_default(db, current_user.user_id)

    address = MemberAddress(
        member_id=current_user.user_id,
        **payload.model_dump(exclude={"is_default"}),
        is_default=is_default,
    )
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


@router.put("/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: int,
    payload: AddressUpdate,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    address = await _get_address(db, current_user.user_id, address_id)
    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("is_default"):
        await _clear_default(db, current_user.user_id)
    for field, value in update_data.items():
        setattr(address, field, value)
    await db.commit()
    await db.refresh(address)
    return address


@router.put("/addresses/{address_id}/default", response_model=AddressResponse)
async def set_default_address(
    address_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    address = await _get_address(db, current_user.user_id, address_id)
    await _clear_default(db, current_user.user_id)
    address.is_default = True
    await db.commit()
    await db.refresh(address)
    return address


@router.delete("/addresses/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    address_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    address = await _get_address(db, current_user.user_id, address_id)
    await db.delete(address)
    await db.commit()


# ============================================================================
# COLLECTIONS
# ============================================================================


@router.get("/collections/goods", response_model=GoodsListResponse)
async def list_goods_collections(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Goods)
        .join(GoodsCollection, GoodsCollection.goods_id == Goods.id)
        .where(GoodsCollection.member_id == current_user.user_id)
        .order_by(GoodsCollection.created_at.desc(), GoodsCollection.id.desc())
    )
    goods, total, total_pages = await paginate(db, query, page, page_size)
    return GoodsListResponse(
        items=[GoodsResponse.model_validate(g) for g in goods],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/collections/goods/{goods_id}", response_model=CollectionStatusResponse)
async def is_goods_collected(
    goods_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(GoodsCollection.id).where(
            GoodsCollection.member_id == current_user.user_id,
            GoodsCollection.goods_id == goods_id,
        )
    )
    return CollectionStatusResponse(collected=result.first() is not None)


@router.post("/collections/goods/{goods_id}", response_model=CollectionStatusResponse)
async def collect_goods(
    goods_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """Add goods to favourites. Collecting twice is a no-op."""
    if not await db.get(Goods, goods_id):
        raise NotFound("GOODS_NOT_EXIST", "Goods not found")
    existing = await db.execute(
        select(GoodsCollection.id).where(
            GoodsCollection.member_id == current_user.user_id,
            GoodsCollection.goods_id == goods_id,
        )
    )
    if existing.first() is None:
        db.add(GoodsCollection(member_id=current_user.user_id, goods_id=goods_id))
        await db.commit()
    return CollectionStatusResponse(collected=True)


@router.delete("/collections/goods/{goods_id}", response_model=CollectionStatusResponse)
async def uncollect_goods(
    goods_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(GoodsCollection).where(
            GoodsCollection.member_id == current_user.user_id,
            GoodsCollection.goods_id == goods_id,
        )
    )
    collection = result.scalar_one_or_none()
    if collection:
        await db.delete(collection)
        await db.commit()
    return CollectionStatusResponse(collected=False)


@router.get("/collections/stores", response_model=StoreListResponse)
async def list_store_collections(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Store)
        .join(StoreCollection, StoreCollection.store_id == Store.id)
        .where(StoreCollection.member_id == current_user.user_id)
        .order_by(StoreCollection.created_at.desc(), StoreCollection.id.desc())
    )
    stores, total, total_pages = await paginate(db, query, page, page_size)
    return StoreListResponse(
        items=[StoreResponse.model_validate(s) for s in stores],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/collections/stores/{store_id}", response_model=CollectionStatusResponse)
async def is_store_collected(
    store_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(StoreCollection.id).where(
            StoreCollection.member_id == current_user.user_id,
            StoreCollection.store_id == store_id,
        )
    )
    return CollectionStatusResponse(collected=result.first() is not None)


@router.post("/collections/stores/{store_id}", response_model=CollectionStatusResponse)
async def collect_store(
    store_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    await get_store(db, store_id)
    existing = await db.execute(
        select(StoreCollection.id).where(
            StoreCollection.member_id == current_user.user_id,
            StoreCollection.store_id == store_id,
        )
    )
    if existing.first() is None:
        db.add(StoreCollection(member_id=current_user.user_id, store_id=store_id))
        await db.commit()
    return CollectionStatusResponse(collected=True)


@router.delete("/collections/stores/{store_id}", response_model=CollectionStatusResponse)
async def uncollect_store(
    store_id: int,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(StoreCollection).where(
            StoreCollection.member_id == current_user.user_id,
            StoreCollection.store_id == store_id,
        )
    )
    collection = result.scalar_one_or_none()
    if collection:
        await db.delete(collection)
        await db.commit()
    return CollectionStatusResponse(collected=False)


# ============================================================================
# STORE APPLICATION
# ============================================================================


@router.get("/store", response_model=StoreResponse)
async def get_my_store(
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """The caller's store or pending application."""
    result = await db.execute(select(Store).where(Store.member_id == current_user.user_id))
    store = result.scalar_one_or_none()
    if not store:
        raise NotFound("STORE_NOT_EXIST", "No store application found")
    return store


@router.post(
    "/store/apply", response_model=StoreResponse, status_code=status.HTTP_201_CREATED
)
async def apply_for_store(
    payload: StoreApplyRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Apply to open a store.

    A member holds at most one store. A refused application may be
    resubmitted, which reuses the refused row and puts it back to APPLYING.
    The first month of the platform fee is granted on application.
    """
    member = await _get_member(db, current_user.user_id)
    result = await db.execute(select(Store).where(Store.member_id == member.id))
    store = result.scalar_one_or_none()
    if store and store.status != StoreStatus.REFUSED:
        raise BusinessRuleViolation(
            "STORE_ALREADY_APPLIED", "This member already has a store or application"
        )
    if store is None:
        store = Store(member_id=member.id)
        db.add(store)

    for field, value in payload.model_dump().items():
        setattr(store, field, value)
    store.status = StoreStatus.APPLYING
    store.payment_due_date = utc_now() + relativedelta(months=1)
    member.role = MemberRole.SELLER

    await db.commit()
    await db.refresh(store)
    logger.info("Member %s applied for store %s", member.id, store.id)
    return store
