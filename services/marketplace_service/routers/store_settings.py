"""Seller store settings and store fee endpoints."""

from dateutil.relativedelta import relativedelta
from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_store
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    PaymentLog,
    PaymentType,
    PayStatus,
    Store,
)
from services.marketplace_service.routers._helpers import get_store
from services.marketplace_service.schemas import (
    StockWarningRequest,
    StoreFeeRequest,
    StoreResponse,
    StoreSettingsUpdate,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/store/settings", tags=["store-settings"])


def extend_payment_due_date(store: Store, months: int) -> None:
    """Push the due date ``months`` forward from itself, or from now if lapsed."""
    now = utc_now()
    current = ensure_utc(store.payment_due_date)
    start = current if current and current > now else now
    store.payment_due_date = start + relativedelta(months=months)


@router.get("", response_model=StoreResponse)
async def get_store_settings(
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_store(db, current_user.store_id)


@router.put("", response_model=StoreResponse)
async def update_store_settings(
    payload: StoreSettingsUpdate,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    store = await get_store(db, current_user.store_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(store, field, value)
    await db.commit()
    await db.refresh(store)
    return store


@router.put("/stock-warning", response_model=StoreResponse)
async def update_stock_warning(
    payload: StockWarningRequest,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    store = await get_store(db, current_user.store_id)
    store.stock_warning = payload.stock_warning
    await db.commit()
    await db.refresh(store)
    return store


@router.post("/payment-due-date", response_model=StoreResponse)
async def extend_store_payment(
    payload: StoreFeeRequest,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    """Record a store fee payment for ``months`` and extend the due date."""
    store = await get_store(db, current_user.store_id)
    extend_payment_due_date(store, payload.months)
    now = utc_now()
    db.add(
        PaymentLog(
            type=PaymentType.STORE_FEE,
            store_id=store.id,
            member_id=store.member_id,
            amount=get_settings().STORE_MONTHLY_FEE * payload.months,
            pay_status=PayStatus.PAID,
            payment_method="STRIPE",
            paid_at=now,
        )
    )
    await db.commit()
    await db.refresh(store)
    logger.info(
        "Store %s paid %d months, due %s", store.id, payload.months, store.payment_due_date
    )
    return store
