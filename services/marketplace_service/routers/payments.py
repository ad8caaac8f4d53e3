"""Hosted checkout sessions for buyer carts and store fees."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_member, require_store
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import ExternalServiceError, NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import GoodsSku
from services.marketplace_service.routers._helpers import get_store
from services.marketplace_service.schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    StoreFeeRequest,
)
from services.marketplace_service.services.order_composition import merge_quantities
from services.marketplace_service.stripe_client import (
    CheckoutLine,
    StripeClient,
    StripeError,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"])


async def _create_session(lines: list[CheckoutLine], metadata: dict) -> CheckoutSessionResponse:
    try:
        session = await StripeClient().create_checkout_session(lines, metadata=metadata)
    except StripeError as exc:
        raise ExternalServiceError("PAYMENT_PROVIDER_ERROR", exc.message) from exc
    return CheckoutSessionResponse(session_id=session.session_id, url=session.url)


@router.post("/checkout-session", response_model=CheckoutSessionResponse)
async def create_cart_checkout(
    payload: CheckoutSessionRequest,
    current_user: AuthUser = Depends(require_member),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Open a Stripe checkout page for a cart. Prices always come from the
    current SKU rows, never from the client.
    """
    quantities = merge_quantities([(line.sku_id, line.quantity) for line in payload.items])
    result = await db.execute(
        select(GoodsSku)
        .where(GoodsSku.id.in_(list(quantities)))
        .options(selectinload(GoodsSku.goods))
    )
    skus = {sku.id: sku for sku in result.scalars().all()}

    lines = []
    for sku_id, quantity in quantities.items():
        sku = skus.get(sku_id)
        if sku is None:
            raise NotFound("SKU_NOT_EXIST", f"SKU {sku_id} not found")
        lines.append(
            CheckoutLine(name=sku.goods.goods_name, unit_amount=sku.price, quantity=quantity)
        )

    session = await _create_session(lines, {"member_id": current_user.user_id})
    logger.info("Checkout session %s for member %s", session.session_id, current_user.user_id)
    return session


@router.post("/store-fee-session", response_model=CheckoutSessionResponse)
async def create_store_fee_checkout(
    payload: StoreFeeRequest,
    current_user: AuthUser = Depends(require_store),
    db: AsyncSession = Depends(get_async_db),
):
    store = await get_store(db, current_user.store_id)
    line = CheckoutLine(
        name=f"{store.store_name} platform fee",
        unit_amount=get_settings().STORE_MONTHLY_FEE,
        quantity=payload.months,
    )
    return await _create_session([line], {"store_id": store.id, "months": payload.months})
