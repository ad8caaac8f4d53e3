"""
Stripe Checkout client.

Creates hosted checkout sessions for buyer carts and store fees through the
Stripe REST API. Stripe expects form-encoded bodies with bracketed keys for
nested values, e.g. ``line_items[0][quantity]=2``.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

STRIPE_BASE_URL = "https://api.stripe.com/v1"


@dataclass
class CheckoutLine:
    name: str
    unit_amount: Decimal  # major currency unit
    quantity: int


@dataclass
class CheckoutSession:
    session_id: str
    url: str


class StripeError(Exception):
    """Raised when Stripe rejects a request or cannot be reached."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (12.34) to the smallest unit (1234)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def checkout_form(
    lines: Sequence[CheckoutLine],
    currency: str,
    success_url: str,
    cancel_url: str,
    metadata: Optional[dict] = None,
) -> dict[str, str]:
    form = {
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": cancel_url,
    }
    for index, line in enumerate(lines):
        prefix = f"line_items[{index}]"
        form[f"{prefix}[quantity]"] = str(line.quantity)
        form[f"{prefix}[price_data][currency]"] = currency
        form[f"{prefix}[price_data][unit_amount]"] = str(to_minor_units(line.unit_amount))
        form[f"{prefix}[price_data][product_data][name]"] = line.name
    for key, value in (metadata or {}).items():
        form[f"metadata[{key}]"] = str(value)
    return form


class StripeClient:
    """Async client for the Stripe Checkout Sessions API."""

    def __init__(self, secret_key: str = None):
        settings = get_settings()
        self.secret_key = secret_key or settings.STRIPE_SECRET_KEY
        if not self.secret_key:
            raise StripeError("STRIPE_SECRET_KEY is not configured")
        self.currency = settings.STRIPE_CURRENCY
        self.success_url = settings.STRIPE_SUCCESS_URL
        self.cancel_url = settings.STRIPE_CANCEL_URL
        self._headers = {"Authorization": f"Bearer {self.secret_key}"}

    async def _request(self, method: str, endpoint: str, form: dict = None) -> dict:
        url = f"{STRIPE_BASE_URL}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(
                    method=method, url=url, headers=self._headers, data=form
                )
        except httpx.HTTPError as exc:
            logger.error("Stripe request to %s failed: %s", endpoint, exc)
            raise StripeError("Stripe is unreachable") from exc

        data = response.json()
        if not response.is_success:
            error = data.get("error", {})
            logger.error(
                "Stripe API error: %s - %s", response.status_code, error.get("message")
            )
            raise StripeError(
                message=error.get("message", "Unknown Stripe error"),
                status_code=response.status_code,
                response_data=data,
            )
        return data

    async def create_checkout_session(
        self, lines: Sequence[CheckoutLine], metadata: Optional[dict] = None
    ) -> CheckoutSession:
        """
        Create a hosted checkout page for ``lines``.

        Returns:
            CheckoutSession with the session id and the URL to redirect to
        """
        form = checkout_form(
            lines, self.currency, self.success_url, self.cancel_url, metadata
        )
        data = await self._request("POST", "/checkout/sessions", form=form)
        return CheckoutSession(session_id=data["id"], url=data.get("url", ""))
