"""Unit tests for the Stripe and Cloudinary clients."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from services.marketplace_service.cloudinary_client import (
    CloudinaryClient,
    CloudinaryError,
    sign_params,
)
from services.marketplace_service.stripe_client import (
    CheckoutLine,
    StripeClient,
    StripeError,
    checkout_form,
    to_minor_units,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "amount, expected",
    [(Decimal("12.34"), 1234), (Decimal("0.005"), 1), (Decimal("10"), 1000)],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.mark.unit
def test_checkout_form_uses_bracketed_keys():
    form = checkout_form(
        [CheckoutLine("Shirt", Decimal("10.00"), 2), CheckoutLine("Mug", Decimal("5.5"), 1)],
        "usd",
        "https://ok",
        "https://cancel",
        {"member_id": 4},
    )

    assert form["mode"] == "payment"
    assert form["line_items[0][quantity]"] == "2"
    assert form["line_items[0][price_data][unit_amount]"] == "1000"
    assert form["line_items[1][price_data][product_data][name]"] == "Mug"
    assert form["line_items[1][price_data][unit_amount]"] == "550"
    assert form["metadata[member_id]"] == "4"


@pytest.mark.unit
def test_stripe_client_requires_key(monkeypatch):
    monkeypatch.setattr(
        "services.marketplace_service.stripe_client.get_settings",
        lambda: type("S", (), {"STRIPE_SECRET_KEY": ""})(),
    )

    with pytest.raises(StripeError):
        StripeClient()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_checkout_session_posts_form():
    client = StripeClient(secret_key="sk_test_123")
    with patch.object(
        client,
        "_request",
        new_callable=AsyncMock,
        return_value={"id": "cs_1", "url": "https://checkout"},
    ) as mock_request:
        session = await client.create_checkout_session(
            [CheckoutLine("Shirt", Decimal("1"), 1)]
        )

    assert (session.session_id, session.url) == ("cs_1", "https://checkout")
    method, endpoint = mock_request.call_args.args
    assert (method, endpoint) == ("POST", "/checkout/sessions")
    assert mock_request.call_args.kwargs["form"]["line_items[0][price_data][unit_amount]"] == "100"


@pytest.mark.unit
def test_sign_params_sorts_keys():
    first = sign_params({"timestamp": "1", "folder": "a"}, "secret")
    second = sign_params({"folder": "a", "timestamp": "1"}, "secret")

    assert first == second
    assert len(first) == 40


@pytest.mark.unit
def test_cloudinary_client_requires_credentials():
    with patch(
        "services.marketplace_service.cloudinary_client.get_settings",
        return_value=type(
            "S",
            (),
            {"CLOUDINARY_CLOUD_NAME": "", "CLOUDINARY_API_KEY": "", "CLOUDINARY_API_SECRET": ""},
        )(),
    ):
        with pytest.raises(CloudinaryError):
            CloudinaryClient()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_upload_image_signs_request():
    client = CloudinaryClient("demo", "key", "secret")
    with patch.object(
        client,
        "_request",
        new_callable=AsyncMock,
        return_value={"secure_url": "https://img/1.png", "public_id": "p1"},
    ) as mock_request:
        image = await client.upload_image(b"png", "1.png", "image/png", folder="goods")

    assert (image.url, image.public_id) == ("https://img/1.png", "p1")
    data, files = mock_request.call_args.args
    assert data["folder"] == "goods"
    assert data["api_key"] == "key"
    assert data["signature"] == sign_params(
        {"timestamp": data["timestamp"], "folder": "goods"}, "secret"
    )
    assert files["file"] == ("1.png", b"png", "image/png")
