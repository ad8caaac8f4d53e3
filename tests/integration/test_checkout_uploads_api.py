"""Integration tests for Stripe checkout sessions and Cloudinary uploads."""

from unittest.mock import AsyncMock, patch

import pytest
from libs.common.config import get_settings
from services.marketplace_service.cloudinary_client import CloudinaryError
from services.marketplace_service.stripe_client import StripeError
from tests.conftest import member_headers, seller_headers

STRIPE_REQUEST = "services.marketplace_service.stripe_client.StripeClient._request"
CLOUDINARY_REQUEST = "services.marketplace_service.cloudinary_client.CloudinaryClient._request"


@pytest.fixture
def provider_keys(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_checkout_uses_sku_prices(client, marketplace, provider_keys):
    m = marketplace
    with patch(
        STRIPE_REQUEST,
        new_callable=AsyncMock,
        return_value={"id": "cs_1", "url": "https://checkout/cs_1"},
    ) as mock_request:
        response = await client.post(
            "/payments/checkout-session",
            json={
                "items": [
                    {"sku_id": m.blue_sku.id, "quantity": 1},
                    {"sku_id": m.blue_sku.id, "quantity": 1},
                ]
            },
            headers=member_headers(m.buyer),
        )

    assert response.status_code == 200, response.text
    assert response.json() == {"session_id": "cs_1", "url": "https://checkout/cs_1"}
    form = mock_request.call_args.kwargs["form"]
    assert form["line_items[0][quantity]"] == "2"
    assert form["line_items[0][price_data][unit_amount]"] == "1250"
    assert form["line_items[0][price_data][product_data][name]"] == "Shirt"
    assert form["metadata[member_id]"] == str(m.buyer.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_unknown_sku(client, marketplace, provider_keys):
    response = await client.post(
        "/payments/checkout-session",
        json={"items": [{"sku_id": 999, "quantity": 1}]},
        headers=member_headers(marketplace.buyer),
    )

    assert response.status_code == 404
    assert response.json()["code"] == "SKU_NOT_EXIST"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stripe_failure_is_bad_gateway(client, marketplace, provider_keys):
    with patch(STRIPE_REQUEST, new_callable=AsyncMock, side_effect=StripeError("card API down")):
        response = await client.post(
            "/payments/checkout-session",
            json={"items": [{"sku_id": marketplace.mug_sku.id, "quantity": 1}]},
            headers=member_headers(marketplace.buyer),
        )

    assert response.status_code == 502
    assert response.json()["code"] == "PAYMENT_PROVIDER_ERROR"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_fee_session(client, marketplace, provider_keys):
    m = marketplace
    with patch(
        STRIPE_REQUEST,
        new_callable=AsyncMock,
        return_value={"id": "cs_fee", "url": "https://checkout/cs_fee"},
    ) as mock_request:
        response = await client.post(
            "/payments/store-fee-session",
            json={"months": 3},
            headers=seller_headers(m.seller, m.store),
        )

    assert response.status_code == 200, response.text
    form = mock_request.call_args.kwargs["form"]
    assert form["line_items[0][quantity]"] == "3"
    assert form["line_items[0][price_data][unit_amount]"] == "1000"
    assert form["metadata[store_id]"] == str(m.store.id)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upload_image(client, marketplace, provider_keys):
    with patch(
        CLOUDINARY_REQUEST,
        new_callable=AsyncMock,
        return_value={"secure_url": "https://img/x.png", "public_id": "x"},
    ) as mock_request:
        response = await client.post(
            "/uploads/image",
            files={"file": ("x.png", b"\x89PNG data", "image/png")},
            headers=member_headers(marketplace.buyer),
        )

    assert response.status_code == 200, response.text
    assert response.json() == {"url": "https://img/x.png"}
    data, _files = mock_request.call_args.args
    assert data["folder"] == "vendorvault/member"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upload_rejects_non_images(client, marketplace, provider_keys):
    response = await client.post(
        "/uploads/image",
        files={"file": ("x.txt", b"hello", "text/plain")},
        headers=member_headers(marketplace.buyer),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_IMAGE"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upload_rejects_large_images(client, marketplace, provider_keys):
    response = await client.post(
        "/uploads/image",
        files={"file": ("big.jpg", b"0" * (5 * 1024 * 1024 + 1), "image/jpeg")},
        headers=member_headers(marketplace.buyer),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "IMAGE_TOO_LARGE"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upload_failure_is_bad_gateway(client, marketplace, provider_keys):
    with patch(CLOUDINARY_REQUEST, new_callable=AsyncMock, side_effect=CloudinaryError("down")):
        response = await client.post(
            "/uploads/image",
            files={"file": ("x.png", b"png", "image/png")},
            headers=member_headers(marketplace.buyer),
        )

    assert response.status_code == 502
    assert response.json()["code"] == "UPLOAD_FAILED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_upload_requires_login(client):
    response = await client.post(
        "/uploads/image", files={"file": ("x.png", b"png", "image/png")}
    )

    assert response.status_code == 401
