"""Integration tests for registration, login and token refresh."""

from unittest.mock import AsyncMock, patch

import pytest
from services.marketplace_service.models import StoreStatus
from tests.conftest import admin_headers, member_headers, persist
from tests.factories import PASSWORD, MemberFactory, StoreFactory

# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_then_login(client):
    response = await client.post(
        "/auth/member/register",
        json={"username": "alice", "password": "pa55word", "mobile": "0801"},
    )
    assert response.status_code == 201, response.text
    assert response.json()["username"] == "alice"

    response = await client.post(
        "/auth/member/login", json={"username": "0801", "password": "pa55word"}
    )
    assert response.status_code == 200, response.text
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_register_duplicate_username(client, db_session):
    await persist(db_session, MemberFactory.create(username="taken"))

    response = await client.post(
        "/auth/member/register", json={"username": "taken", "password": "pa55word"}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "USER_EXISTS"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_login_wrong_password(client, db_session):
    member = await persist(db_session, MemberFactory.create())

    response = await client.post(
        "/auth/member/login", json={"username": member.username, "password": "nope"}
    )

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_disabled_member_cannot_login(client, db_session):
    member = await persist(db_session, MemberFactory.create(disabled=True))

    response = await client.post(
        "/auth/member/login", json={"username": member.username, "password": PASSWORD}
    )

    assert response.status_code == 403
    assert response.json()["code"] == "USER_DISABLED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_password_reset_flow(client, db_session):
    member = await persist(db_session, MemberFactory.create())

    with patch(
        "services.marketplace_service.routers.auth.send_password_reset_email",
        new_callable=AsyncMock,
        return_value=True,
    ) as mock_send:
        response = await client.post(
            "/auth/member/password/forgot", json={"username": member.username}
        )
    assert response.status_code == 200
    link = mock_send.call_args.kwargs["reset_link"]
    token = link.split("token=", 1)[1]

    response = await client.post(
        "/auth/member/password/reset", json={"token": token, "new_password": "fresh-pass"}
    )
    assert response.status_code == 200

    response = await client.post(
        "/auth/member/login", json={"username": member.username, "password": "fresh-pass"}
    )
    assert response.status_code == 200

    response = await client.post(
        "/auth/member/password/reset", json={"token": token, "new_password": "again-pass"}
    )
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_forgot_password_hides_unknown_users(client):
    with patch(
        "services.marketplace_service.routers.auth.send_password_reset_email",
        new_callable=AsyncMock,
    ) as mock_send:
        response = await client.post(
            "/auth/member/password/forgot", json={"username": "ghost"}
        )

    assert response.status_code == 200
    mock_send.assert_not_called()


# ---------------------------------------------------------------------------
# Stores and admins
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_login_issues_store_session(client, marketplace):
    response = await client.post(
        "/auth/store/login",
        json={"username": marketplace.seller.username, "password": PASSWORD},
    )
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]

    response = await client.get(
        "/store/settings", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert response.json()["id"] == marketplace.store.id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_login_requires_open_store(client, db_session):
    member = await persist(db_session, MemberFactory.create())
    await persist(
        db_session, StoreFactory.create(member_id=member.id, status=StoreStatus.APPLYING)
    )

    response = await client.post(
        "/auth/store/login", json={"username": member.username, "password": PASSWORD}
    )

    assert response.status_code == 403
    assert response.json()["code"] == "STORE_NOT_OPEN"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_without_store_cannot_store_login(client, marketplace):
    response = await client.post(
        "/auth/store/login",
        json={"username": marketplace.buyer.username, "password": PASSWORD},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "STORE_NOT_EXIST"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_login_and_me(client, marketplace):
    response = await client.post(
        "/auth/admin/login",
        json={"username": marketplace.admin.username, "password": PASSWORD},
    )
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/auth/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["username"] == marketplace.admin.username


@pytest.mark.asyncio
@pytest.mark.integration
async def test_refresh_keeps_identity(client, marketplace):
    login = await client.post(
        "/auth/store/login",
        json={"username": marketplace.seller.username, "password": PASSWORD},
    )

    response = await client.post(
        "/auth/refresh", json={"refresh_token": login.json()["refresh_token"]}
    )
    assert response.status_code == 200

    response = await client.get(
        "/store/settings",
        headers={"Authorization": f"Bearer {response.json()['access_token']}"},
    )
    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_role_boundaries(client, marketplace):
    assert (await client.get("/admin/categories")).status_code == 401
    response = await client.get("/admin/categories", headers=member_headers(marketplace.buyer))
    assert response.status_code == 403
    response = await client.get("/store/goods", headers=member_headers(marketplace.seller))
    assert response.status_code == 403
    response = await client.get("/buyer/profile", headers=admin_headers(marketplace.admin))
    assert response.status_code == 403
