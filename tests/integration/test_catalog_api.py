"""Integration tests for the category tree, store goods and the buyer catalogue."""

from decimal import Decimal

import pytest
from services.marketplace_service.models import AuthStatus
from tests.conftest import admin_headers, member_headers, seller_headers

# ---------------------------------------------------------------------------
# Admin categories
# ---------------------------------------------------------------------------


async def _create_category(client, headers, name, parent_id=None):
    response = await client.post(
        "/admin/categories", json={"name": name, "parent_id": parent_id}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_builds_category_tree(client, marketplace):
    headers = admin_headers(marketplace.admin)
    home = await _create_category(client, headers, "Home")
    kitchen = await _create_category(client, headers, "Kitchen", home["id"])
    await _create_category(client, headers, "Cups", kitchen["id"])

    response = await client.get("/admin/categories", headers=headers)

    assert response.status_code == 200
    tree = {node["name"]: node for node in response.json()}
    assert set(tree) == {"Clothing", "Home"}
    kitchen_node = tree["Home"]["children"][0]
    assert (kitchen_node["name"], kitchen_node["level"]) == ("Kitchen", 1)
    assert kitchen_node["children"][0]["name"] == "Cups"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_fifth_level_is_rejected(client, marketplace):
    headers = admin_headers(marketplace.admin)
    parent_id = None
    for level in range(4):
        parent_id = (await _create_category(client, headers, f"L{level}", parent_id))["id"]

    response = await client.post(
        "/admin/categories", json={"name": "L4", "parent_id": parent_id}, headers=headers
    )

    assert response.status_code == 400
    assert response.json()["code"] == "CATEGORY_BEYOND_THREE"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_without_id(client, marketplace):
    response = await client.put(
        "/admin/categories", json={"name": "x"}, headers=admin_headers(marketplace.admin)
    )

    assert response.status_code == 400
    assert response.json()["code"] == "NO_ID_PROVIDED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_category_with_goods_cannot_be_deleted(client, marketplace):
    response = await client.delete(
        f"/admin/categories/{marketplace.category.id}",
        headers=admin_headers(marketplace.admin),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "CATEGORY_HAS_GOODS"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_tree_hides_disabled(client, marketplace):
    headers = admin_headers(marketplace.admin)
    hidden = await _create_category(client, headers, "Hidden")
    response = await client.put(f"/admin/categories/{hidden['id']}/disable", headers=headers)
    assert response.json()["disabled"] is True

    response = await client.get("/buyer/categories")

    assert [node["name"] for node in response.json()] == ["Clothing"]


# ---------------------------------------------------------------------------
# Store goods
# ---------------------------------------------------------------------------


def _goods_payload(category_id, skus, **overrides):
    payload = {
        "goods_name": "Hoodie",
        "category_id": category_id,
        "gallery": ["https://img/a.png", "https://img/b.png"],
        "skus": skus,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_creates_goods_with_dynamic_specs(client, marketplace):
    m = marketplace
    payload = _goods_payload(
        m.category.id,
        [
            {"price": "20", "quantity": 3, "color": "red", "Size": "M"},
            {"price": "18", "quantity": 2, "Color": "Green", "Size": "L"},
        ],
    )

    response = await client.post(
        "/store/goods", json=payload, headers=seller_headers(m.seller, m.store)
    )

    assert response.status_code == 201, response.text
    goods = response.json()
    assert goods["auth_flag"] == AuthStatus.TOBEAUDITED.value
    assert goods["quantity"] == 5
    assert Decimal(goods["price"]) == Decimal("18")
    assert goods["original"] == "https://img/a.png"
    assert [sku["specs"] for sku in goods["skus"]] == [
        [{"spec_name": "Color", "spec_value": "Red"}, {"spec_name": "Size", "spec_value": "M"}],
        [{"spec_name": "Color", "spec_value": "Green"}, {"spec_name": "Size", "spec_value": "L"}],
    ]
    assert goods["spec_list"] == [
        {"spec_name": "Color", "values": ["Red", "Green"]},
        {"spec_name": "Size", "values": ["M", "L"]},
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_cannot_touch_other_stores_goods(client, marketplace):
    m = marketplace

    response = await client.get(
        f"/store/goods/{m.mug.id}", headers=seller_headers(m.seller, m.store)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_goods_into_platform_category_only(client, marketplace):
    m = marketplace
    headers = seller_headers(m.seller, m.store)
    label = await client.post("/store/labels", json={"name": "Sale"}, headers=headers)
    assert label.status_code == 201, label.text

    response = await client.post(
        "/store/goods",
        json=_goods_payload(label.json()["id"], [{"price": "1"}]),
        headers=headers,
    )

    assert response.status_code == 404
    assert response.json()["code"] == "CATEGORY_NOT_EXIST"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_goods_needs_audit_before_buyers_see_it(client, marketplace):
    m = marketplace
    created = await client.post(
        "/store/goods",
        json=_goods_payload(m.category.id, [{"price": "7", "quantity": 1}], release=True),
        headers=seller_headers(m.seller, m.store),
    )
    goods = created.json()
    sku_id = goods["skus"][0]["id"]

    response = await client.get(f"/buyer/goods/{goods['id']}/sku/{sku_id}")
    assert response.status_code == 404

    response = await client.put(
        f"/admin/goods/{goods['id']}/audit",
        json={"auth_flag": "PASS"},
        headers=admin_headers(m.admin),
    )
    assert response.status_code == 200, response.text

    response = await client.get(f"/buyer/goods/{goods['id']}/sku/{sku_id}")
    assert response.status_code == 200
    assert response.json()["store_name"] == "Alpha"


# ---------------------------------------------------------------------------
# Buyer catalogue
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_goods_detail_resolves_specs(client, marketplace):
    m = marketplace

    response = await client.get(f"/buyer/goods/{m.shirt.id}/sku/{m.blue_sku.id}")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["sku"]["specs"] == [{"spec_name": "Color", "spec_value": "Blue"}]
    assert body["goods"]["spec_list"] == [{"spec_name": "Color", "values": ["Red", "Blue"]}]
    assert body["category_name"] == "Clothing"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_sku_of_other_goods_is_not_found(client, marketplace):
    m = marketplace

    response = await client.get(f"/buyer/goods/{m.shirt.id}/sku/{m.mug_sku.id}")

    assert response.status_code == 404
    assert response.json()["code"] == "SKU_NOT_EXIST"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_buyer_search(client, marketplace):
    response = await client.get("/buyer/goods", params={"keyword": "mug"})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["goods_name"] == "Mug"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_page_lists_only_that_stores_goods(client, marketplace):
    response = await client.get(f"/buyer/stores/{marketplace.other_store.id}")

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["store"]["store_name"] == "Beta"
    assert [g["goods_name"] for g in body["goods"]["items"]] == ["Mug"]
    assert body["goods"]["total"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_goods_collection_toggle(client, marketplace):
    m = marketplace
    headers = member_headers(m.buyer)
    path = f"/buyer/collections/goods/{m.shirt.id}"

    assert (await client.get(path, headers=headers)).json() == {"collected": False}
    assert (await client.post(path, headers=headers)).json() == {"collected": True}

    listing = await client.get("/buyer/collections/goods", headers=headers)
    assert [g["id"] for g in listing.json()["items"]] == [m.shirt.id]

    assert (await client.delete(path, headers=headers)).json() == {"collected": False}
