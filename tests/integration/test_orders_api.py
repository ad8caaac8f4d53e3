"""Integration tests for checkout, fulfilment and evaluations over HTTP."""

from decimal import Decimal

import pytest
from tests.conftest import admin_headers, member_headers, seller_headers


async def _place(client, marketplace, items, **extra):
    response = await client.post(
        "/buyer/orders",
        json={"items": items, **extra},
        headers=member_headers(marketplace.buyer),
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Buyer orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_is_split_per_store(client, marketplace):
    m = marketplace

    order = await _place(
        client,
        m,
        [
            {"sku_id": m.red_sku.id, "quantity": 2},
            {"sku_id": m.mug_sku.id, "quantity": 1},
            {"sku_id": m.red_sku.id, "quantity": 1},
        ],
    )

    assert order["goods_num"] == 4
    assert Decimal(order["flow_price"]) == Decimal("35")
    parts = [(s["store_id"], Decimal(s["sub_total"])) for s in order["sub_orders"]]
    assert parts == [(m.store.id, Decimal("30")), (m.other_store.id, Decimal("5"))]
    assert order["sub_orders"][0]["items"][0]["num"] == 3


@pytest.mark.asyncio
@pytest.mark.integration
async def test_failed_order_leaves_stock_untouched(client, marketplace):
    m = marketplace

    response = await client.post(
        "/buyer/orders",
        json={
            "items": [
                {"sku_id": m.red_sku.id, "quantity": 1},
                {"sku_id": m.blue_sku.id, "quantity": 99},
            ]
        },
        headers=member_headers(m.buyer),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INSUFFICIENT_STOCK"
    listing = await client.get("/buyer/orders", headers=member_headers(m.buyer))
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_list_filters_by_tag(client, marketplace):
    m = marketplace
    unpaid = await _place(client, m, [{"sku_id": m.mug_sku.id, "quantity": 1}], pay_now=False)
    await _place(client, m, [{"sku_id": m.mug_sku.id, "quantity": 1}])
    headers = member_headers(m.buyer)

    response = await client.get("/buyer/orders", params={"tag": "WAIT_PAY"}, headers=headers)
    assert [o["sn"] for o in response.json()["items"]] == [unpaid["sn"]]

    response = await client.put(
        f"/buyer/orders/{unpaid['sn']}/pay", json={"payment_method": "CASH"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["pay_status"] == "PAID"

    response = await client.get("/buyer/orders", params={"tag": "PAID"}, headers=headers)
    assert response.json()["total"] == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_other_members_order_is_not_found(client, marketplace):
    m = marketplace
    order = await _place(client, m, [{"sku_id": m.mug_sku.id, "quantity": 1}])

    response = await client.get(
        f"/buyer/orders/{order['sn']}", headers=member_headers(m.seller)
    )

    assert response.status_code == 404
    assert response.json()["code"] == "ORDER_NOT_EXIST"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_order_over_http(client, marketplace):
    m = marketplace
    order = await _place(client, m, [{"sku_id": m.blue_sku.id, "quantity": 5}])
    headers = member_headers(m.buyer)

    response = await client.put(
        f"/buyer/orders/{order['sn']}/cancel", json={"reason": "duplicate"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["order_status"] == "CANCELLED"

    # stock is back, so the same quantity can be bought again
    await _place(client, m, [{"sku_id": m.blue_sku.id, "quantity": 5}])


# ---------------------------------------------------------------------------
# Store fulfilment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_each_store_delivers_its_part(client, marketplace):
    m = marketplace
    order = await _place(
        client,
        m,
        [{"sku_id": m.red_sku.id, "quantity": 1}, {"sku_id": m.mug_sku.id, "quantity": 1}],
    )
    alpha_part, beta_part = order["sub_orders"]
    alpha = seller_headers(m.seller, m.store)
    beta = seller_headers(m.other_seller, m.other_store)

    listing = await client.get("/store/orders", headers=alpha)
    assert [s["id"] for s in listing.json()["items"]] == [alpha_part["id"]]

    response = await client.put(f"/store/orders/{beta_part['id']}/deliver", headers=alpha)
    assert response.status_code == 404

    response = await client.put(f"/store/orders/{alpha_part['id']}/deliver", headers=alpha)
    assert response.json()["status"] == "DELIVERED"
    detail = await client.get(f"/buyer/orders/{order['sn']}", headers=member_headers(m.buyer))
    assert detail.json()["order_status"] == "PAID"

    await client.put(f"/store/orders/{beta_part['id']}/deliver", headers=beta)
    detail = await client.get(f"/buyer/orders/{order['sn']}", headers=member_headers(m.buyer))
    assert detail.json()["order_status"] == "DELIVERED"

    response = await client.put(
        f"/buyer/orders/{order['sn']}/complete", headers=member_headers(m.buyer)
    )
    assert response.json()["order_status"] == "COMPLETED"


# ---------------------------------------------------------------------------
# Evaluations
# ---------------------------------------------------------------------------


async def _evaluate(client, marketplace, order_sn, sku_id, grade="GOOD", score=5):
    response = await client.post(
        "/buyer/evaluations",
        json={
            "order_sn": order_sn,
            "sku_id": sku_id,
            "grade": grade,
            "service_score": score,
            "content": "nice",
        },
        headers=member_headers(marketplace.buyer),
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_evaluations_update_goods_grade_and_counts(client, marketplace):
    m = marketplace
    order = await _place(
        client,
        m,
        [{"sku_id": m.red_sku.id, "quantity": 1}, {"sku_id": m.blue_sku.id, "quantity": 1}],
    )
    await _evaluate(client, m, order["sn"], m.red_sku.id, "GOOD", 5)
    await _evaluate(client, m, order["sn"], m.blue_sku.id, "BAD", 2)
    await _evaluate(client, m, order["sn"], m.blue_sku.id, "MODERATE", 3)

    counts = await client.get(f"/buyer/goods/{m.shirt.id}/evaluations/count")
    assert counts.json() == {"all": 2, "good": 1, "moderate": 1, "worse": 0}

    detail = await client.get(f"/buyer/goods/{m.shirt.id}/sku/{m.red_sku.id}")
    goods = detail.json()["goods"]
    assert (goods["grade"], goods["comment_num"]) == (4.0, 2)

    order_detail = await client.get(
        f"/buyer/orders/{order['sn']}", headers=member_headers(m.buyer)
    )
    assert len(order_detail.json()["evaluations"]) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_hidden_evaluation_leaves_public_list(client, marketplace):
    m = marketplace
    order = await _place(client, m, [{"sku_id": m.red_sku.id, "quantity": 1}])
    evaluation = await _evaluate(client, m, order["sn"], m.red_sku.id)

    response = await client.put(
        f"/admin/evaluations/{evaluation['id']}/status", headers=admin_headers(m.admin)
    )
    assert response.json()["status"] == "CLOSED"

    listing = await client.get(f"/buyer/goods/{m.shirt.id}/evaluations")
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_replies_to_evaluation(client, marketplace):
    m = marketplace
    order = await _place(client, m, [{"sku_id": m.red_sku.id, "quantity": 1}])
    evaluation = await _evaluate(client, m, order["sn"], m.red_sku.id)

    response = await client.put(
        f"/store/evaluations/{evaluation['id']}/reply",
        json={"reply": "Thanks!"},
        headers=seller_headers(m.seller, m.store),
    )
    assert response.status_code == 200
    assert response.json()["reply"] == "Thanks!"

    response = await client.put(
        f"/store/evaluations/{evaluation['id']}/reply",
        json={"reply": "Not mine"},
        headers=seller_headers(m.other_seller, m.other_store),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_deletes_evaluation(client, marketplace):
    m = marketplace
    order = await _place(client, m, [{"sku_id": m.red_sku.id, "quantity": 1}])
    evaluation = await _evaluate(client, m, order["sn"], m.red_sku.id)

    response = await client.delete(
        f"/admin/evaluations/{evaluation['id']}", headers=admin_headers(m.admin)
    )
    assert response.status_code == 204

    detail = await client.get(f"/buyer/goods/{m.shirt.id}/sku/{m.red_sku.id}")
    assert detail.json()["goods"]["comment_num"] == 0
