"""Unit tests for spec/SKU resolution and the goods SKU save path."""

from decimal import Decimal

import pytest
from libs.common.errors import BusinessRuleViolation, ValidationFailed
from services.marketplace_service.models import (
    Goods,
    GoodsSku,
    OrderItem,
    Specification,
)
from services.marketplace_service.services.spec_resolver import (
    SpecPair,
    SpecValueInfo,
    extract_spec_attributes,
    normalize_spec_text,
    resolve_goods_specs,
    resolve_sku_pairs,
    resolve_sku_specs,
    save_goods_skus,
    spec_map,
)
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from tests.factories import CategoryFactory, GoodsFactory, MemberFactory, StoreFactory

LOOKUP = {
    1: SpecValueInfo("Color", "Red"),
    2: SpecValueInfo("Color", "Blue"),
    3: SpecValueInfo("Size", "M"),
    4: SpecValueInfo("Size", "L"),
}


# ---------------------------------------------------------------------------
# Pure resolution
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_pairs_follow_id_order():
    assert resolve_sku_pairs([3, 1], LOOKUP) == [
        SpecPair("Size", "M"),
        SpecPair("Color", "Red"),
    ]


@pytest.mark.unit
def test_first_value_wins_for_repeated_spec_name():
    assert resolve_sku_pairs([1, 2, 3], LOOKUP) == [
        SpecPair("Color", "Red"),
        SpecPair("Size", "M"),
    ]


@pytest.mark.unit
def test_unknown_ids_are_skipped():
    assert resolve_sku_pairs([99, 4], LOOKUP) == [SpecPair("Size", "L")]


@pytest.mark.unit
def test_same_id_set_resolves_to_same_map_in_any_order():
    first = spec_map(resolve_sku_pairs([1, 3], LOOKUP))
    second = spec_map(resolve_sku_pairs([3, 1], LOOKUP))

    assert first == second == {"Color": "Red", "Size": "M"}


@pytest.mark.unit
def test_spec_list_collects_distinct_values_in_first_seen_order():
    resolved = resolve_sku_specs([(10, [2, 3]), (11, [1, 3]), (12, [2, 4])], LOOKUP)

    assert [(g.spec_name, g.values) for g in resolved.spec_list] == [
        ("Color", ["Blue", "Red"]),
        ("Size", ["M", "L"]),
    ]


@pytest.mark.unit
def test_sku_without_ids_gets_empty_specs_not_siblings():
    resolved = resolve_sku_specs([(10, [1, 3]), (11, []), (12, None)], LOOKUP)

    assert resolved.sku_specs[11] == []
    assert resolved.sku_specs[12] == []
    assert spec_map(resolved.sku_specs[10]) == {"Color": "Red", "Size": "M"}


@pytest.mark.unit
def test_extract_spec_attributes_skips_reserved_and_blank_keys():
    row = {
        "id": 4,
        "sn": "A-1",
        "price": 10,
        "quantity": 3,
        "images": ["x"],
        "alertQuantity": 1,
        " Color ": "  Dark   Red ",
        "Size": "",
        "Material": None,
        "Fit": "Slim",
    }

    assert extract_spec_attributes(row) == [("Color", "Dark Red"), ("Fit", "Slim")]


@pytest.mark.unit
def test_normalize_spec_text_is_case_and_space_insensitive():
    assert normalize_spec_text("  COLOR\tName ") == normalize_spec_text("color name")


# ---------------------------------------------------------------------------
# save_goods_skus
# ---------------------------------------------------------------------------


async def _store_and_category(db):
    member = MemberFactory.create()
    db.add(member)
    await db.flush()
    store = StoreFactory.create(member_id=member.id)
    category = CategoryFactory.create()
    db.add_all([store, category])
    await db.flush()
    return store, category


async def _reload(db, goods_id) -> Goods:
    result = await db.execute(
        select(Goods)
        .where(Goods.id == goods_id)
        .options(selectinload(Goods.skus).selectinload(GoodsSku.spec_links))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _store_specs(db, store_id):
    result = await db.execute(
        select(Specification)
        .where(Specification.store_id == store_id)
        .options(selectinload(Specification.values))
        .execution_options(populate_existing=True)
        .order_by(Specification.id)
    )
    return {spec.spec_name: [v.value for v in spec.values] for spec in result.scalars()}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_creates_specs_and_links_in_order(db_session):
    store, category = await _store_and_category(db_session)
    goods = GoodsFactory.create(store_id=store.id, category_id=category.id)
    db_session.add(goods)

    await save_goods_skus(
        db_session,
        goods,
        [
            {"price": "10", "quantity": 2, "Color": "Red", "Size": "M"},
            {"price": "8", "quantity": 3, "Color": "Blue", "Size": "M"},
        ],
    )
    await db_session.commit()

    reloaded = await _reload(db_session, goods.id)
    resolved = await resolve_goods_specs(db_session, reloaded.skus)

    assert [spec_map(resolved.sku_specs[s.id]) for s in reloaded.skus] == [
        {"Color": "Red", "Size": "M"},
        {"Color": "Blue", "Size": "M"},
    ]
    assert await _store_specs(db_session, store.id) == {
        "Color": ["Red", "Blue"],
        "Size": ["M"],
    }
    assert reloaded.quantity == 5
    assert reloaded.price == Decimal("8")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_reuses_specs_case_insensitively(db_session):
    store, category = await _store_and_category(db_session)
    first = GoodsFactory.create(store_id=store.id, category_id=category.id)
    db_session.add(first)
    await save_goods_skus(db_session, first, [{"price": 1, "Color": "Red"}])
    await db_session.commit()

    second = GoodsFactory.create(store_id=store.id, category_id=category.id)
    db_session.add(second)
    await save_goods_skus(db_session, second, [{"price": 1, " colour ": "x", "COLOR": " red "}])
    await db_session.commit()

    assert await _store_specs(db_session, store.id) == {
        "Color": ["Red"],
        "colour": ["x"],
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resave_updates_kept_skus_and_drops_missing_ones(db_session):
    store, category = await _store_and_category(db_session)
    goods = GoodsFactory.create(store_id=store.id, category_id=category.id)
    db_session.add(goods)
    kept, _ = await save_goods_skus(
        db_session,
        goods,
        [{"price": 5, "quantity": 1, "Size": "S"}, {"price": 6, "quantity": 1, "Size": "L"}],
    )
    await db_session.commit()
    kept_id = kept.id

    goods = await _reload(db_session, goods.id)
    await save_goods_skus(
        db_session,
        goods,
        [{"id": kept_id, "price": 7, "quantity": 4, "Size": "XL"}, {"price": 9, "Size": "M"}],
    )
    await db_session.commit()

    goods = await _reload(db_session, goods.id)
    resolved = await resolve_goods_specs(db_session, goods.skus)
    rows = sorted(
        (sku.price, sku.quantity, spec_map(resolved.sku_specs[sku.id]))
        for sku in goods.skus
    )

    # SQLite may hand the dropped id to the new SKU, so compare contents.
    assert kept_id in [sku.id for sku in goods.skus]
    assert rows == [
        (Decimal("7"), 4, {"Size": "XL"}),
        (Decimal("9"), 0, {"Size": "M"}),
    ]
    assert spec_map(resolved.sku_specs[kept_id]) == {"Size": "XL"}
    assert goods.quantity == 4
    assert goods.price == Decimal("7")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_ordered_sku_cannot_be_removed(db_session):
    store, category = await _store_and_category(db_session)
    goods = GoodsFactory.create(store_id=store.id, category_id=category.id)
    db_session.add(goods)
    (sku,) = await save_goods_skus(db_session, goods, [{"price": 5, "quantity": 1}])
    await db_session.flush()
    db_session.add(
        OrderItem(
            sub_order_id=0,
            goods_id=goods.id,
            sku_id=sku.id,
            goods_name="x",
            num=1,
            unit_price=Decimal("5"),
            sub_total=Decimal("5"),
        )
    )
    await db_session.commit()

    goods = await _reload(db_session, goods.id)
    with pytest.raises(BusinessRuleViolation) as exc:
        await save_goods_skus(db_session, goods, [{"price": 3}])
    assert exc.value.code == "SKU_HAS_ORDERS"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_sku_rows_require_price(db_session):
    goods = Goods(store_id=1, skus=[])

    with pytest.raises(ValidationFailed) as exc:
        await save_goods_skus(db_session, goods, [{"quantity": 1}])
    assert exc.value.code == "SKU_PRICE_REQUIRED"

    with pytest.raises(ValidationFailed) as exc:
        await save_goods_skus(db_session, goods, [])
    assert exc.value.code == "SKU_REQUIRED"
