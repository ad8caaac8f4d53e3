"""Spec/SKU resolution.

Read side: turn each SKU's ordered spec value ids into readable
``(spec name, value)`` pairs plus a goods-level list of distinct values.

Write side: when a seller saves goods, the SKU rows carry free-form
attribute columns (``{"Color": "Red", "Size": "M", "price": ...}``). Those
names and values are matched against the store's existing specifications,
created when missing, and linked to the SKUs in order.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence

from libs.common.errors import BusinessRuleViolation, ValidationFailed
from libs.common.logging import get_logger
from services.marketplace_service.models import (
    Goods,
    GoodsSku,
    GoodsSkuSpecValue,
    OrderItem,
    Specification,
    SpecValue,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

# SKU row keys that are SKU columns rather than specification names.
RESERVED_SKU_KEYS = frozenset(
    {
        "id",
        "sn",
        "price",
        "cost",
        "quantity",
        "weight",
        "image",
        "images",
        "alert_quantity",
        "alertQuantity",
    }
)


@dataclass(frozen=True)
class SpecValueInfo:
    spec_name: str
    value: str


@dataclass(frozen=True)
class SpecPair:
    spec_name: str
    spec_value: str


@dataclass
class SpecGroup:
    spec_name: str
    values: list[str] = field(default_factory=list)


@dataclass
class ResolvedSpecs:
    sku_specs: dict[int, list[SpecPair]]
    spec_list: list[SpecGroup]


def normalize_spec_text(text: str) -> str:
    """Case-insensitive, whitespace-collapsed comparison key."""
    return " ".join(str(text).split()).casefold()


def spec_map(pairs: Iterable[SpecPair]) -> dict[str, str]:
    return {pair.spec_name: pair.spec_value for pair in pairs}


def resolve_sku_pairs(
    spec_value_ids: Sequence[int], lookup: Mapping[int, SpecValueInfo]
) -> list[SpecPair]:
    """
    Pairs for one SKU in id-list order. The first value seen for a
    specification wins; unknown ids are skipped.
    """
    pairs: list[SpecPair] = []
    seen_names: set[str] = set()
    for spec_value_id in spec_value_ids:
        info = lookup.get(spec_value_id)
        if info is None or info.spec_name in seen_names:
            continue
        seen_names.add(info.spec_name)
        pairs.append(SpecPair(spec_name=info.spec_name, spec_value=info.value))
    return pairs


def resolve_sku_specs(
    skus: Sequence[tuple[int, Sequence[int]]], lookup: Mapping[int, SpecValueInfo]
) -> ResolvedSpecs:
    """
    Resolve ``(sku_id, spec_value_ids)`` pairs against ``lookup``.

    A SKU without ids resolves to an empty list; it never borrows values
    from its siblings.
    """
    sku_specs: dict[int, list[SpecPair]] = {}
    groups: dict[str, SpecGroup] = {}
    for sku_id, spec_value_ids in skus:
        pairs = resolve_sku_pairs(spec_value_ids or (), lookup)
        sku_specs[sku_id] = pairs
        for pair in pairs:
            group = groups.setdefault(pair.spec_name, SpecGroup(spec_name=pair.spec_name))
            if pair.spec_value not in group.values:
                group.values.append(pair.spec_value)
    return ResolvedSpecs(sku_specs=sku_specs, spec_list=list(groups.values()))


def extract_spec_attributes(row: Mapping[str, Any]) -> list[tuple[str, str]]:
    """
    Dynamic ``(name, value)`` attributes of a submitted SKU row, in key
    order. Reserved columns and blank values are ignored.
    """
    attributes = []
    for key, value in row.items():
        if key in RESERVED_SKU_KEYS or value is None:
            continue
        name = " ".join(str(key).split())
        text = " ".join(str(value).split())
        if name and text:
            attributes.append((name, text))
    return attributes


# ============================================================================
# READ PATH
# ============================================================================


async def load_spec_lookup(
    db: AsyncSession, spec_value_ids: Iterable[int]
) -> dict[int, SpecValueInfo]:
    ids = set(spec_value_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(SpecValue.id, SpecValue.value, Specification.spec_name)
        .join(Specification, Specification.id == SpecValue.specification_id)
        .where(SpecValue.id.in_(ids))
    )
    return {
        row.id: SpecValueInfo(spec_name=row.spec_name, value=row.value)
        for row in result.all()
    }


async def resolve_goods_specs(db: AsyncSession, skus: Sequence[GoodsSku]) -> ResolvedSpecs:
    """Resolve SKUs loaded with their ``spec_links``."""
    pairs = [(sku.id, sku.spec_value_ids) for sku in skus]
    lookup = await load_spec_lookup(
        db, (value_id for _, ids in pairs for value_id in ids)
    )
    return resolve_sku_specs(pairs, lookup)


# ============================================================================
# WRITE PATH
# ============================================================================


class _StoreSpecIndex:
    """Store-scoped specifications keyed by normalized name and value."""

    def __init__(self, db: AsyncSession, store_id: int, specs: Sequence[Specification]):
        self.db = db
        self.store_id = store_id
        self.specs: dict[str, Specification] = {}
        self.values: dict[tuple[str, str], SpecValue] = {}
        for spec in specs:
            spec_key = normalize_spec_text(spec.spec_name)
            if spec_key in self.specs:
                continue
            self.specs[spec_key] = spec
            for spec_value in spec.values:
                value_key = (spec_key, normalize_spec_text(spec_value.value))
                self.values.setdefault(value_key, spec_value)

    def value_for(self, name: str, value: str) -> SpecValue:
        spec_key = normalize_spec_text(name)
        spec = self.specs.get(spec_key)
        if spec is None:
            spec = Specification(spec_name=name, store_id=self.store_id, values=[])
            self.db.add(spec)
            self.specs[spec_key] = spec
            logger.info("Creating specification %r for store %s", name, self.store_id)

        value_key = (spec_key, normalize_spec_text(value))
        spec_value = self.values.get(value_key)
        if spec_value is None:
            spec_value = SpecValue(value=value)
            spec.values.append(spec_value)
            self.values[value_key] = spec_value
        return spec_value


async def _load_store_spec_index(db: AsyncSession, store_id: int) -> _StoreSpecIndex:
    result = await db.execute(
        select(Specification)
        .where(Specification.store_id == store_id)
        .options(selectinload(Specification.values))
        .order_by(Specification.id)
    )
    return _StoreSpecIndex(db, store_id, result.scalars().all())


async def save_goods_skus(
    db: AsyncSession, goods: Goods, sku_rows: Sequence[Mapping[str, Any]]
) -> list[GoodsSku]:
    """
    Replace the SKU set of ``goods`` with ``sku_rows``.

    Rows carrying the id of one of this goods' SKUs update it in place;
    other rows create SKUs; SKUs left out are deleted unless an order
    already references them. ``goods`` must be pending or loaded with
    ``skus`` and their ``spec_links``. Goods quantity and price are
    recomputed from the final set. Nothing is committed here.
    """
    if not sku_rows:
        raise ValidationFailed("SKU_REQUIRED", "At least one SKU is required")
    if any(row.get("price") is None for row in sku_rows):
        raise ValidationFailed("SKU_PRICE_REQUIRED", "Every SKU needs a price")

    existing = {sku.id: sku for sku in goods.skus if sku.id}
    index = await _load_store_spec_index(db, goods.store_id)
    row_specs = []
    for row in sku_rows:
        per_row: dict[str, SpecValue] = {}
        for name, value in extract_spec_attributes(row):
            spec_key = normalize_spec_text(name)
            if spec_key not in per_row:
                per_row[spec_key] = index.value_for(name, value)
        row_specs.append(list(per_row.values()))

    # New specifications and values need ids before they can be linked.
    await db.flush()

    kept_ids = {row.get("id") for row in sku_rows if row.get("id") in existing}
    removed = [sku for sku_id, sku in existing.items() if sku_id not in kept_ids]
    if removed:
        await _ensure_not_ordered(db, [sku.id for sku in removed])
        for sku in removed:
            goods.skus.remove(sku)

    for row in sku_rows:
        sku = existing.get(row.get("id"))
        if sku is not None and sku.spec_links:
            sku.spec_links.clear()
    await db.flush()

    skus: list[GoodsSku] = []
    for row, spec_values in zip(sku_rows, row_specs):
        sku = existing.get(row.get("id"))
        if sku is None:
            sku = GoodsSku()
            goods.skus.append(sku)
        sku.sn = row.get("sn")
        sku.price = Decimal(str(row["price"]))
        sku.cost = Decimal(str(row["cost"])) if row.get("cost") is not None else None
        sku.weight = Decimal(str(row["weight"])) if row.get("weight") is not None else None
        sku.quantity = int(row.get("quantity") or 0)
        sku.image = row.get("image")
        sku.spec_links.extend(
            GoodsSkuSpecValue(position=position, spec_value_id=spec_value.id)
            for position, spec_value in enumerate(spec_values)
        )
        skus.append(sku)

    goods.quantity = sum(sku.quantity for sku in skus)
    goods.price = min(sku.price for sku in skus)
    await db.flush()
    return skus


async def _ensure_not_ordered(db: AsyncSession, sku_ids: list[int]) -> None:
    ordered = await db.scalar(
        select(func.count()).select_from(OrderItem).where(OrderItem.sku_id.in_(sku_ids))
    )
    if ordered:
        raise BusinessRuleViolation(
            "SKU_HAS_ORDERS", "SKUs that were already ordered cannot be removed"
        )
