"""Category tree building and hierarchy rules.

The same rules serve two scopes: platform categories (``store_id`` is NULL,
managed by admins) and store labels (managed by one seller).
"""

from collections import defaultdict
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Iterable, Optional

from libs.common.errors import BusinessRuleViolation, NotFound, ValidationFailed
from libs.common.logging import get_logger
from services.marketplace_service.models import Category, Goods
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Roots are level 0; anything at level 4 or deeper is rejected.
MAX_LEVEL = 3

CATEGORY_FIELDS = ("name", "sort_order", "commission_rate", "image")


@dataclass
class CategoryNode:
    category: Any
    children: list["CategoryNode"] = field(default_factory=list)


def index_children(
    categories: Iterable[Any],
    parent_of: Callable[[Any], Optional[int]] = attrgetter("parent_id"),
) -> dict[Optional[int], list[Any]]:
    """Group records by parent id, keeping input order within each group."""
    children_by_parent: dict[Optional[int], list[Any]] = defaultdict(list)
    for category in categories:
        children_by_parent[parent_of(category)].append(category)
    return children_by_parent


def build_category_tree(
    categories: Iterable[Any],
    id_of: Callable[[Any], int] = attrgetter("id"),
    parent_of: Callable[[Any], Optional[int]] = attrgetter("parent_id"),
) -> list[CategoryNode]:
    """
    Turn a flat, display-ordered list of categories into a forest.

    Records whose parent is not in the input are dropped together with
    their subtree; cycles are never reachable from a root and are dropped
    the same way.
    """
    children_by_parent = index_children(categories, parent_of)

    def attach(category: Any) -> CategoryNode:
        return CategoryNode(
            category=category,
            children=[attach(child) for child in children_by_parent.get(id_of(category), [])],
        )

    return [attach(root) for root in children_by_parent.get(None, [])]


def subtree_ids(children_by_parent: dict[Optional[int], list[Any]], root_id: int) -> list[int]:
    """Ids of ``root_id`` and all of its descendants, breadth first."""
    ids = [root_id]
    cursor = 0
    while cursor < len(ids):
        for child in children_by_parent.get(ids[cursor], []):
            ids.append(child.id)
        cursor += 1
    return ids


def subtree_height(children_by_parent: dict[Optional[int], list[Any]], root_id: int) -> int:
    children = children_by_parent.get(root_id, [])
    if not children:
        return 0
    return 1 + max(subtree_height(children_by_parent, child.id) for child in children)


# ============================================================================
# QUERIES
# ============================================================================


def _scope_filter(store_id: Optional[int]):
    if store_id is None:
        return Category.store_id.is_(None)
    return Category.store_id == store_id


async def list_scope_categories(
    db: AsyncSession, store_id: Optional[int] = None, include_disabled: bool = True
) -> list[Category]:
    query = (
        select(Category)
        .where(_scope_filter(store_id))
        .order_by(Category.sort_order, Category.id)
    )
    if not include_disabled:
        query = query.where(Category.disabled.is_(False))
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_scope_category(
    db: AsyncSession, category_id: int, store_id: Optional[int] = None
) -> Category:
    result = await db.execute(
        select(Category).where(Category.id == category_id, _scope_filter(store_id))
    )
    category = result.scalar_one_or_none()
    if not category:
        raise NotFound("CATEGORY_NOT_EXIST", "Category not found")
    return category


async def category_tree(
    db: AsyncSession, store_id: Optional[int] = None, include_disabled: bool = True
) -> list[CategoryNode]:
    """
    Tree for one scope. Without disabled rows their subtrees become
    orphans and disappear from the result.
    """
    categories = await list_scope_categories(db, store_id, include_disabled)
    return build_category_tree(categories)


# ============================================================================
# WRITES
# ============================================================================


async def _level_under(
    db: AsyncSession, parent_id: Optional[int], store_id: Optional[int]
) -> int:
    if not parent_id:
        return 0
    result = await db.execute(
        select(Category).where(Category.id == parent_id, _scope_filter(store_id))
    )
    parent = result.scalar_one_or_none()
    if not parent:
        raise BusinessRuleViolation(
            "CATEGORY_PARENT_NOT_EXIST", "Parent category does not exist"
        )
    return parent.level + 1


def _check_depth(level: int) -> None:
    if level > MAX_LEVEL:
        raise BusinessRuleViolation(
            "CATEGORY_BEYOND_THREE", "Categories may be at most three levels deep"
        )


async def create_category(
    db: AsyncSession, data: dict, store_id: Optional[int] = None
) -> Category:
    parent_id = data.get("parent_id") or None
    level = await _level_under(db, parent_id, store_id)
    _check_depth(level)

    category = Category(
        **{key: data[key] for key in CATEGORY_FIELDS if data.get(key) is not None},
        parent_id=parent_id,
        store_id=store_id,
        level=level,
    )
    db.add(category)
    await db.flush()
    logger.info("Created category %s (level=%d, store=%s)", category.id, level, store_id)
    return category


async def update_category(
    db: AsyncSession,
    category_id: Optional[int],
    data: dict,
    store_id: Optional[int] = None,
) -> Category:
    """
    Apply ``data`` to a category, re-leveling its subtree when it moves.
    """
    if not category_id:
        raise ValidationFailed("NO_ID_PROVIDED", "Category id is required")
    category = await get_scope_category(db, category_id, store_id)

    for key in CATEGORY_FIELDS:
        if key in data and data[key] is not None:
            setattr(category, key, data[key])
    if data.get("disabled") is not None:
        category.disabled = data["disabled"]

    if "parent_id" in data:
        new_parent_id = data["parent_id"] or None
        if new_parent_id != category.parent_id:
            await _move_category(db, category, new_parent_id, store_id)

    await db.flush()
    return category


async def _move_category(
    db: AsyncSession,
    category: Category,
    new_parent_id: Optional[int],
    store_id: Optional[int],
) -> None:
    scope = await list_scope_categories(db, store_id)
    children_by_parent = index_children(scope)
    moving_ids = subtree_ids(children_by_parent, category.id)
    if new_parent_id in moving_ids:
        raise BusinessRuleViolation(
            "CATEGORY_PARENT_INVALID", "A category cannot be moved under itself"
        )

    new_level = await _level_under(db, new_parent_id, store_id)
    _check_depth(new_level + subtree_height(children_by_parent, category.id))

    category.parent_id = new_parent_id
    category.level = new_level
    by_id = {row.id: row for row in scope}
    for node_id in moving_ids[1:]:
        node = by_id[node_id]
        node.level = by_id[node.parent_id].level + 1


async def delete_category(
    db: AsyncSession, category_id: int, store_id: Optional[int] = None
) -> None:
    category = await get_scope_category(db, category_id, store_id)

    child_count = await db.scalar(
        select(func.count()).select_from(Category).where(Category.parent_id == category.id)
    )
    if child_count:
        raise BusinessRuleViolation(
            "CATEGORY_HAS_CHILDREN", "Category still has child categories"
        )

    goods_count = await db.scalar(
        select(func.count()).select_from(Goods).where(Goods.category_id == category.id)
    )
    if goods_count:
        raise BusinessRuleViolation("CATEGORY_HAS_GOODS", "Category still has goods")

    await db.delete(category)
    await db.flush()


async def toggle_category(
    db: AsyncSession, category_id: int, store_id: Optional[int] = None
) -> Category:
    category = await get_scope_category(db, category_id, store_id)
    category.disabled = not category.disabled
    await db.flush()
    return category
