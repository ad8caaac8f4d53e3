"""Admin endpoints for categories, brands, specifications and goods units."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.errors import BusinessRuleViolation, NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.models import (
    AuditEntityType,
    Brand,
    CategoryBrand,
    CategorySpecification,
    GoodsSkuSpecValue,
    GoodsUnit,
    Specification,
    SpecValue,
)
from services.marketplace_service.routers._helpers import (
    log_audit,
    paginate,
    tree_response,
)
from services.marketplace_service.schemas import (
    BrandCreate,
    BrandListResponse,
    BrandResponse,
    BrandUpdate,
    CategoryBindingRequest,
    CategoryCreate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
    GoodsUnitCreate,
    GoodsUnitListResponse,
    GoodsUnitResponse,
    SpecificationCreate,
    SpecificationListResponse,
    SpecificationResponse,
    SpecificationUpdate,
)
from services.marketplace_service.services import category_tree
from services.marketplace_service.services.spec_resolver import normalize_spec_text
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin-catalog"])


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryTreeNode])
async def get_category_tree(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Full platform category tree, disabled categories included."""
    return tree_response(await category_tree.category_tree(db))


@router.get("/categories/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await category_tree.get_scope_category(db, category_id)


@router.post(
    "/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(
    category_in: CategoryCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    category = await category_tree.create_category(db, category_in.model_dump())
    await log_audit(
        db,
        AuditEntityType.CATEGORY,
        category.id,
        "created",
        current_user.username,
        new_value={"name": category.name, "parent_id": category.parent_id},
    )
    await db.commit()
    await db.refresh(category)
    return category


@router.put("/categories", response_model=CategoryResponse)
async def update_category(
    category_in: CategoryUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    data = category_in.model_dump(exclude_unset=True)
    category = await category_tree.update_category(db, data.pop("id", None), data)
    await log_audit(
        db,
        AuditEntityType.CATEGORY,
        category.id,
        "updated",
        current_user.username,
        new_value=category_in.model_dump(mode="json", exclude_unset=True),
    )
    await db.commit()
    await db.refresh(category)
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await category_tree.delete_category(db, category_id)
    await log_audit(
        db, AuditEntityType.CATEGORY, category_id, "deleted", current_user.username
    )
    await db.commit()
    return None


@router.put("/categories/{category_id}/disable", response_model=CategoryResponse)
async def toggle_category(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Flip the disabled flag."""
    category = await category_tree.toggle_category(db, category_id)
    await log_audit(
        db,
        AuditEntityType.CATEGORY,
        category.id,
        "disabled" if category.disabled else "enabled",
        current_user.username,
    )
    await db.commit()
    await db.refresh(category)
    return category


@router.get("/categories/{category_id}/brands", response_model=list[BrandResponse])
async def get_category_brands(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await category_tree.get_scope_category(db, category_id)
    result = await db.execute(
        select(Brand)
        .join(CategoryBrand, CategoryBrand.brand_id == Brand.id)
        .where(CategoryBrand.category_id == category_id)
        .order_by(Brand.id)
    )
    return result.scalars().all()


@router.put("/categories/{category_id}/brands", response_model=list[BrandResponse])
async def save_category_brands(
    category_id: int,
    binding: CategoryBindingRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace the brands bound to a category."""
    await category_tree.get_scope_category(db, category_id)
    brand_ids = list(dict.fromkeys(binding.ids))
    found = await db.execute(select(Brand).where(Brand.id.in_(brand_ids)))
    brands = found.scalars().all()
    if len(brands) != len(brand_ids):
        raise NotFound("BRAND_NOT_EXIST", "Brand not found")

    await db.execute(delete(CategoryBrand).where(CategoryBrand.category_id == category_id))
    db.add_all(
        CategoryBrand(category_id=category_id, brand_id=brand_id) for brand_id in brand_ids
    )
    await db.commit()
    return sorted(brands, key=lambda brand: brand.id)


@router.get(
    "/categories/{category_id}/specifications",
    response_model=list[SpecificationResponse],
)
async def get_category_specifications(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await category_tree.get_scope_category(db, category_id)
    result = await db.execute(
        select(Specification)
        .join(
            CategorySpecification,
            CategorySpecification.specification_id == Specification.id,
        )
        .where(CategorySpecification.category_id == category_id)
        .options(selectinload(Specification.values))
        .order_by(Specification.id)
    )
    return [_spec_response(spec) for spec in result.scalars().all()]


@router.put(
    "/categories/{category_id}/specifications",
    response_model=list[SpecificationResponse],
)
async def save_category_specifications(
    category_id: int,
    binding: CategoryBindingRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace the specifications bound to a category."""
    await category_tree.get_scope_category(db, category_id)
    spec_ids = list(dict.fromkeys(binding.ids))
    found = await db.execute(
        select(Specification)
        .where(Specification.id.in_(spec_ids))
        .options(selectinload(Specification.values))
    )
    specs = found.scalars().all()
    if len(specs) != len(spec_ids):
        raise NotFound("SPEC_NOT_EXIST", "Specification not found")

    await db.execute(
        delete(CategorySpecification).where(
            CategorySpecification.category_id == category_id
        )
    )
    db.add_all(
        CategorySpecification(category_id=category_id, specification_id=spec_id)
        for spec_id in spec_ids
    )
    await db.commit()
    return [_spec_response(spec) for spec in sorted(specs, key=lambda spec: spec.id)]


# ============================================================================
# BRANDS
# ============================================================================


async def _get_brand(db: AsyncSession, brand_id: int) -> Brand:
    brand = await db.get(Brand, brand_id)
    if not brand:
        raise NotFound("BRAND_NOT_EXIST", "Brand not found")
    return brand


async def _ensure_brand_name_free(
    db: AsyncSession, name: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Brand.id).where(func.lower(Brand.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Brand.id != exclude_id)
    if (await db.execute(query)).first():
        raise BusinessRuleViolation("BRAND_NAME_EXIST", "Brand name already in use")


@router.get("/brands/all", response_model=list[BrandResponse])
async def list_all_brands(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(Brand).where(Brand.disabled.is_(False)).order_by(Brand.name)
    )
    return result.scalars().all()


@router.get("/brands", response_model=BrandListResponse)
async def list_brands(
    name: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Brand).order_by(Brand.id.desc())
    if name:
        query = query.where(Brand.name.ilike(f"%{name}%"))
    brands, total, total_pages = await paginate(db, query, page, page_size)
    return BrandListResponse(
        items=[BrandResponse.model_validate(b) for b in brands],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get("/brands/{brand_id}", response_model=BrandResponse)
async def get_brand(
    brand_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_brand(db, brand_id)


@router.post("/brands", response_model=BrandResponse, status_code=status.HTTP_201_CREATED)
async def create_brand(
    brand_in: BrandCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _ensure_brand_name_free(db, brand_in.name)
    brand = Brand(**brand_in.model_dump())
    db.add(brand)
    await db.flush()
    await log_audit(
        db,
        AuditEntityType.BRAND,
        brand.id,
        "created",
        current_user.username,
        new_value={"name": brand.name},
    )
    await db.commit()
    await db.refresh(brand)
    return brand


@router.put("/brands/{brand_id}", response_model=BrandResponse)
async def update_brand(
    brand_id: int,
    brand_in: BrandUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    brand = await _get_brand(db, brand_id)
    update_data = brand_in.model_dump(exclude_unset=True)
    if update_data.get("name"):
        await _ensure_brand_name_free(db, update_data["name"], exclude_id=brand_id)
    for field, value in update_data.items():
        setattr(brand, field, value)
    await db.commit()
    await db.refresh(brand)
    return brand


@router.delete("/brands/{brand_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_brand(
    brand_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a brand that no category is bound to."""
    brand = await _get_brand(db, brand_id)
    bound = await db.scalar(
        select(func.count())
        .select_from(CategoryBrand)
        .where(CategoryBrand.brand_id == brand_id)
    )
    if bound:
        raise BusinessRuleViolation(
            "BRAND_HAS_CATEGORY", "Brand is still bound to categories"
        )
    await db.delete(brand)
    await log_audit(db, AuditEntityType.BRAND, brand_id, "deleted", current_user.username)
    await db.commit()
    return None


@router.put("/brands/{brand_id}/disable", response_model=BrandResponse)
async def toggle_brand(
    brand_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    brand = await _get_brand(db, brand_id)
    brand.disabled = not brand.disabled
    await log_audit(
        db,
        AuditEntityType.BRAND,
        brand.id,
        "disabled" if brand.disabled else "enabled",
        current_user.username,
    )
    await db.commit()
    await db.refresh(brand)
    return brand


# ============================================================================
# SPECIFICATIONS
# ============================================================================


def _spec_response(spec: Specification) -> SpecificationResponse:
    return SpecificationResponse(
        id=spec.id,
        spec_name=spec.spec_name,
        store_id=spec.store_id,
        spec_value=",".join(value.value for value in spec.values),
    )


def _clean_values(values: list[str]) -> list[str]:
    """Trimmed, non-empty values without normalised duplicates."""
    cleaned: dict[str, str] = {}
    for value in values:
        text = " ".join(value.split())
        if text:
            cleaned.setdefault(normalize_spec_text(text), text)
    return list(cleaned.values())


async def _get_spec(db: AsyncSession, spec_id: int) -> Specification:
    result = await db.execute(
        select(Specification)
        .where(Specification.id == spec_id)
        .options(selectinload(Specification.values))
    )
    spec = result.scalar_one_or_none()
    if not spec:
        raise NotFound("SPEC_NOT_EXIST", "Specification not found")
    return spec


async def _ensure_values_unused(db: AsyncSession, value_ids: list[int]) -> None:
    if not value_ids:
        return
    used = await db.scalar(
        select(func.count())
        .select_from(GoodsSkuSpecValue)
        .where(GoodsSkuSpecValue.spec_value_id.in_(value_ids))
    )
    if used:
        raise BusinessRuleViolation("SPEC_IN_USE", "Specification values are used by SKUs")


@router.get("/specifications", response_model=SpecificationListResponse)
async def list_specifications(
    spec_name: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(Specification)
        .options(selectinload(Specification.values))
        .order_by(Specification.id.desc())
    )
    if spec_name:
        query = query.where(Specification.spec_name.ilike(f"%{spec_name}%"))
    specs, total, total_pages = await paginate(db, query, page, page_size)
    return SpecificationListResponse(
        items=[_spec_response(spec) for spec in specs],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.post(
    "/specifications",
    response_model=SpecificationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_specification(
    spec_in: SpecificationCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create a platform specification. A name that matches an existing one
    (ignoring case and spacing) adds the new values to it instead.
    """
    result = await db.execute(
        select(Specification)
        .where(Specification.store_id.is_(None))
        .options(selectinload(Specification.values))
        .order_by(Specification.id)
    )
    key = normalize_spec_text(spec_in.spec_name)
    spec = next(
        (s for s in result.scalars().all() if normalize_spec_text(s.spec_name) == key),
        None,
    )
    if spec is None:
        spec = Specification(spec_name=" ".join(spec_in.spec_name.split()), values=[])
        db.add(spec)

    known = {normalize_spec_text(value.value) for value in spec.values}
    for value in _clean_values(spec_in.values):
        if normalize_spec_text(value) not in known:
            spec.values.append(SpecValue(value=value))

    await db.flush()
    await log_audit(
        db,
        AuditEntityType.SPECIFICATION,
        spec.id,
        "created",
        current_user.username,
        new_value={"spec_name": spec.spec_name, "values": spec_in.values},
    )
    await db.commit()
    return _spec_response(await _get_spec(db, spec.id))


@router.put("/specifications/{spec_id}", response_model=SpecificationResponse)
async def update_specification(
    spec_id: int,
    spec_in: SpecificationUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Rename and/or replace the value list."""
    spec = await _get_spec(db, spec_id)
    if spec_in.spec_name:
        spec.spec_name = " ".join(spec_in.spec_name.split())

    if spec_in.values is not None:
        wanted = _clean_values(spec_in.values)
        wanted_keys = {normalize_spec_text(value) for value in wanted}
        dropped = [v for v in spec.values if normalize_spec_text(v.value) not in wanted_keys]
        await _ensure_values_unused(db, [value.id for value in dropped])
        for value in dropped:
            spec.values.remove(value)
        known = {normalize_spec_text(value.value) for value in spec.values}
        for value in wanted:
            if normalize_spec_text(value) not in known:
                spec.values.append(SpecValue(value=value))

    await log_audit(
        db,
        AuditEntityType.SPECIFICATION,
        spec.id,
        "updated",
        current_user.username,
        new_value=spec_in.model_dump(exclude_unset=True),
    )
    await db.commit()
    return _spec_response(await _get_spec(db, spec_id))


@router.delete("/specifications", status_code=status.HTTP_204_NO_CONTENT)
async def delete_specifications(
    ids: list[int] = Query(...),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Bulk delete. Fails as a whole if any value is still used by a SKU."""
    result = await db.execute(
        select(Specification)
        .where(Specification.id.in_(ids))
        .options(selectinload(Specification.values))
    )
    specs = result.scalars().all()
    await _ensure_values_unused(
        db, [value.id for spec in specs for value in spec.values]
    )
    await db.execute(
        delete(CategorySpecification).where(
            CategorySpecification.specification_id.in_(ids)
        )
    )
    for spec in specs:
        await db.delete(spec)
        await log_audit(
            db, AuditEntityType.SPECIFICATION, spec.id, "deleted", current_user.username
        )
    await db.commit()
    return None


# ============================================================================
# GOODS UNITS
# ============================================================================


async def _get_unit(db: AsyncSession, unit_id: int) -> GoodsUnit:
    unit = await db.get(GoodsUnit, unit_id)
    if not unit:
        raise NotFound("GOODS_UNIT_NOT_EXIST", "Goods unit not found")
    return unit


async def _ensure_unit_name_free(db: AsyncSession, name: str) -> None:
    if (await db.execute(select(GoodsUnit.id).where(GoodsUnit.name == name))).first():
        raise BusinessRuleViolation("GOODS_UNIT_EXIST", "Goods unit already exists")


@router.get("/goods-units", response_model=GoodsUnitListResponse)
async def list_goods_units(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    units, total, total_pages = await paginate(
        db, select(GoodsUnit).order_by(GoodsUnit.id), page, page_size
    )
    return GoodsUnitListResponse(
        items=[GoodsUnitResponse.model_validate(u) for u in units],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.post(
    "/goods-units", response_model=GoodsUnitResponse, status_code=status.HTTP_201_CREATED
)
async def create_goods_unit(
    unit_in: GoodsUnitCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _ensure_unit_name_free(db, unit_in.name)
    unit = GoodsUnit(name=unit_in.name)
    db.add(unit)
    await db.commit()
    await db.refresh(unit)
    return unit


@router.put("/goods-units/{unit_id}", response_model=GoodsUnitResponse)
async def update_goods_unit(
    unit_id: int,
    unit_in: GoodsUnitCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    unit = await _get_unit(db, unit_id)
    if unit.name != unit_in.name:
        await _ensure_unit_name_free(db, unit_in.name)
        unit.name = unit_in.name
    await db.commit()
    await db.refresh(unit)
    return unit


@router.delete("/goods-units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goods_unit(
    unit_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    unit = await _get_unit(db, unit_id)
    await db.delete(unit)
    await db.commit()
    return None
