from types import SimpleNamespace
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.security import issue_token_pair
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db
from services.marketplace_service.models import GoodsSkuSpecValue, MemberRole
from services.marketplace_service.app.main import app
from tests.factories import (
    AddressFactory,
    AdminUserFactory,
    CategoryFactory,
    GoodsFactory,
    MemberFactory,
    SkuFactory,
    SpecificationFactory,
    StoreFactory,
)

settings = get_settings()


@pytest_asyncio.fixture
async def test_engine():
    """
    A fresh database per test. In-memory SQLite needs a single shared
    connection, hence the StaticPool.
    """
    engine_kwargs = {"future": True}
    if settings.DATABASE_URL.startswith("sqlite"):
        engine_kwargs.update(
            poolclass=StaticPool, connect_args={"check_same_thread": False}
        )
    engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient with the app and overridden DB dependency.
    """

    async def _override_db():
        yield db_session

    app.dependency_overrides[get_async_db] = _override_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def auth_headers(
    user_id: int, username: str, role: str = "member", store_id: Optional[int] = None
) -> dict:
    token = issue_token_pair(user_id, username, role, store_id).access_token
    return {"Authorization": f"Bearer {token}"}


def member_headers(member) -> dict:
    return auth_headers(member.id, member.username, "member")


def seller_headers(member, store) -> dict:
    return auth_headers(member.id, member.username, "seller", store.id)


def admin_headers(admin) -> dict:
    return auth_headers(admin.id, admin.username, "admin")


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


async def persist(db: AsyncSession, *instances):
    db.add_all(instances)
    await db.commit()
    return instances[0] if len(instances) == 1 else instances


@pytest_asyncio.fixture
async def marketplace(db_session) -> SimpleNamespace:
    """
    A small live marketplace: an admin, a buyer with a default address,
    two open stores and one on-sale goods per store. The first goods has
    two SKUs (Red / Blue) and the second one plain SKU.
    """
    admin = AdminUserFactory.create()
    buyer = MemberFactory.create()
    seller = MemberFactory.create(role=MemberRole.SELLER)
    other_seller = MemberFactory.create(role=MemberRole.SELLER)
    await persist(db_session, admin, buyer, seller, other_seller)

    store = StoreFactory.create(member_id=seller.id, store_name="Alpha")
    other_store = StoreFactory.create(member_id=other_seller.id, store_name="Beta")
    category = CategoryFactory.create(name="Clothing")
    address = AddressFactory.create(member_id=buyer.id, is_default=True)
    await persist(db_session, store, other_store, category, address)

    color = SpecificationFactory.create(
        store_id=store.id, spec_name="Color", values=["Red", "Blue"]
    )
    await persist(db_session, color)
    red, blue = color.values

    red_sku = SkuFactory.create(price="10.00", quantity=10)
    blue_sku = SkuFactory.create(price="12.50", quantity=5)
    red_sku.spec_links = [GoodsSkuSpecValue(position=0, spec_value_id=red.id)]
    blue_sku.spec_links = [GoodsSkuSpecValue(position=0, spec_value_id=blue.id)]
    shirt = GoodsFactory.create(
        store_id=store.id,
        category_id=category.id,
        goods_name="Shirt",
        price="10.00",
        quantity=15,
        skus=[red_sku, blue_sku],
    )
    mug_sku = SkuFactory.create(price="5.00", quantity=20)
    mug = GoodsFactory.create(
        store_id=other_store.id,
        category_id=category.id,
        goods_name="Mug",
        price="5.00",
        quantity=20,
        skus=[mug_sku],
    )
    await persist(db_session, shirt, mug)

    return SimpleNamespace(
        admin=admin,
        buyer=buyer,
        seller=seller,
        other_seller=other_seller,
        store=store,
        other_store=other_store,
        category=category,
        address=address,
        color=color,
        shirt=shirt,
        red_sku=red_sku,
        blue_sku=blue_sku,
        mug=mug,
        mug_sku=mug_sku,
    )
