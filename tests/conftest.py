from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shoe_store import models as m
from shoe_store.db.base import Base
from shoe_store.db.session import get_async_session
from shoe_store.main import app


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def async_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(session: AsyncSession, role: m.RoleEnum, phone: str, name: str | None = None) -> m.User:
    user = m.User(role=role, phone=phone, name=name)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def admin(async_session):
    return await _make_user(async_session, m.RoleEnum.ADMIN, "+79990000001", "Админ")


@pytest_asyncio.fixture
async def client_user(async_session):
    return await _make_user(async_session, m.RoleEnum.CLIENT, "+79990000002", "Клиент")


@pytest_asyncio.fixture
async def other_client(async_session):
    return await _make_user(async_session, m.RoleEnum.CLIENT, "+79990000003")


@pytest_asyncio.fixture
async def gruzchik(async_session):
    return await _make_user(async_session, m.RoleEnum.GRUZCHIK, "+79990000004", "Грузчик 1")


@pytest_asyncio.fixture
async def other_gruzchik(async_session):
    return await _make_user(async_session, m.RoleEnum.GRUZCHIK, "+79990000005", "Грузчик 2")


@pytest_asyncio.fixture
async def product(async_session):
    product = m.Product(
        name="Кроссовки зимние",
        slug="krossovki-zimnie",
        article="KZ-01",
        price_pair=Decimal("500.00"),
        sizes=["36", "37", "38", "39", "40", "41"],
        is_active=True,
    )
    async_session.add(product)
    await async_session.commit()
    return product


@pytest_asyncio.fixture
async def second_product(async_session):
    product = m.Product(
        name="Туфли",
        slug="tufli",
        article="TF-02",
        price_pair=Decimal("750.00"),
        sizes=None,
        is_active=True,
    )
    async_session.add(product)
    await async_session.commit()
    return product


@pytest.fixture
def make_order(async_session):
    """Фабрика заказов: items задаётся списком (product, qty)."""
    counter = {"n": 20000}

    async def factory(owner, items, status=m.OrderStatusEnum.approval.value, gruzchik=None):
        counter["n"] += 1
        order = m.Order(
            order_number=str(counter["n"]),
            user_id=owner.id,
            gruzchik_id=gruzchik.id if gruzchik else None,
            status=status,
        )
        order.items = [
            m.OrderItem(
                product_id=p.id,
                slug=p.slug,
                name=p.name,
                qty=qty,
                price_box=Decimal(p.price_pair) * 6,
                item_code=f"{order.order_number}-{i}",
            )
            for i, (p, qty) in enumerate(items, start=1)
        ]
        order.subtotal = order.total = sum((i.price_box * i.qty for i in order.items), Decimal("0"))
        async_session.add(order)
        await async_session.commit()
        return order

    return factory


@pytest.fixture
def add_message(async_session):
    async def factory(item, author, text="Есть вопрос по размеру", is_service=False):
        message = m.OrderItemMessage(
            order_item_id=item.id,
            user_id=author.id,
            text=text,
            is_service=is_service,
        )
        async_session.add(message)
        await async_session.commit()
        return message

    return factory


@pytest.fixture
def auth():
    def headers(user) -> dict:
        return {"X-User-Id": str(user.id)}

    return headers
