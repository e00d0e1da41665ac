"""Shared test fixtures: in-memory database, API client and row factories."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from phonedesk.analytics.windows import DAY_MS, HOUR_MS
from phonedesk.api.deps import get_database, get_now
from phonedesk.db.models import Base, DemandEvent, Exchange, Message, Product, Thread
from phonedesk.main import app

# Business day starting 2025-06-14 21:00 UTC (midnight UTC+3); NOW is noon local
TODAY_START = 1_749_934_800_000
YESTERDAY_START = TODAY_START - DAY_MS
NOW = TODAY_START + 12 * HOUR_MS


@pytest.fixture
async def db_session():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def client(db_session):
    """API client bound to the test database and a fixed clock."""

    async def get_test_database():
        yield db_session

    app.dependency_overrides[get_database] = get_test_database
    app.dependency_overrides[get_now] = lambda: NOW

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_thread(**overrides) -> Thread:
    values = dict(
        telegram_id="1001",
        customer_first_name="Abebe",
        status="new",
        created_at=NOW - 3 * DAY_MS,
    )
    values.update(overrides)
    return Thread(**values)


def make_product(**overrides) -> Product:
    values = dict(
        brand="iPhone",
        model="iPhone 13",
        phone_type="iPhone 13",
        price=60_000,
        stock_quantity=5,
        created_at=NOW - 30 * DAY_MS,
    )
    values.update(overrides)
    return Product(**values)


def make_exchange(thread: Thread, product: Product, **overrides) -> Exchange:
    values = dict(
        thread_id=thread.id,
        desired_phone_id=product.id,
        trade_in_model="Galaxy A12",
        status="Pending",
        created_at=NOW - HOUR_MS,
    )
    values.update(overrides)
    return Exchange(**values)


def make_message(thread: Thread, sender: str, created_at: int, sender_role: str | None = None) -> Message:
    return Message(
        thread_id=thread.id,
        sender=sender,
        sender_role=sender_role,
        text="...",
        created_at=created_at,
    )


def make_demand_event(phone_type: str, created_at: int, source: str = "search", **overrides) -> DemandEvent:
    return DemandEvent(source=source, phone_type=phone_type, created_at=created_at, **overrides)
