"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - db_manager patched so readiness checks hit the test engine

Design Decisions:
    - SQLite in-memory via aiosqlite: no external dependency; the schema uses
      only portable types (Uuid, Numeric, Date) so the same SQL runs on Postgres
    - Settings read a non-existent config file so a developer's config.toml
      never leaks into tests
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUBLEDGER_CONFIG_FILE", "tests-nonexistent-config.toml")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, async_sessionmaker, create_async_engine,
)

import subledger.infrastructure.database as db_module  # noqa: E402
from subledger.core.domain_types import NewSubscription, UserId  # noqa: E402
from subledger.db.base import Base  # noqa: E402
from subledger.infrastructure.database import (  # noqa: E402
    DatabaseSessionManager, get_db,
)
from subledger.infrastructure.subscription_repository import (  # noqa: E402
    SqlSubscriptionRepository,
)
from subledger.main import app  # noqa: E402
from subledger.models.subscription import SubscriptionRecord  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def repository(test_db):
    return SqlSubscriptionRepository(test_db, timeout_seconds=5)


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


def new_subscription(**overrides) -> NewSubscription:
    fields = {
        "service_name": "Yandex Plus",
        "price": Decimal("400.00"),
        "user_id": UserId(uuid4()),
        "start_date": date(2025, 7, 1),
        "end_date": None,
    }
    fields.update(overrides)
    return NewSubscription(**fields)


@pytest.fixture
def make_subscription():
    return new_subscription


@pytest.fixture
def seed_record(test_db):
    """Insert a row directly, bypassing the repository (explicit timestamps allowed)."""
    async def _seed(**overrides) -> SubscriptionRecord:
        fields = {
            "service_name": "Netflix",
            "price": Decimal("9.99"),
            "user_id": uuid4(),
            "start_date": date(2024, 1, 1),
            "end_date": None,
        }
        fields.update(overrides)
        record = SubscriptionRecord(**fields)
        test_db.add(record)
        await test_db.commit()
        await test_db.refresh(record)
        return record

    return _seed

