"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - seed_groups inserts through the ORM, bypassing the API, so listing tests
      control ids, owners and statuses directly
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from expense_tracker.db.base import Base
from expense_tracker.infrastructure.database import get_db, DatabaseSessionManager
from expense_tracker.models.expense import Expense
from expense_tracker.models.expense_group import ExpenseGroup
import expense_tracker.infrastructure.database as db_module
from expense_tracker.main import app


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


@pytest.fixture
def seed_groups(test_session_factory):
    """Insert n expense groups (ids 1..n). Returns an async callable.

    Every group gets two expenses. Statuses cycle Open → Confirmed → Processed
    and owners alternate between "alice" and "bob".
    """
    async def _seed(n: int) -> list[int]:
        async with test_session_factory() as session:
            groups = []
            for i in range(1, n + 1):
                group = ExpenseGroup(
                    user_id="alice" if i % 2 else "bob",
                    title=f"Group {i:02d}",
                    description=f"Description {i}",
                    expense_group_status_id=(i - 1) % 3 + 1,
                )
                group.expenses = [
                    Expense(description=f"Taxi {i}", amount=Decimal("12.50")),
                    Expense(description=f"Hotel {i}", amount=Decimal("90.00")),
                ]
                groups.append(group)
            session.add_all(groups)
            await session.commit()
            return [g.id for g in groups]
    return _seed
