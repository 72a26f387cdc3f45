from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from history_tracker.db import get_session
from history_tracker.main import app
from history_tracker.models import SQLModel
from history_tracker.services.customer import InMemoryCustomerService, set_customer_service
from history_tracker.services.operator import InMemoryOperatorService, set_operator_service

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create an engine on a fresh in-memory database with all tables.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    _engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session wrapped in a transaction that rolls back after each test."""
    async with engine.connect() as conn:
        txn = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)
        yield session
        await session.close()
        if txn.is_active:
            await txn.rollback()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_directories() -> Iterator[None]:
    """Give every test empty operator and customer directories."""
    set_operator_service(InMemoryOperatorService())
    set_customer_service(InMemoryCustomerService())
    yield
    set_operator_service(InMemoryOperatorService())
    set_customer_service(InMemoryCustomerService())
