"""Shared fixtures: a file-backed SQLite store per test, fixed clock, providers."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from freightbid.models import Provider
from freightbid.services.orders.id_allocator import IdentifierAllocator
from freightbid.services.orders.order_service import OrderLifecycleManager
from freightbid.services.quotes.quote_ledger import QuoteLedger
from freightbid.services.selection.selection_service import SelectionCoordinator
from freightbid.utils.store_retry import StoreRetryConfig

# 10:00 in Asia/Shanghai, so the local date is 2025-05-26
START = datetime(2025, 5, 26, 2, 0, tzinfo=UTC)

NO_WAIT_RETRY = StoreRetryConfig(max_attempts=5, min_wait=0.0, max_wait=0.0)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 1) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """Fresh database file; every connection is a separate SQLite connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'freightbid.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA synchronous=OFF")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def retry_config() -> StoreRetryConfig:
    return NO_WAIT_RETRY


@pytest.fixture
def allocator(session_maker, retry_config) -> IdentifierAllocator:
    return IdentifierAllocator(session_maker, retry_config=retry_config)


@pytest.fixture
def manager(session, allocator, clock) -> OrderLifecycleManager:
    return OrderLifecycleManager(session, allocator, clock=clock)


@pytest.fixture
def ledger(session, clock) -> QuoteLedger:
    return QuoteLedger(session, clock=clock)


@pytest.fixture
def coordinator(session, clock, retry_config) -> SelectionCoordinator:
    return SelectionCoordinator(session, clock=clock, retry_config=retry_config)


@pytest.fixture
async def providers(session) -> dict[str, str]:
    """IDs of three active carriers (A, B, C) and one deactivated carrier (X)."""
    created = {
        "A": Provider(name="Carrier A"),
        "B": Provider(name="Carrier B"),
        "C": Provider(name="Carrier C"),
        "X": Provider(name="Carrier X", is_active=False),
    }
    session.add_all(created.values())
    await session.commit()
    return {key: provider.id for key, provider in created.items()}


@pytest.fixture
async def order_id(manager) -> str:
    order = await manager.create_order(
        owner_id="shipper-1",
        warehouse="Shanghai Pudong DC",
        goods="12 pallets of ceramic tiles",
        delivery_address="88 Century Avenue, Shanghai",
    )
    return order.id
