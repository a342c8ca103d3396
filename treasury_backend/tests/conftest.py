"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from treasury_backend.app.main import app
from treasury_backend.app.core.config import settings
from treasury_backend.app.db.session import get_db, Base
from treasury_backend.app.db.repository import RowPaymentRepository
from treasury_backend.app.db.row_store import InMemoryRowStore
from treasury_backend.app.domain.ledger.ledger_service import LedgerService

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """
    original_backend = settings.storage_backend
    settings.storage_backend = "database"

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    # Restore and clear
    app.dependency_overrides = {}
    settings.storage_backend = original_backend


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + timedelta(seconds=1)
        return value


class CountingRowStore(InMemoryRowStore):
    """In-memory store that counts writes per kind."""

    def __init__(self, rows=None):
        super().__init__(rows)
        self.writes = {"append": 0, "update": 0, "delete": 0}

    async def append_row(self, row):
        self.writes["append"] += 1
        await super().append_row(row)

    async def update_row(self, position, row):
        self.writes["update"] += 1
        await super().update_row(position, row)

    async def delete_row(self, position):
        self.writes["delete"] += 1
        await super().delete_row(position)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def row_store():
    return CountingRowStore()


@pytest.fixture
def ledger(row_store, clock):
    """Ledger service over an in-memory row store."""
    return LedgerService(RowPaymentRepository(row_store), clock=clock)


@pytest.fixture
def expense_payload():
    return {
        "partyName": "Nile Supplies Co.",
        "amount": "500",
        "paymentDate": "2025-01-15",
        "includesVAT": False,
        "paymentType": "expense",
        "expenseCategory": "supplier",
        "quotationNumber": "Q-1001",
    }
