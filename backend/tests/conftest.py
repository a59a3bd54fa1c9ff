"""
Pytest fixtures for test database, client, clock and API credentials.

Runs against in-memory SQLite (aiosqlite) so the suite needs neither
PostgreSQL nor Redis. Tables are created and dropped per test for isolation.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("API_KEY_HASH_ROUNDS", "4")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from theater.main import app
from theater.core.rate_limit import RateLimiter
from theater.core.security import Permission, create_principal_token
from theater.db.base import Base
from theater.db.session import get_db
from theater.domain.inventory import SeatInventory
from theater.domain.seat import SeatLayout
from theater.models.show import Show
from theater.services.auth_service import create_api_key, principal_for
from theater.services.inventory_registry import InventoryRegistry
from theater.services.show_service import create_show, today

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


class FakeClock:
    """Settable UTC clock; starts at the real current time."""

    def __init__(self):
        self.current = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def inventory(clock: FakeClock) -> SeatInventory:
    """Fresh 10x10 inventory that is not backed by a database."""
    return SeatInventory.fresh("show-test", SeatLayout(), clock=clock)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def registry(clock: FakeClock) -> InventoryRegistry:
    return InventoryRegistry(SeatLayout(), clock=clock)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, registry: InventoryRegistry) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.state.inventory_registry = registry
    app.state.rate_limiter = RateLimiter()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def show(db_session: AsyncSession) -> Show:
    """Today's show with a fresh 10x10 grid."""
    show = await create_show(db_session, "Hamilton", today(), "A test performance", layout=SeatLayout())
    await db_session.commit()
    return show


async def _make_key(db_session: AsyncSession, name: str, permissions, rate_limit=None) -> str:
    _, plain = await create_api_key(db_session, name, permissions, rate_limit=rate_limit)
    await db_session.commit()
    return plain


@pytest_asyncio.fixture
async def booking_key(db_session: AsyncSession) -> str:
    return await _make_key(db_session, "Partner Booking", ["read", "book", "cancel"])


@pytest_asyncio.fixture
async def other_booking_key(db_session: AsyncSession) -> str:
    return await _make_key(db_session, "Second Partner", ["read", "book", "cancel"])


@pytest_asyncio.fixture
async def read_key(db_session: AsyncSession) -> str:
    return await _make_key(db_session, "Read Only", ["read"])


@pytest_asyncio.fixture
async def admin_key(db_session: AsyncSession) -> str:
    return await _make_key(db_session, "Administrator", ["admin"])


@pytest.fixture
def auth_headers(booking_key: str) -> dict:
    """Authorization headers carrying the booking key itself."""
    return {"Authorization": f"ApiKey {booking_key}"}


@pytest.fixture
def other_headers(other_booking_key: str) -> dict:
    return {"Authorization": f"ApiKey {other_booking_key}"}


@pytest.fixture
def read_headers(read_key: str) -> dict:
    return {"Authorization": f"ApiKey {read_key}"}


@pytest.fixture
def admin_headers(admin_key: str) -> dict:
    return {"Authorization": f"ApiKey {admin_key}"}


@pytest_asyncio.fixture
async def bearer_headers(db_session: AsyncSession) -> dict:
    """Bearer token for a booking key, minted without going through /auth/token."""
    key, _ = await create_api_key(db_session, "Token Partner", [Permission.READ.value, Permission.BOOK.value])
    await db_session.commit()
    return {"Authorization": f"Bearer {create_principal_token(principal_for(key))}"}


@pytest.fixture
def booking_payload(show: Show):
    """Build a POST /bookings body for `show`; keyword args add or override fields."""

    def build(**fields) -> dict:
        payload = {
            "showId": show.id,
            "customerInfo": {"name": "Ada Lovelace", "email": "ada@example.com"},
        }
        payload.update(fields)
        return payload

    return build
