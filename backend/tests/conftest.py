"""
Pytest fixtures for test database, client, and authentication.

Uses a SQLite file database (override with TEST_DATABASE_URL) with the
schema created and dropped around every test for isolation. Redis is
disabled so the trip search cache always misses.
"""

import os

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_bus_reservation.db")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-signing-key-not-for-production")

from datetime import date, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import build_engine, get_db  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.core.logging import setup_logging  # noqa: E402
from app.models import User, Route, Trip, Passenger  # noqa: E402
from app.services.access_policy import CallerIdentity  # noqa: E402

setup_logging()

test_engine = build_engine(TEST_DATABASE_URL)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

TRAVEL_DATE = date.today() + timedelta(days=14)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db_session: AsyncSession, username: str, role: str = "user") -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password=hash_password("testpassword123"),
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A rider account."""
    return await _make_user(db_session, "testuser")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second rider who owns nothing of test_user's."""
    return await _make_user(db_session, "otheruser")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "adminuser", role="admin")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers with Bearer token."""
    return _headers_for(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def rider_identity(test_user: User) -> CallerIdentity:
    return CallerIdentity(account_id=test_user.id, role="user")


@pytest_asyncio.fixture
async def test_route(db_session: AsyncSession) -> Route:
    """A 40-seat route with a fare of 500."""
    route = Route(
        category="AC",
        source="Mumbai",
        destination="Pune",
        total_seats=40,
        fare=Decimal("500.00"),
    )
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return route


async def _make_trip(db_session: AsyncSession, route: Route, available_seats: int = None) -> Trip:
    trip = Trip(
        route_id=route.id,
        date=TRAVEL_DATE,
        departure_time="08:00",
        total_seats=route.total_seats,
        available_seats=route.total_seats if available_seats is None else available_seats,
    )
    db_session.add(trip)
    await db_session.commit()
    await db_session.refresh(trip)
    return trip


@pytest_asyncio.fixture
async def test_trip(db_session: AsyncSession, test_route: Route) -> Trip:
    """A trip on test_route with every seat free."""
    return await _make_trip(db_session, test_route)


@pytest_asyncio.fixture
async def single_seat_trip(db_session: AsyncSession) -> Trip:
    """A trip on a one-seat route: the next booking takes the last seat."""
    route = Route(
        category="Sleeper",
        source="Delhi",
        destination="Jaipur",
        total_seats=1,
        fare=Decimal("500.00"),
    )
    db_session.add(route)
    await db_session.commit()
    await db_session.refresh(route)
    return await _make_trip(db_session, route)


@pytest_asyncio.fixture
async def sold_out_trip(db_session: AsyncSession, test_route: Route) -> Trip:
    """A trip whose counter already reads zero."""
    return await _make_trip(db_session, test_route, available_seats=0)


async def _make_passenger(db_session: AsyncSession, owner: User, name: str) -> Passenger:
    passenger = Passenger(
        name=name,
        age=30,
        gender="Female",
        contact="+91-9000000000",
        address="12 Test Street",
        owner_id=owner.id,
    )
    db_session.add(passenger)
    await db_session.commit()
    await db_session.refresh(passenger)
    return passenger


@pytest_asyncio.fixture
async def test_passenger(db_session: AsyncSession, test_user: User) -> Passenger:
    """A passenger owned by test_user."""
    return await _make_passenger(db_session, test_user, "Asha Rao")


@pytest_asyncio.fixture
async def other_passenger(db_session: AsyncSession, other_user: User) -> Passenger:
    """A passenger owned by other_user."""
    return await _make_passenger(db_session, other_user, "Vikram Shah")


@pytest_asyncio.fixture
async def session_factory(db_session: AsyncSession):
    """Independent sessions on the test database, one connection each."""
    return TestSessionLocal


@pytest_asyncio.fixture
async def last_seat_trip(db_session: AsyncSession, test_route: Route) -> Trip:
    """A 40-seat trip with a single seat left on the counter."""
    return await _make_trip(db_session, test_route, available_seats=1)


@pytest_asyncio.fixture
async def second_passenger(db_session: AsyncSession, test_user: User) -> Passenger:
    """Another passenger owned by test_user."""
    return await _make_passenger(db_session, test_user, "Ravi Rao")
