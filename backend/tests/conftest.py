"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh SQLite database file (or TEST_DATABASE_URL, e.g. a
PostgreSQL test database) with tables created from the models. Every HTTP
request opens its own session, as in production, so concurrent requests
really race against each other.
"""

import os
import tempfile

# Must be set before the application modules read their settings
_DEFAULT_DB = os.path.join(tempfile.gettempdir(), "eventreg-import.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DEFAULT_DB}")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from eventreg.core.security import create_access_token, hash_password
from eventreg.db.base import Base
from eventreg.db.session import get_db
from eventreg.main import app
from eventreg.models.event import Event
from eventreg.models.user import ROLE_ADMIN, ROLE_USER, User
from eventreg.services.admission_service import SerializedAdmission

# One hash for every fixture user keeps bcrypt cost out of the test time
TEST_PASSWORD = "testpassword123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def engine(tmp_path):
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    original_admission = app.state.admission
    app.state.admission = SerializedAdmission()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.admission = original_admission
    app.dependency_overrides.clear()


async def _create_user(session: AsyncSession, email: str, role: str = ROLE_USER) -> User:
    user = User(
        email=email,
        name=email.split("@")[0],
        hashed_password=TEST_PASSWORD_HASH,
        role=role,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "test@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", role=ROLE_ADMIN)


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    return _headers_for(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession):
    """Factory: insert an event directly into the catalog."""

    async def _make_event(
        capacity: int = 100,
        title: str = "Test Concert",
        registration_deadline=None,
        days_ahead: int = 30,
    ) -> Event:
        event = Event(
            title=title,
            description="A test event",
            date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
            location="Test Venue",
            capacity=capacity,
            registration_deadline=registration_deadline,
            registration_fee=0,
            version=1,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make_event


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """An event with 100 seats."""
    return await make_event(capacity=100)


@pytest_asyncio.fixture
async def small_event(make_event) -> Event:
    """An event with 2 seats."""
    return await make_event(capacity=2, title="Small Room")
