"""Shared fixtures and utilities for tests."""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import database.models  # noqa: E402,F401
from database.engine import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from database.models.companies import Company  # noqa: E402
from database.models.users import User  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the full schema."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine.sync_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


@pytest_asyncio.fixture
async def user(session) -> User:
    """A registered job seeker."""
    account = User(
        id=uuid.uuid4(),
        email="ada@example.com",
        first_name="Ada",
        last_name="Lovelace",
    )
    session.add(account)
    await session.commit()
    return account


@pytest_asyncio.fixture
async def other_user(session) -> User:
    account = User(
        id=uuid.uuid4(),
        email="grace@example.com",
        first_name="Grace",
        last_name="Hopper",
    )
    session.add(account)
    await session.commit()
    return account


@pytest_asyncio.fixture
async def company(session, user) -> Company:
    """A company added by ``user`` that applications can point at."""
    acme = Company(
        name="Acme Corp", industry="Software", location="Remote", added_by=user.id
    )
    session.add(acme)
    await session.commit()
    return acme


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app, using the test database."""
    from api.main import app

    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as http:
        yield http
    app.dependency_overrides.clear()


def auth_headers(account: User) -> dict[str, str]:
    """Headers the authentication proxy would attach for ``account``."""
    return {"X-User-Id": str(account.id)}


@pytest.fixture
def headers(user) -> dict[str, str]:
    return auth_headers(user)


@pytest.fixture
def other_headers(other_user) -> dict[str, str]:
    return auth_headers(other_user)
