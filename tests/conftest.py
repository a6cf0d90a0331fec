"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from core29.database import close_db, create_schema, get_session_factory, init_db
from core29.db.models import User
from core29.gamification.seed import seed_achievements
from core29.locations.seed import seed_locations
from core29.main import create_app
from core29.users.service import get_or_create_user

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database with the achievement catalog and locations seeded."""
    await init_db(TEST_DATABASE_URL)
    await create_schema()
    async with get_session_factory()() as session:
        await seed_achievements(session)
        await seed_locations(session)
        yield session
    await close_db()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the test database. Redis stays unset."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[[str], Awaitable[User]]:
    """Factory: register a user by name."""

    async def _make(name: str) -> User:
        user, _ = await get_or_create_user(db_session, name)
        return user

    return _make


@pytest_asyncio.fixture
async def alice(make_user) -> User:
    return await make_user("Alice")


@pytest_asyncio.fixture
async def bob(make_user) -> User:
    return await make_user("Bob")


@pytest_asyncio.fixture
async def carol(make_user) -> User:
    return await make_user("Carol")
