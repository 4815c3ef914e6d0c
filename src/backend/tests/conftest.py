"""
Pytest fixtures for TelcoRewards backend tests.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set test environment variables before importing app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# 09:00 UTC on a fixed day; streak tests step from here in whole days
T0 = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh SQLite database file per test, with all tables created."""
    from api.deps import reset_ledger_services
    from db.session import close_db, configure_database, get_session_maker, init_db

    reset_ledger_services()
    configure_database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db()

    yield get_session_maker()

    reset_ledger_services()
    await close_db()


@pytest.fixture
def processor(database: async_sessionmaker[AsyncSession]) -> Any:
    """Event processor bound to the test database."""
    from services.event_processor import EventProcessor

    return EventProcessor(database, max_conflict_retries=3)


@pytest.fixture
def create_user(database: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[str]]:
    """Factory that registers a user directly through the store and returns its id."""
    counter = {"n": 0}

    async def _create(
        name: str = "Test User",
        email: Optional[str] = None,
        now: datetime = T0,
        welcome_tokens: int = 100,
    ) -> str:
        from repositories.user_repository import UserRepository

        counter["n"] += 1
        async with database() as session, session.begin():
            user = await UserRepository(session).create(
                name=name,
                email=email or f"user{counter['n']}@example.com",
                password_hash="not-a-real-hash",
                now=now,
                welcome_tokens=welcome_tokens,
            )
            return user.id

    return _create


@pytest.fixture
def load_state(database: async_sessionmaker[AsyncSession]) -> Callable[[str], Awaitable[Any]]:
    """Read the current UserState for a user id."""

    async def _load(user_id: str) -> Any:
        from repositories.user_repository import UserRepository

        async with database() as session:
            return await UserRepository(session).get_state(user_id)

    return _load


@pytest.fixture
async def app(database: async_sessionmaker[AsyncSession]) -> Any:
    """FastAPI application wired to the test database."""
    from main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def register(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Register a user over HTTP and return the token response body."""
    counter = {"n": 0}

    async def _register(
        name: str = "Test User",
        email: Optional[str] = None,
        password: str = "password123",
    ) -> dict[str, Any]:
        counter["n"] += 1
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "name": name,
                "email": email or f"player{counter['n']}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
async def auth_headers(register: Callable[..., Awaitable[dict[str, Any]]]) -> dict[str, str]:
    """Authorization headers for a freshly registered user."""
    body = await register()
    return {"Authorization": f"Bearer {body['access_token']}"}
