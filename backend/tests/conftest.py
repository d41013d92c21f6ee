"""Test fixtures for the backend."""
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from rollcall.config import Settings, load_settings
from rollcall.main import create_app
from rollcall.models import Role, User
from rollcall.services import users as user_service

TEST_SECRET = "test-secret-key-that-is-long-enough-0123456789"
ADMIN_PASSWORD = "admin-pass"
SCANNER_PASSWORD = "scanner-pass"

ClientFactory = Callable[..., Awaitable[AsyncClient]]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite database."""

    return load_settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test_backend.db'}",
        secret_key=TEST_SECRET,
        scanner_scan_limit=100,
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    """Create the application and its schema; drop everything afterwards."""

    application = create_app(settings)
    database = application.state.database
    await database.create_all()
    yield application
    await database.drop_all()
    await database.dispose()


@pytest_asyncio.fixture
async def db_session(app: FastAPI) -> AsyncIterator[AsyncSession]:
    async with app.state.database.sessionmaker() as session:
        yield session


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an anonymous HTTP client for integration tests."""

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await user_service.create_user(db_session, "admin", ADMIN_PASSWORD, Role.ADMIN)


@pytest_asyncio.fixture
async def scanner_user(db_session: AsyncSession) -> User:
    return await user_service.create_user(db_session, "scanner1", SCANNER_PASSWORD, Role.SCANNER)


@pytest_asyncio.fixture
async def make_client(app: FastAPI) -> AsyncIterator[ClientFactory]:
    """Factory for HTTP clients, each holding its own session cookie."""

    async with AsyncExitStack() as stack:

        async def factory(username: str | None = None, password: str | None = None) -> AsyncClient:
            new_client = await stack.enter_async_context(
                AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
            )
            if username is not None:
                response = await new_client.post(
                    "/auth/login", json={"username": username, "password": password}
                )
                assert response.status_code == 200, response.text
            return new_client

        yield factory


@pytest_asyncio.fixture
async def admin_client(make_client: ClientFactory, admin_user: User) -> AsyncClient:
    return await make_client(admin_user.username, ADMIN_PASSWORD)


@pytest_asyncio.fixture
async def scanner_client(make_client: ClientFactory, scanner_user: User) -> AsyncClient:
    return await make_client(scanner_user.username, SCANNER_PASSWORD)
