"""
Pytest fixtures для тестов.

Предоставляет:
- test_database: изолированная SQLite in-memory БД для каждого теста
- test_db: сессия этой БД (для тестов репозитория и сервиса)
- test_client: HTTP клиент для тестирования API endpoints
"""

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.core.database import Database
from src.main import app
from src.models import utc_now

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
AUTH_HEADERS = {"Authorization": "Bearer test-token"}


@pytest_asyncio.fixture
async def test_database():
    """
    Отдельная Database на каждый тест.

    StaticPool (см. create_engine_for_url) держит одно соединение,
    иначе in-memory данные теряются между сессиями.
    """
    database = Database(TEST_DATABASE_URL)
    await database.create_all()

    yield database

    await database.drop_all()
    await database.dispose()


@pytest_asyncio.fixture
async def test_db(test_database):
    """Async session для тестов репозитория и сервиса."""
    async with test_database.session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_database):
    """
    HTTP клиент для API.

    ASGITransport не запускает lifespan, поэтому тестовая Database
    кладётся в app.state вручную - так же, как это делает lifespan.
    """
    app.state.database = test_database

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=AUTH_HEADERS,
    ) as client:
        yield client

    del app.state.database


@pytest.fixture
def tomorrow():
    return utc_now() + timedelta(days=1)


@pytest.fixture
def yesterday():
    return utc_now() - timedelta(days=1)
