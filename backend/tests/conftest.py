"""Common test fixtures and configuration for pytest.

Unit tests use mocks only. Integration and API tests run against an in-memory
SQLite database (aiosqlite) created from the ORM metadata for every test.
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from granthub.db.session import Database
from granthub.models import Base

# Import all fixtures so they are automatically available for all tests
from tests.fixtures.common import (  # noqa
    admin_user,
    member_user,
    outsider_user,
    restricted_group,
    team,
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def mock_db_session():
    """Provide a mock DB session for unit tests."""
    yield AsyncMock(spec=AsyncSession)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database with every table for each test function."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def database(db_engine: AsyncEngine) -> Database:
    """Database handle bound to the test engine."""
    return Database(TEST_DATABASE_URL, engine=db_engine)


@pytest.fixture
async def db(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the test database, configured like the application's sessions."""
    async with database.session() as session:
        yield session
