"""Database handle construction and session management."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from granthub.core.config import Settings


class Database:
    """Explicitly constructed data-access handle.

    The application creates one instance in its lifespan, stores it on
    ``app.state.db`` and disposes it at shutdown. Nothing in the package holds
    an engine at module level.

    Example:
    -------
        db = Database.from_settings(settings)
        async with db.session() as session:
            await session.execute(...)
        await db.dispose()

    """

    def __init__(self, url: str, engine: Optional[AsyncEngine] = None, **engine_kwargs: Any):
        """Create the engine and session factory.

        Args:
        ----
            url (str): SQLAlchemy async database URL.
            engine (Optional[AsyncEngine]): Pre-built engine, used by tests.
            **engine_kwargs: Passed to ``create_async_engine``.

        """
        self.url = url
        self.engine = engine or create_async_engine(url, **engine_kwargs)
        # Objects stay readable after commit; services return them directly
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the Postgres handle from application settings.

        Connection pool timeout behavior:
        - pool_timeout: wait up to DB_POOL_TIMEOUT seconds for a connection
        - idle transactions are killed by Postgres after 60s
        """
        return cls(
            str(settings.SQLALCHEMY_ASYNC_DATABASE_URI),
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_pre_ping=True,
            pool_recycle=300,  # Recycle connections after 5 minutes
            isolation_level="READ COMMITTED",
            connect_args={
                "server_settings": {
                    "idle_in_transaction_session_timeout": "60000",
                },
                "command_timeout": 60,
            },
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get an async database session that can be used as a context manager.

        Yields:
            AsyncSession: An async database session

        """
        async with self.session_factory() as db:
            try:
                yield db
            finally:
                await db.close()

    async def get_db(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield an async database session to be used in dependency injection.

        Yields:
        ------
            AsyncSession: An async database session

        """
        async with self.session() as db:
            yield db

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
