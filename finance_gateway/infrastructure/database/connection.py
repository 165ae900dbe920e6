"""Async engine and session lifecycle for the gateway database."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from finance_gateway.core.config import settings

ASYNC_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


def to_async_url(url: str) -> str:
    """Point plain Postgres URLs (as issued by hosting providers) at asyncpg."""
    for prefix, replacement in ASYNC_DRIVER_PREFIXES.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


class DatabaseSessionManager:
    """
    Owns the engine shared by payment transactions and applications.

    `init()` is called once at startup; units of work draw sessions
    from `session_factory` and request handlers use `session()`.
    """

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker | None = None

    def init(self, database_url: str | None = None) -> None:
        url = to_async_url(database_url or settings.database_url)

        options = {"echo": settings.debug, "pool_pre_ping": True}
        # SQLite has no connection pool to size
        if not url.startswith("sqlite"):
            options["pool_size"] = settings.db_pool_size
            options["max_overflow"] = settings.db_max_overflow

        self._engine = create_async_engine(url, **options)
        self._sessionmaker = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._sessionmaker is None:
            raise RuntimeError("DatabaseSessionManager.init() has not been called")
        return self._sessionmaker

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session committed on success and rolled back on any error."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            await session.commit()


db_manager = DatabaseSessionManager()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with db_manager.session() as session:
        yield session
