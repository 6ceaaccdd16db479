"""
Recruitment Database Connection Setup
Provides the async engine and session factory, owned by the application.

The handle is constructed explicitly at startup, stored on
``app.state.database`` and disposed at shutdown. Request handlers receive
sessions through the ``get_db`` dependency; nothing reaches for a
module-level engine.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from recruitment.models import Base


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Engine and session factory for one database.

    Usage:
        database = Database(settings.database_url)
        await database.ping(timeout=3.0)
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 20,
        engine: Optional[AsyncEngine] = None,
    ):
        if engine is None:
            engine_kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
            if make_url(url).get_backend_name() == "sqlite":
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                engine_kwargs.update(
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_recycle=3600,
                )
            engine = create_async_engine(url, **engine_kwargs)

        self.engine = engine
        if self.dialect_name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for a unit of work.

        Commits when the block exits cleanly, rolls back on any exception.

        Usage:
            async with database.session() as session:
                session.add(obj)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self, timeout: float) -> None:
        """
        Run ``SELECT 1`` bounded by ``timeout`` seconds.

        Raises:
            asyncio.TimeoutError: If the database does not answer in time.
            sqlalchemy.exc.DBAPIError: If the connection fails.
        """

        async def _select_one() -> None:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        await asyncio.wait_for(_select_one(), timeout=timeout)

    async def create_all(self) -> None:
        """
        Create all tables.

        Note: In production, use Alembic migrations instead.
        This is primarily for development and testing.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections. Call this during application shutdown."""
        await self.engine.dispose()


def upsert_statement(session: AsyncSession, model: type[Base]) -> Any:
    """
    Dialect-specific ``INSERT`` that supports ``on_conflict_do_update``.

    Only PostgreSQL (production) and SQLite (tests, local runs) are supported.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Yields a session from the application's database handle, commits on
    success and rolls back if the handler raises.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
