"""
Database engine and session wiring.

Provides SQLAlchemy async engine setup, session factory and a context
manager that yields a ready SQLAlchemyDatabaseContext. None of this is
used by repositories directly; it is the glue a host application uses
to build the store the repositories run on.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import MetaData, event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from datarepo.core.config import settings
from datarepo.models.base import Base
from datarepo.services.database_context import SQLAlchemyDatabaseContext


def get_async_engine(
    url: Optional[str] = None,
    *,
    echo: Optional[bool] = None
) -> AsyncEngine:
    """
    Create and configure an async SQLAlchemy engine.

    For SQLite:
    - Sets check_same_thread=False for async compatibility
    - Uses StaticPool for in-memory databases so every session sees
      the same database
    - Enables foreign keys on connect (Settings.sqlite_foreign_keys)

    Args:
        url: Database URL (defaults to Settings.database_url)
        echo: Echo SQL (defaults to Settings.sql_echo)

    Returns:
        Configured AsyncEngine instance
    """
    database_url = url or settings.database_url
    is_sqlite = database_url.startswith("sqlite")

    engine_kwargs: dict = {
        "echo": settings.sql_echo if echo is None else echo,
    }
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if make_url(database_url).database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True

    engine = create_async_engine(database_url, **engine_kwargs)

    if is_sqlite and settings.sqlite_foreign_keys:
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(
    engine: AsyncEngine,
    *,
    expire_on_commit: Optional[bool] = None
) -> async_sessionmaker[AsyncSession]:
    """
    Create the async session factory.

    Sessions do not autoflush: staged changes reach the database only
    through an explicit commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=settings.expire_on_commit if expire_on_commit is None else expire_on_commit,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine, metadata: Optional[MetaData] = None) -> None:
    """
    Create all tables of metadata (defaults to datarepo Base.metadata).

    For production schemas use migrations instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync((metadata or Base.metadata).create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the engine's connection pool."""
    await engine.dispose()


@asynccontextmanager
async def database_context(
    session_factory: async_sessionmaker[AsyncSession]
) -> AsyncIterator[SQLAlchemyDatabaseContext]:
    """
    Open a session and wrap it in a database context.

    Anything left uncommitted when the block exits is rolled back.

    Example:
        engine = get_async_engine()
        factory = create_session_factory(engine)
        async with database_context(factory) as context:
            authors = Repository(context, Author)
            await authors.add(Author(name="Ursula K. Le Guin"))
    """
    async with session_factory() as session:
        context = SQLAlchemyDatabaseContext(session)
        try:
            yield context
        except Exception:
            await session.rollback()
            raise
        finally:
            context.close()
