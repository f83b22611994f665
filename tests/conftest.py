"""
Pytest configuration and shared fixtures.

This module provides:
- anyio backend selection for async tests
- An in-memory SQLite engine with the test schema
- Session, database context and repository fixtures
"""

import pytest

from datarepo.core.database import (
    close_db,
    create_session_factory,
    get_async_engine,
    init_db,
)
from datarepo.repositories.repository import Repository
from datarepo.services.database_context import SQLAlchemyDatabaseContext
from tests.models import Author, Book, Chapter, Tag


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
async def engine():
    """
    Create an in-memory SQLite engine with all test tables.

    Yields:
        AsyncEngine bound to a fresh database
    """
    engine = get_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    await init_db(engine)

    yield engine

    await close_db(engine)


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return create_session_factory(engine)


@pytest.fixture
async def async_session(session_factory):
    """
    Provide an AsyncSession for a single test.

    Yields:
        AsyncSession instance
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def context(async_session):
    """
    Provide a database context over the test session.

    Yields:
        SQLAlchemyDatabaseContext instance
    """
    context = SQLAlchemyDatabaseContext(async_session)
    yield context
    context.close()


@pytest.fixture
def author_repo(context):
    return Repository(context, Author)


@pytest.fixture
def book_repo(context):
    return Repository(context, Book)


@pytest.fixture
def chapter_repo(context):
    return Repository(context, Chapter)


@pytest.fixture
def tag_repo(context):
    return Repository(context, Tag)
