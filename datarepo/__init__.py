"""
datarepo: generic async repositories over SQLAlchemy.

Domain code talks to Repository[T]; the store is reached only through
IDatabaseContext (entity sets + commit).
"""

from datarepo.core.exceptions import NotFoundError, RepositoryError, StoreError
from datarepo.core.include import Include, LoadStrategy
from datarepo.core.database import (
    close_db,
    create_session_factory,
    database_context,
    get_async_engine,
    init_db,
)
from datarepo.interfaces import IDatabaseContext, IEntitySet, IRepository, Predicate
from datarepo.repositories import Repository
from datarepo.services import SQLAlchemyDatabaseContext, SQLAlchemyEntitySet

__version__ = "0.1.0"

__all__ = [
    "Repository",
    "IRepository",
    "IDatabaseContext",
    "IEntitySet",
    "Predicate",
    "SQLAlchemyDatabaseContext",
    "SQLAlchemyEntitySet",
    "Include",
    "LoadStrategy",
    "RepositoryError",
    "NotFoundError",
    "StoreError",
    "get_async_engine",
    "create_session_factory",
    "database_context",
    "init_db",
    "close_db",
]
