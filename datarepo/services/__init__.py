"""SQLAlchemy implementations of the store interfaces"""

from datarepo.services.database_context import SQLAlchemyDatabaseContext
from datarepo.services.entity_set import SQLAlchemyEntitySet

__all__ = [
    'SQLAlchemyDatabaseContext',
    'SQLAlchemyEntitySet',
]
