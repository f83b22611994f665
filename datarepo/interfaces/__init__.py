"""Store and repository interface contracts (ABCs)"""

from datarepo.interfaces.database_context import IDatabaseContext, IEntitySet, Predicate
from datarepo.interfaces.repository import IRepository

__all__ = [
    'IDatabaseContext',
    'IEntitySet',
    'IRepository',
    'Predicate',
]
