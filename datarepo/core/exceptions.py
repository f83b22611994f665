"""
Repository error taxonomy.

Every failure surfaced by a repository is a RepositoryError:
- NotFoundError: remove_by_predicate matched nothing
- StoreError: the underlying store failed (constraint violation,
  connectivity loss, serialization failure, ...)

Store errors keep the original exception chained as __cause__ and on
the ``original`` attribute. Nothing is retried or translated further.
"""

from typing import Optional


class RepositoryError(Exception):
    """Base exception for repository operations"""
    pass


class NotFoundError(RepositoryError):
    """
    Raised when a delete-by-predicate finds no matching entity.

    Attributes:
        entity_type: Mapped class that was searched
    """

    def __init__(self, entity_type: type, message: Optional[str] = None):
        self.entity_type = entity_type
        super().__init__(
            message or f"Cannot remove {entity_type.__name__}: no entity matches the predicate"
        )


class StoreError(RepositoryError):
    """
    Raised when the store fails to execute a query, stage a change or commit.

    Attributes:
        original: The exception raised by the store driver/ORM
    """

    def __init__(self, message: str, original: Optional[BaseException] = None):
        self.original = original
        super().__init__(message)
