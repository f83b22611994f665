"""
Repository Interface (IRepository)

Generic contract for querying and mutating one entity kind without
touching the store's native query or session APIs.

Implementation guide:
- All data-touching methods are async
- Reads apply the include directive first, then the predicate
- Every mutating method commits before returning
- Zero-match reads return [] or None; only remove_by_predicate raises
  NotFoundError
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional

from datarepo.interfaces.database_context import EntityT, Predicate
from datarepo.core.include import Include


class IRepository(ABC, Generic[EntityT]):
    """
    Abstract repository for one entity kind.

    A repository is stateless apart from its context reference; it never
    caches entities or query results between calls.
    """

    @abstractmethod
    def queryable(self) -> Any:
        """
        Get a composable, lazily evaluated query over the collection.

        For callers that need composition beyond this interface.
        """
        pass

    @abstractmethod
    async def get_all(
        self,
        predicate: Optional[Predicate] = None,
        *,
        include: Optional[Include] = None
    ) -> List[EntityT]:
        """
        Get every entity, optionally filtered and with related data loaded.

        Args:
            predicate: Optional filter; None returns the whole collection
            include: Optional eager-load directive

        Returns:
            Materialized list (order is whatever the store returns)
        """
        pass

    @abstractmethod
    async def get(
        self,
        predicate: Predicate,
        *,
        include: Optional[Include] = None
    ) -> Optional[EntityT]:
        """
        Get the first entity matching predicate.

        Returns:
            The entity, or None when nothing matches
        """
        pass

    @abstractmethod
    async def add(self, entity: EntityT) -> None:
        """Insert entity and commit."""
        pass

    @abstractmethod
    async def add_range(self, entities: Iterable[EntityT]) -> None:
        """Insert a batch and commit once."""
        pass

    @abstractmethod
    async def update(self, entity: EntityT) -> None:
        """Persist entity's current field values and commit."""
        pass

    @abstractmethod
    async def remove(self, entity: EntityT) -> None:
        """Delete entity and commit."""
        pass

    @abstractmethod
    async def remove_by_predicate(self, predicate: Predicate) -> None:
        """
        Delete the first entity matching predicate and commit.

        Raises:
            NotFoundError: If nothing matches (no change is staged)
        """
        pass

    @abstractmethod
    async def remove_range(self, entities: Iterable[EntityT]) -> None:
        """Delete a batch and commit once."""
        pass
