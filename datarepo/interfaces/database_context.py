"""
Database Context Interfaces (IDatabaseContext, IEntitySet)

The repository's only view of the store. A context hands out one typed
entity set per mapped class and exposes a single commit operation that
persists the whole pending change set.

Implementation guide:
- entities() must return the same handle for repeated calls on one kind
- Staging methods (add/update/remove) only record changes; nothing is
  durable until commit()
- commit() flushes every pending change held by the context, including
  changes staged through other entity sets
- Store failures must surface as StoreError
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, List, Optional, Type, TypeVar, Union

from datarepo.core.include import Include

EntityT = TypeVar("EntityT")

# A predicate is either a function of the entity class returning a boolean
# filter expression (lambda Book: Book.year > 1990) or such an expression.
Predicate = Union[Callable[[Type[Any]], Any], Any]


class IEntitySet(ABC, Generic[EntityT]):
    """
    Typed handle on the collection of one entity kind.

    Query composition (query/include/where) is synchronous; execution
    and staging are coroutines.
    """

    @property
    @abstractmethod
    def entity_type(self) -> Type[EntityT]:
        """Mapped class this set holds."""
        pass

    @abstractmethod
    def query(self) -> Any:
        """
        Return a lazily evaluated query over the whole collection.

        The returned object is the store's composable query type and is
        not executed until passed to to_list()/first().
        """
        pass

    @abstractmethod
    def include(self, query: Any, include: Include) -> Any:
        """
        Attach eager-load directives to a query.

        Raises:
            ValueError: If a path does not name a relationship
        """
        pass

    @abstractmethod
    def where(self, query: Any, predicate: Predicate) -> Any:
        """Restrict a query to entities matching predicate."""
        pass

    @abstractmethod
    async def to_list(self, query: Any) -> List[EntityT]:
        """Execute query and materialize every row."""
        pass

    @abstractmethod
    async def first(self, query: Any) -> Optional[EntityT]:
        """Execute query and return the first row, or None."""
        pass

    @abstractmethod
    async def add(self, entity: EntityT) -> None:
        """Stage entity for insertion."""
        pass

    @abstractmethod
    async def add_range(self, entities: Iterable[EntityT]) -> None:
        """Stage a batch of entities for insertion."""
        pass

    @abstractmethod
    async def update(self, entity: EntityT) -> EntityT:
        """
        Stage entity's current field values as its new persisted state.

        Returns:
            The instance tracked by the context (may differ from the
            argument when a detached instance is merged)
        """
        pass

    @abstractmethod
    async def remove(self, entity: EntityT) -> None:
        """Stage entity for deletion."""
        pass

    @abstractmethod
    async def remove_range(self, entities: Iterable[EntityT]) -> None:
        """Stage a batch of entities for deletion."""
        pass


class IDatabaseContext(ABC):
    """
    Abstract store context shared by repositories.

    All repositories created on one context share its pending change
    set: a commit issued on behalf of one repository persists whatever
    the others have staged too.
    """

    @abstractmethod
    def entities(self, entity_type: Type[EntityT]) -> IEntitySet[EntityT]:
        """
        Get the entity set for a mapped class.

        Args:
            entity_type: Mapped entity class

        Returns:
            The same IEntitySet instance on every call for entity_type

        Raises:
            TypeError: If entity_type is not mapped by the store
        """
        pass

    @abstractmethod
    async def commit(self) -> int:
        """
        Persist the full pending change set.

        Returns:
            Number of records inserted, updated or deleted

        Raises:
            StoreError: If the store rejects the commit
        """
        pass
