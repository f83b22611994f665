"""
Generic repository.

Provides async CRUD over one entity kind on top of an IDatabaseContext.
Reads compose an optional include directive and an optional predicate
into a query; every write stages its change on the entity set and then
commits the context.
"""

import logging
from typing import Iterable, List, Optional, Type, Union

from datarepo.core.exceptions import NotFoundError
from datarepo.core.include import Include
from datarepo.interfaces.database_context import EntityT, IDatabaseContext, IEntitySet, Predicate
from datarepo.interfaces.repository import IRepository

logger = logging.getLogger(__name__)


class Repository(IRepository[EntityT]):
    """
    Repository for one mapped entity class.

    The repository keeps no state besides its context and entity set:
    nothing is cached, every call reads or stages against the live store.

    Shared commits:
        Each mutating method ends with ``context.commit()``, which
        persists the context's *entire* pending change set. Changes
        staged through other repositories (or directly on the session)
        of the same context are committed as a side effect. This is
        implicit coupling between repositories, not a transaction
        boundary; use separate contexts when calls must not see each
        other's work.

    Args:
        context: Database context shared with other repositories
        entity_type: Mapped class this repository manages

    Example:
        >>> books = Repository(context, Book)
        >>> await books.add(Book(title="Dune", year=1965))
        >>> classics = await books.get_all(
        ...     lambda Book: Book.year < 1970,
        ...     include=Include("author"),
        ... )
    """

    def __init__(self, context: IDatabaseContext, entity_type: Type[EntityT]):
        self._context = context
        self._entities: IEntitySet[EntityT] = context.entities(entity_type)

    @property
    def entity_type(self) -> Type[EntityT]:
        return self._entities.entity_type

    def __repr__(self) -> str:
        return f"Repository({self.entity_type.__name__})"

    def queryable(self):
        return self._entities.query()

    def _compose(self, predicate: Optional[Predicate], include: Optional[Include]):
        query = self._entities.query()
        # Include before filter so eager loads ride along with the filtered rows
        if include:
            query = self._entities.include(query, include)
        if predicate is not None:
            query = self._entities.where(query, predicate)
        return query

    async def get_all(
        self,
        predicate: Optional[Union[Predicate, Include]] = None,
        *,
        include: Optional[Include] = None
    ) -> List[EntityT]:
        # get_all(Include(...)) reads as "everything, with these loaded"
        if isinstance(predicate, Include) and include is None:
            predicate, include = None, predicate
        return await self._entities.to_list(self._compose(predicate, include))

    async def get(
        self,
        predicate: Predicate,
        *,
        include: Optional[Include] = None
    ) -> Optional[EntityT]:
        return await self._entities.first(self._compose(predicate, include))

    async def add(self, entity: EntityT) -> None:
        await self._entities.add(entity)
        await self._commit("add")

    async def add_range(self, entities: Iterable[EntityT]) -> None:
        await self._entities.add_range(entities)
        await self._commit("add_range")

    async def update(self, entity: EntityT) -> None:
        await self._entities.update(entity)
        await self._commit("update")

    async def remove(self, entity: EntityT) -> None:
        await self._entities.remove(entity)
        await self._commit("remove")

    async def remove_by_predicate(self, predicate: Predicate) -> None:
        entity = await self._entities.first(self._compose(predicate, None))
        if entity is None:
            raise NotFoundError(self.entity_type)

        await self._entities.remove(entity)
        await self._commit("remove_by_predicate")

    async def remove_range(self, entities: Iterable[EntityT]) -> None:
        await self._entities.remove_range(entities)
        await self._commit("remove_range")

    async def _commit(self, operation: str) -> int:
        affected = await self._context.commit()
        logger.debug(
            f"{self.entity_type.__name__} {operation} committed",
            extra={"entity": self.entity_type.__name__, "operation": operation, "affected": affected}
        )
        return affected
