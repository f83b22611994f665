"""
SQLAlchemy entity set.

Typed collection handle over one mapped class, backed by an AsyncSession
owned by SQLAlchemyDatabaseContext. Queries are SQLAlchemy 2.0 ``Select``
statements; include directives become loader options and predicates
become WHERE clauses.

Every session operation runs under the context's lock, since an
AsyncSession must not be used by two tasks at once.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional, Set, Type

from sqlalchemy import Select, inspect as sa_inspect, select
from sqlalchemy.exc import InvalidRequestError, NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstanceState, Mapper, joinedload, selectinload
from sqlalchemy.orm.exc import UnmappedInstanceError
from sqlalchemy.sql.elements import ClauseElement

from datarepo.core.exceptions import StoreError
from datarepo.core.include import Include, LoadStrategy
from datarepo.interfaces.database_context import EntityT, IEntitySet, Predicate

logger = logging.getLogger(__name__)

_LOADERS = {
    LoadStrategy.SELECT: (selectinload, "selectinload"),
    LoadStrategy.JOINED: (joinedload, "joinedload"),
}


def resolve_mapper(entity_type: type) -> Mapper:
    """
    Get the mapper of an entity class.

    Raises:
        TypeError: If entity_type is not a mapped class
    """
    try:
        mapper = sa_inspect(entity_type)
    except NoInspectionAvailable:
        mapper = None
    if not isinstance(mapper, Mapper):
        name = getattr(entity_type, "__name__", repr(entity_type))
        raise TypeError(f"{name} is not a mapped entity class")
    return mapper


def instance_state(entity: object) -> InstanceState:
    """
    Get the ORM state of an entity instance.

    Raises:
        UnmappedInstanceError: If entity is not an instance of a mapped class
    """
    state = sa_inspect(entity, raiseerr=False)
    if not isinstance(state, InstanceState):
        raise UnmappedInstanceError(entity)
    return state


def require_persisted(entity: object) -> InstanceState:
    """
    Get the state of an entity that has a row to delete.

    Raises:
        InvalidRequestError: If entity was never flushed (transient or pending)
    """
    state = instance_state(entity)
    if state.transient or state.pending:
        raise InvalidRequestError(f"{type(entity).__name__} instance is not persisted")
    return state


class SQLAlchemyEntitySet(IEntitySet[EntityT]):
    """
    Entity set for one mapped class.

    Attributes:
        entity_type: Mapped class held by this set
    """

    def __init__(
        self,
        session: AsyncSession,
        entity_type: Type[EntityT],
        lock: asyncio.Lock
    ):
        self._mapper = resolve_mapper(entity_type)
        self._session = session
        self._entity_type = entity_type
        self._lock = lock

    @property
    def entity_type(self) -> Type[EntityT]:
        return self._entity_type

    def __repr__(self) -> str:
        return f"SQLAlchemyEntitySet({self._entity_type.__name__})"

    # Query composition (synchronous, no I/O)

    def query(self) -> Select:
        return select(self._entity_type)

    def include(self, query: Select, include: Include) -> Select:
        if not include:
            return query
        return query.options(*self.loader_options(include))

    def loader_options(self, include: Include) -> list:
        """
        Translate an Include into SQLAlchemy loader options.

        Each dotted path becomes one chained loader, e.g. "books.chapters"
        with SELECT strategy -> selectinload(Author.books).selectinload(Book.chapters).

        Raises:
            ValueError: If a path segment is not a relationship
        """
        root_loader, chained_name = _LOADERS[include.strategy]
        options = []
        for segments in include.segments():
            mapper = self._mapper
            loader = None
            for name in segments:
                if name not in mapper.relationships:
                    raise ValueError(
                        f"Cannot include '{'.'.join(segments)}': "
                        f"{mapper.class_.__name__}.{name} is not a relationship"
                    )
                attribute = getattr(mapper.class_, name)
                if loader is None:
                    loader = root_loader(attribute)
                else:
                    loader = getattr(loader, chained_name)(attribute)
                mapper = mapper.relationships[name].mapper
            options.append(loader)
        return options

    def where(self, query: Select, predicate: Predicate) -> Select:
        return query.where(self.resolve_predicate(predicate))

    def resolve_predicate(self, predicate: Predicate) -> ClauseElement:
        """
        Turn a predicate into a filter expression.

        Callables receive the entity class, so they read like
        ``lambda Book: Book.year > 1990``.
        """
        # Boolean columns/attributes are expressions too (__clause_element__)
        if isinstance(predicate, ClauseElement) or hasattr(predicate, "__clause_element__"):
            return predicate
        if callable(predicate):
            return predicate(self._entity_type)
        raise TypeError(
            f"Predicate must be a filter expression or a callable, got {type(predicate).__name__}"
        )

    # Execution and staging (suspending)

    @asynccontextmanager
    async def _session_op(self, operation: str, staging: bool = False) -> AsyncIterator[AsyncSession]:
        async with self._lock:
            session = self._session
            if staging:
                new_before = {id(obj) for obj in session.new}
                deleted_before = {id(obj) for obj in session.deleted}
            try:
                yield session
            except SQLAlchemyError as exc:
                if staging:
                    self._unstage(new_before, deleted_before)
                raise StoreError(
                    f"{operation} on {self._entity_type.__name__} failed: {exc}",
                    original=exc
                ) from exc
            except asyncio.CancelledError:
                if staging:
                    self._unstage(new_before, deleted_before)
                raise

    def _unstage(self, new_before: Set[int], deleted_before: Set[int]) -> None:
        """
        Drop whatever the failed call staged, keeping changes staged earlier.

        Inserts it added are expunged; deletions it marked are reverted by
        expunging the instance and attaching it again as persistent.
        """
        session = self._session
        added = [obj for obj in session.new if id(obj) not in new_before]
        deleted = [obj for obj in session.deleted if id(obj) not in deleted_before]
        for obj in added + deleted:
            # expunge cascades, so later objects may already be gone
            if obj in session:
                session.expunge(obj)
        for obj in deleted:
            session.add(obj)
        if added or deleted:
            logger.debug(
                "Reverted partially staged changes",
                extra={
                    "entity": self._entity_type.__name__,
                    "added": len(added),
                    "deleted": len(deleted),
                }
            )

    async def to_list(self, query: Select) -> List[EntityT]:
        async with self._session_op("query") as session:
            result = await session.execute(query)
            # unique() is required once joined eager loading hits a collection
            return list(result.unique().scalars().all())

    async def first(self, query: Select) -> Optional[EntityT]:
        async with self._session_op("query") as session:
            result = await session.execute(query.limit(1))
            return result.unique().scalars().first()

    async def add(self, entity: EntityT) -> None:
        async with self._session_op("add", staging=True) as session:
            instance_state(entity)
            session.add(entity)

    async def add_range(self, entities: Iterable[EntityT]) -> None:
        batch = list(entities)
        async with self._session_op("add_range", staging=True) as session:
            # Nothing is staged unless every item can be
            for entity in batch:
                instance_state(entity)
            session.add_all(batch)
        logger.debug(
            "Staged batch insert",
            extra={"entity": self._entity_type.__name__, "operation": "add_range", "count": len(batch)}
        )

    async def update(self, entity: EntityT) -> EntityT:
        async with self._session_op("update", staging=True) as session:
            instance_state(entity)
            if entity in session:
                # Attached instances are already tracked attribute by attribute
                return entity
            return await session.merge(entity)

    async def remove(self, entity: EntityT) -> None:
        async with self._session_op("remove", staging=True) as session:
            require_persisted(entity)
            await self._delete(session, entity)

    async def remove_range(self, entities: Iterable[EntityT]) -> None:
        batch = list(entities)
        async with self._session_op("remove_range", staging=True) as session:
            for entity in batch:
                require_persisted(entity)
            for entity in batch:
                await self._delete(session, entity)
        logger.debug(
            "Staged batch delete",
            extra={"entity": self._entity_type.__name__, "operation": "remove_range", "count": len(batch)}
        )

    @staticmethod
    async def _delete(session: AsyncSession, entity: EntityT) -> None:
        if sa_inspect(entity).detached:
            # Copy loaded elsewhere (or expunged): delete the row it identifies
            entity = await session.merge(entity)
        await session.delete(entity)
