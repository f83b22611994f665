"""
SQLAlchemy database context.

Implements IDatabaseContext over a single AsyncSession. The session's
pending state (new, dirty and deleted instances) is the pending change
set shared by every repository built on this context; commit() flushes
and commits all of it.

Rows affected are counted from the session's own flushes, so changes
that were autoflushed before commit() are still included in the total.
"""

import asyncio
import logging
import time
from typing import Dict, Type

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from datarepo.core.exceptions import StoreError
from datarepo.interfaces.database_context import EntityT, IDatabaseContext
from datarepo.services.entity_set import SQLAlchemyEntitySet

logger = logging.getLogger(__name__)


class SQLAlchemyDatabaseContext(IDatabaseContext):
    """
    Database context backed by an AsyncSession.

    The context serializes all session access through one asyncio.Lock;
    concurrent repository calls on a shared context therefore queue on
    the session rather than fail. It does not isolate them: whichever
    call commits first persists everything staged so far.

    Args:
        session: AsyncSession to wrap (the caller owns its lifetime)

    Example:
        async with session_factory() as session:
            context = SQLAlchemyDatabaseContext(session)
            books = Repository(context, Book)
            await books.add(Book(title="Dune"))
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._lock = asyncio.Lock()
        self._sets: Dict[type, SQLAlchemyEntitySet] = {}
        self._affected = 0
        event.listen(session.sync_session, "after_flush", self._count_flushed)

    def entities(self, entity_type: Type[EntityT]) -> SQLAlchemyEntitySet[EntityT]:
        entity_set = self._sets.get(entity_type)
        if entity_set is None:
            entity_set = SQLAlchemyEntitySet(self._session, entity_type, self._lock)
            self._sets[entity_type] = entity_set
        return entity_set

    async def commit(self) -> int:
        async with self._lock:
            start = time.perf_counter()
            try:
                await self._session.commit()
            except SQLAlchemyError as exc:
                await self._session.rollback()
                self._affected = 0
                raise StoreError(f"Commit failed: {exc}", original=exc) from exc

            affected, self._affected = self._affected, 0

        logger.debug(
            "Committed pending changes",
            extra={
                "operation": "commit",
                "affected": affected,
                "latency_ms": round((time.perf_counter() - start) * 1000, 3),
            }
        )
        return affected

    async def rollback(self) -> None:
        """Discard the pending change set."""
        async with self._lock:
            try:
                await self._session.rollback()
            except SQLAlchemyError as exc:
                raise StoreError(f"Rollback failed: {exc}", original=exc) from exc
            finally:
                self._affected = 0

    def close(self) -> None:
        """Detach the flush counter from the session."""
        if event.contains(self._session.sync_session, "after_flush", self._count_flushed):
            event.remove(self._session.sync_session, "after_flush", self._count_flushed)

    def _count_flushed(self, session: Session, flush_context) -> None:
        # new/dirty/deleted still hold their pre-flush contents here
        modified = sum(
            1 for obj in session.dirty
            if session.is_modified(obj, include_collections=False)
        )
        self._affected += len(session.new) + modified + len(session.deleted)
