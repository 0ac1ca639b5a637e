"""Generic record access over SQLAlchemy tables.

Every call opens its own session and commits on return, so records handed
back are detached snapshots.  Callers mutate a snapshot and hand it to
``update``; nothing wraps a read and the following write in one
transaction.  ``update_where`` is the only batch primitive and is atomic.
"""
from __future__ import annotations

import logging
from typing import Any, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kids_scheduler.errors import NotFoundError
from kids_scheduler.models.base import Base

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Base)


class RecordStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def create(self, record: RecordT) -> RecordT:
        async with self._sessions() as session:
            session.add(record)
            await session.commit()
        return record

    async def get(self, model: type[RecordT], record_id: str) -> RecordT:
        async with self._sessions() as session:
            record = await session.get(model, record_id)
        if record is None:
            raise NotFoundError(model.__tablename__, record_id)
        return record

    async def find(self, model: type[RecordT], record_id: str) -> RecordT | None:
        async with self._sessions() as session:
            return await session.get(model, record_id)

    async def update(self, record: RecordT) -> RecordT:
        """Write every attribute of ``record`` back (last write wins)."""
        async with self._sessions() as session:
            merged = await session.merge(record)
            await session.commit()
        return merged

    async def delete(self, model: type[RecordT], record_id: str) -> None:
        async with self._sessions() as session:
            record = await session.get(model, record_id)
            if record is None:
                raise NotFoundError(model.__tablename__, record_id)
            await session.delete(record)
            await session.commit()

    async def query(self, model: type[RecordT], field: str, value: Any) -> list[RecordT]:
        """All records whose ``field`` equals ``value``, in no particular order."""
        column = getattr(model, field)
        return await self.select_where(model, column == value)

    async def select_where(self, model: type[RecordT], *criteria) -> list[RecordT]:
        async with self._sessions() as session:
            result = await session.execute(select(model).where(*criteria))
            return list(result.scalars().all())

    async def update_where(self, model: type[RecordT], *criteria, values: dict[str, Any]) -> int:
        """Apply ``values`` to all matching records in a single transaction."""
        async with self._sessions() as session:
            async with session.begin():
                result = await session.execute(
                    update(model)
                    .where(*criteria)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                count = result.rowcount
        logger.debug(f"Batch update on {model.__tablename__} touched {count} records")
        return count
