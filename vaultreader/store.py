"""Durable local store with typed table handles.

Each handle call runs in its own session and commits before returning. There is
no transaction spanning tables: the index and cache tables are each rebuildable
from the remote drive, so a partial write across tables is acceptable.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import delete, func, inspect, select

from vaultreader.models import (
    Base,
    CachedAttachment,
    CachedContent,
    IndexedFile,
    PendingOperation,
    VaultBoundary,
)

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=Base)


class Table(Generic[RowT]):
    """Keyed access to a single table."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], model: type[RowT]
    ) -> None:
        self._session_factory = session_factory
        self.model = model

    @property
    def name(self) -> str:
        return str(self.model.__tablename__)

    async def get(self, key: Any) -> RowT | None:
        """Return the row with primary key *key*, or None."""
        async with self._session_factory() as session:
            return await session.get(self.model, key)

    async def put(self, row: RowT) -> RowT:
        """Insert or replace *row* by primary key and return the stored row."""
        async with self._session_factory() as session:
            stored = await session.merge(row)
            await session.commit()
            return stored

    async def delete(self, key: Any) -> bool:
        """Delete the row with primary key *key*. Returns True if a row was removed."""
        async with self._session_factory() as session:
            row = await session.get(self.model, key)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def clear(self) -> int:
        """Delete every row. Returns the number of rows removed."""
        async with self._session_factory() as session:
            result = await session.execute(delete(self.model))
            await session.commit()
        removed: int = result.rowcount or 0  # type: ignore[attr-defined]
        logger.debug("Cleared %d row(s) from %s", removed, self.name)
        return removed

    async def all(self) -> list[RowT]:
        """Return every row in primary-key order."""
        primary_key = inspect(self.model).primary_key
        async with self._session_factory() as session:
            result = await session.execute(select(self.model).order_by(*primary_key))
            return list(result.scalars().all())

    async def find_one(self, *criteria: ColumnElement[bool]) -> RowT | None:
        """Return the first row (in primary-key order) matching *criteria*."""
        primary_key = inspect(self.model).primary_key
        stmt = select(self.model).where(*criteria).order_by(*primary_key).limit(1)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def count(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count()).select_from(self.model))
            return result.scalar() or 0


class LocalStore:
    """Explicitly constructed store owning one handle per table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.files: Table[IndexedFile] = Table(session_factory, IndexedFile)
        self.content: Table[CachedContent] = Table(session_factory, CachedContent)
        self.attachments: Table[CachedAttachment] = Table(session_factory, CachedAttachment)
        self.vault: Table[VaultBoundary] = Table(session_factory, VaultBoundary)
        self.pending_ops: Table[PendingOperation] = Table(session_factory, PendingOperation)

    async def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        async with self.session_factory() as session:
            conn = await session.connection()
            await conn.run_sync(Base.metadata.create_all)
            await session.commit()
