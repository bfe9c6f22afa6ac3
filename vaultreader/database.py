"""SQLite engine and session factory for the local store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from vaultreader.config import Settings

logger = logging.getLogger(__name__)

# Seconds a writer waits on a locked database before failing.
SQLITE_BUSY_TIMEOUT = 15.0


def _file_database(database_url: str) -> Path | None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def ensure_database_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    db_file = _file_database(database_url)
    if db_file is None:
        return
    db_dir = db_file.parent
    if not db_dir.exists():
        logger.info("Creating database directory at %s", db_dir)
        db_dir.mkdir(parents=True)


def create_engine(
    settings: Settings,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create the store's engine and session factory.

    For SQLite the database directory is created on demand and writers wait on
    a locked file instead of failing at once, so a CLI call and a running
    reader can share the cache.
    """
    connect_args: dict[str, Any] = {}
    if make_url(settings.database_url).get_backend_name() == "sqlite":
        ensure_database_dir(settings.database_url)
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
        connect_args=connect_args,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory
