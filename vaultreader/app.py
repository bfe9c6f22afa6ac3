"""Application root: builds the store, remote client and services from settings."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from vaultreader.database import create_engine
from vaultreader.remote.graph import GraphDrive, StaticTokenProvider
from vaultreader.services.attachment_service import AttachmentCache
from vaultreader.services.content_service import ContentCache
from vaultreader.services.index_service import MetadataIndex
from vaultreader.services.link_resolver import LinkResolver
from vaultreader.services.note_service import NoteService
from vaultreader.services.path_resolver import PathResolver
from vaultreader.services.pending_service import PendingQueue
from vaultreader.services.vault_service import VaultService
from vaultreader.store import LocalStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from vaultreader.config import Settings
    from vaultreader.remote.base import RemoteDrive


def configure_logging(debug: bool) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stderr,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)


class VaultReader:
    """Owns every component; constructed once and passed to callers explicitly."""

    def __init__(
        self,
        engine: AsyncEngine,
        store: LocalStore,
        remote: RemoteDrive,
        *,
        retain_attachments: bool = False,
    ) -> None:
        self.engine = engine
        self.store = store
        self.remote = remote
        self.index = MetadataIndex(store, remote)
        self.content = ContentCache(store, remote)
        self.attachments = AttachmentCache(store, remote)
        self.links = LinkResolver(self.index)
        self.paths = PathResolver(self.index, self.attachments, remote)
        self.vault = VaultService(store, retain_attachments=retain_attachments)
        self.pending = PendingQueue(store)
        self.notes = NoteService(remote, self.index, self.content, self.links, self.paths)


@asynccontextmanager
async def open_reader(
    settings: Settings, remote: RemoteDrive | None = None
) -> AsyncGenerator[VaultReader]:
    """Create a ready-to-use reader and dispose of its resources afterwards.

    A Graph drive client is built from *settings* unless *remote* is given.
    """
    engine, session_factory = create_engine(settings)
    store = LocalStore(session_factory)
    owned_remote: GraphDrive | None = None
    try:
        await store.create_tables()
        if remote is None:
            owned_remote = GraphDrive(
                settings.graph_base_url,
                StaticTokenProvider(settings.access_token),
                page_size=settings.page_size,
                timeout=settings.request_timeout,
            )
            remote = owned_remote
        yield VaultReader(
            engine,
            store,
            remote,
            retain_attachments=settings.retain_attachments_across_vaults,
        )
    finally:
        if owned_remote is not None:
            await owned_remote.close()
        await engine.dispose()
