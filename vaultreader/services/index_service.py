"""Metadata index: path <-> remote id <-> freshness tag, built from listings."""

from __future__ import annotations

import json
import logging
import posixpath
from collections import deque
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from vaultreader.models.file import IndexedFile
from vaultreader.models.vault import VAULT_BOUNDARY_ID

if TYPE_CHECKING:
    from vaultreader.remote.base import RemoteDrive
    from vaultreader.schemas.remote import RemoteItem
    from vaultreader.store import LocalStore

logger = logging.getLogger(__name__)


def join_path(*parts: str) -> str:
    """Join path segments with ``/``, ignoring empty segments and stray slashes."""
    return "/".join(part.strip("/") for part in parts if part.strip("/"))


def to_vault_relative(full_path: str, vault_root: str) -> str | None:
    """Make a drive-root-relative path relative to *vault_root*.

    Returns None when the path lies outside the vault.
    """
    root = vault_root.strip("/")
    path = full_path.strip("/")
    if not root:
        return path
    if path == root:
        return ""
    if path.startswith(root + "/"):
        return path[len(root) + 1 :]
    return None


class MetadataIndex:
    """Index of known remote entries, keyed by vault-relative path and remote id."""

    def __init__(self, store: LocalStore, remote: RemoteDrive) -> None:
        self._store = store
        self._remote = remote

    async def vault_root(self) -> str:
        """Path of the active vault root, or the drive root when none is selected."""
        boundary = await self._store.vault.get(VAULT_BOUNDARY_ID)
        return boundary.root_path.strip("/") if boundary is not None else ""

    async def index_listing(self, items: list[RemoteItem], folder_path: str = "") -> int:
        """Upsert one row per listed item. Returns the number of rows written."""
        root = await self.vault_root()
        written = 0
        for item in items:
            full_path = item.full_path
            rel_path = to_vault_relative(full_path, root) if full_path is not None else None
            if rel_path is None:
                rel_path = join_path(folder_path, item.name)
            await self._upsert(item, rel_path)
            written += 1
        return written

    async def _upsert(self, item: RemoteItem, path: str) -> IndexedFile:
        existing = await self.get_by_remote_id(item.id)
        try:
            return await self._store.files.put(self._row_for(item, path, existing))
        except IntegrityError:
            # A concurrent listing inserted the same remote id first.
            existing = await self.get_by_remote_id(item.id)
            return await self._store.files.put(self._row_for(item, path, existing))

    @staticmethod
    def _row_for(item: RemoteItem, path: str, existing: IndexedFile | None) -> IndexedFile:
        parent = posixpath.dirname(path)
        return IndexedFile(
            id=existing.id if existing is not None else None,
            remote_id=item.id,
            path=path,
            name=item.name,
            is_folder=item.is_folder,
            freshness_tag=item.freshness_tag,
            last_modified=item.last_modified,
            size=item.size,
            parent_path=parent,
            aliases=existing.aliases if existing is not None else "[]",
        )

    async def sync_folder(self, folder_path: str = "") -> list[RemoteItem]:
        """List a vault folder, following continuation tokens, and index every page."""
        root = await self.vault_root()
        remote_path = join_path(root, folder_path)
        items: list[RemoteItem] = []
        page = await self._remote.list_children(remote_path)
        while True:
            await self.index_listing(page.items, folder_path)
            items.extend(page.items)
            if not page.continuation:
                break
            page = await self._remote.list_children(continuation=page.continuation)
        logger.debug("Indexed %d item(s) under %r", len(items), remote_path or "/")
        return items

    async def sync_tree(self, folder_path: str = "") -> int:
        """Index *folder_path* and every folder beneath it. Returns the item count."""
        pending: deque[str] = deque([folder_path.strip("/")])
        total = 0
        while pending:
            current = pending.popleft()
            items = await self.sync_folder(current)
            total += len(items)
            pending.extend(join_path(current, item.name) for item in items if item.is_folder)
        logger.info("Vault index refreshed: %d item(s)", total)
        return total

    async def get_by_path(self, path: str) -> IndexedFile | None:
        return await self._store.files.find_one(IndexedFile.path == path.strip("/"))

    async def get_by_remote_id(self, remote_id: str) -> IndexedFile | None:
        return await self._store.files.find_one(IndexedFile.remote_id == remote_id)

    async def documents(self) -> list[IndexedFile]:
        """Document-type entries in first-indexed order."""
        return [entry for entry in await self._store.files.all() if entry.is_document]

    async def set_aliases(self, remote_id: str, aliases: list[str]) -> bool:
        """Record the aliases declared by a note. Returns False for unknown ids."""
        entry = await self.get_by_remote_id(remote_id)
        if entry is None:
            return False
        encoded = json.dumps(aliases)
        if entry.aliases != encoded:
            entry.aliases = encoded
            await self._store.files.put(entry)
        return True

    async def set_freshness_tag(self, remote_id: str, freshness_tag: str | None) -> bool:
        """Record the latest known freshness tag. A None tag never overwrites a known one."""
        entry = await self.get_by_remote_id(remote_id)
        if entry is None or freshness_tag is None:
            return False
        if entry.freshness_tag != freshness_tag:
            entry.freshness_tag = freshness_tag
            await self._store.files.put(entry)
        return True

    async def find_file_by_name(self, name: str) -> IndexedFile | None:
        """First-indexed non-folder entry named *name* (case-insensitive)."""
        wanted = name.strip().lower()
        for entry in await self._store.files.all():
            if not entry.is_folder and entry.name.lower() == wanted:
                return entry
        return None
