"""Embedded-resource path resolution.

References inside a note (``![](./img/a.png)``, ``![[diagram.png]]``) are
resolved against the note's folder and the vault root, then served through the
attachment cache.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING
from urllib.parse import unquote

import httpx

from vaultreader.exceptions import RemoteError
from vaultreader.services.index_service import join_path, to_vault_relative

if TYPE_CHECKING:
    from vaultreader.remote.base import RemoteDrive
    from vaultreader.services.attachment_service import AttachmentCache, AttachmentHandle
    from vaultreader.services.index_service import MetadataIndex

logger = logging.getLogger(__name__)


def _apply_segments(base: list[str], relative: str) -> list[str]:
    parts = [part for part in base if part]
    for part in relative.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            # Popping past the vault root is a no-op.
            if parts:
                parts.pop()
        else:
            parts.append(part)
    return parts


def resolve_path(raw_path: str, current_document_path: str, vault_root: str) -> str:
    """Resolve an embedded reference to a drive-root-relative path.

    - ``/assets/a.png`` is relative to the vault root.
    - ``./img/a.png``, ``../img/a.png`` and bare ``img/a.png`` are relative to
      the folder of *current_document_path* (itself vault-relative).

    Repeated separators collapse and the result carries no leading ``/``.
    """
    reference = unquote(raw_path.strip())
    if reference.startswith("/"):
        segments = _apply_segments([], reference)
    else:
        current_dir = posixpath.dirname(current_document_path.strip("/"))
        segments = _apply_segments(current_dir.split("/"), reference)
    return join_path(vault_root, *segments)


class PathResolver:
    """Turns embedded references into attachment handles.

    Failures while looking up or fetching are logged and reported as None, so
    one broken embed never fails the note that contains it.
    """

    def __init__(
        self,
        index: MetadataIndex,
        attachments: AttachmentCache,
        remote: RemoteDrive,
    ) -> None:
        self._index = index
        self._attachments = attachments
        self._remote = remote

    async def resolve_remote_id(self, full_path: str) -> str | None:
        """Map a drive-root-relative path to a remote file id, or None.

        The local index is consulted first; the remote drive is asked only on a
        miss. Remote errors propagate.
        """
        root = await self._index.vault_root()
        rel_path = to_vault_relative(full_path, root)
        if rel_path is not None:
            entry = await self._index.get_by_path(rel_path)
            if entry is not None:
                return None if entry.is_folder else entry.remote_id

        item = await self._remote.get_item_by_path(full_path)
        return None if item.is_folder else item.id

    async def resolve_embed(
        self,
        raw_path: str,
        current_document_path: str,
        mime_type_hint: str | None = None,
    ) -> AttachmentHandle | None:
        """Return a caller-owned handle for the referenced attachment, or None."""
        try:
            root = await self._index.vault_root()
            full_path = resolve_path(raw_path, current_document_path, root)
            remote_id = await self.resolve_remote_id(full_path)
            if remote_id is None:
                return None
            return await self._attachments.open(remote_id, mime_type_hint)
        except (RemoteError, httpx.HTTPError) as exc:
            logger.warning(
                "Unresolved embed %r in %r: %s", raw_path, current_document_path, exc
            )
            return None

    async def resolve_wiki_embed(
        self, target: str, current_document_path: str
    ) -> AttachmentHandle | None:
        """Resolve an ``![[target]]`` embed.

        The target is tried as a path relative to the note first, then as a
        bare file name anywhere in the vault.
        """
        handle = await self.resolve_embed(target, current_document_path)
        if handle is not None:
            return handle
        try:
            entry = await self._index.find_file_by_name(posixpath.basename(target.strip()))
            if entry is None:
                return None
            return await self._attachments.open(entry.remote_id)
        except (RemoteError, httpx.HTTPError) as exc:
            logger.warning("Unresolved embed %r in %r: %s", target, current_document_path, exc)
            return None
