"""Immutable attachment cache and caller-owned display handles."""

from __future__ import annotations

import base64
import logging
import mimetypes
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vaultreader.models.cache import CachedAttachment

if TYPE_CHECKING:
    from vaultreader.remote.base import RemoteDrive
    from vaultreader.store import LocalStore

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class AttachmentHandle:
    """Revocable in-memory view of an attachment, owned by the caller.

    Revoking drops the bytes held by the handle; the cached copy is unaffected.
    """

    def __init__(self, remote_id: str, data: bytes, mime_type: str) -> None:
        self.remote_id = remote_id
        self.mime_type = mime_type
        self._data: bytes | None = data

    @property
    def revoked(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise ValueError(f"Attachment handle for {self.remote_id} was revoked")
        return self._data

    @property
    def url(self) -> str:
        """``data:`` URL embedding the attachment."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def revoke(self) -> None:
        self._data = None

    def __enter__(self) -> AttachmentHandle:
        return self

    def __exit__(self, *args: object) -> None:
        self.revoke()

    def __repr__(self) -> str:
        state = "revoked" if self.revoked else f"{len(self.data)} bytes"
        return f"AttachmentHandle({self.remote_id!r}, {self.mime_type!r}, {state})"


def guess_mime_type(name: str | None, hint: str | None = None) -> str:
    if name:
        guessed, _ = mimetypes.guess_type(name)
        if guessed:
            return guessed
    return hint or DEFAULT_MIME_TYPE


class AttachmentCache:
    """Get-or-fetch access to binary attachments.

    Attachments are never revalidated once cached, and a failed fetch is never
    masked: there is no older copy to fall back to.
    """

    def __init__(self, store: LocalStore, remote: RemoteDrive) -> None:
        self._store = store
        self._remote = remote

    async def _load(self, remote_id: str, mime_type_hint: str | None) -> CachedAttachment:
        cached = await self._store.attachments.get(remote_id)
        if cached is not None:
            return cached

        data = await self._remote.fetch_content(remote_id)
        item = await self._remote.get_item(remote_id)
        row = CachedAttachment(
            remote_id=remote_id,
            data=data,
            mime_type=item.mime_type or guess_mime_type(item.name, mime_type_hint),
            size=item.size if item.size is not None else len(data),
            last_synced_at=datetime.now(UTC),
        )
        await self._store.attachments.put(row)
        logger.debug("Cached attachment %s (%s, %d bytes)", remote_id, row.mime_type, len(data))
        return row

    async def get_or_fetch(self, remote_id: str, mime_type_hint: str | None = None) -> bytes:
        return (await self._load(remote_id, mime_type_hint)).data

    async def get_cached(self, remote_id: str) -> bytes | None:
        cached = await self._store.attachments.get(remote_id)
        return cached.data if cached is not None else None

    async def open(self, remote_id: str, mime_type_hint: str | None = None) -> AttachmentHandle:
        """Return a display handle for the attachment, fetching it if needed."""
        row = await self._load(remote_id, mime_type_hint)
        return AttachmentHandle(remote_id, row.data, row.mime_type)
