"""Durable queue of pending remote mutations.

Operations are recorded here for a future write-back worker; nothing in this
package drains the queue.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vaultreader.models.pending import PendingOperation
from vaultreader.schemas.pending import (
    DeletePayload,
    UpdatePayload,
    UploadPayload,
    pending_payload_adapter,
)

if TYPE_CHECKING:
    from vaultreader.store import LocalStore


@dataclass
class QueuedOperation:
    """A pending operation with its payload decoded."""

    id: int
    remote_id: str
    payload: UploadPayload | DeletePayload | UpdatePayload
    timestamp: datetime
    retry_count: int

    @property
    def kind(self) -> str:
        return self.payload.kind


def _decode(row: PendingOperation) -> QueuedOperation:
    return QueuedOperation(
        id=row.id,
        remote_id=row.remote_id,
        payload=pending_payload_adapter.validate_json(row.payload),
        timestamp=row.timestamp,
        retry_count=row.retry_count,
    )


class PendingQueue:
    def __init__(self, store: LocalStore) -> None:
        self._store = store

    async def enqueue(
        self,
        remote_id: str,
        payload: UploadPayload | DeletePayload | UpdatePayload,
    ) -> QueuedOperation:
        row = await self._store.pending_ops.put(
            PendingOperation(
                kind=payload.kind,
                remote_id=remote_id,
                payload=payload.model_dump_json(),
                timestamp=datetime.now(UTC),
                retry_count=0,
            )
        )
        return _decode(row)

    async def list_pending(self) -> list[QueuedOperation]:
        """All queued operations, oldest first."""
        rows = await self._store.pending_ops.all()
        return [_decode(row) for row in sorted(rows, key=lambda r: (r.timestamp, r.id))]

    async def record_retry(self, op_id: int) -> int | None:
        """Increment the retry counter. Returns the new count, or None if unknown."""
        row = await self._store.pending_ops.get(op_id)
        if row is None:
            return None
        row.retry_count += 1
        await self._store.pending_ops.put(row)
        return row.retry_count

    async def remove(self, op_id: int) -> bool:
        return await self._store.pending_ops.delete(op_id)
