"""Vault boundary: the single active root selection."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vaultreader.models.vault import VAULT_BOUNDARY_ID, VaultBoundary

if TYPE_CHECKING:
    from vaultreader.store import LocalStore

logger = logging.getLogger(__name__)


class VaultService:
    """Owns the active vault selection and the caches scoped to it."""

    def __init__(self, store: LocalStore, *, retain_attachments: bool = False) -> None:
        self._store = store
        self._retain_attachments = retain_attachments

    async def current(self) -> VaultBoundary | None:
        return await self._store.vault.get(VAULT_BOUNDARY_ID)

    async def select(self, root_path: str, root_name: str, root_id: str) -> VaultBoundary:
        """Make *root_path* the active vault.

        Selecting a root when none is active, or switching to a different one,
        wipes the vault-scoped caches first: anything indexed before holds paths
        relative to another root. Re-selecting the active root only refreshes
        ``selected_at``.
        """
        root_path = root_path.strip("/")
        existing = await self.current()
        if existing is None:
            await self._invalidate()
        elif existing.root_id != root_id:
            logger.info("Switching vault from %r to %r", existing.root_path, root_path)
            await self._invalidate()

        boundary = await self._store.vault.put(
            VaultBoundary(
                id=VAULT_BOUNDARY_ID,
                root_path=root_path,
                root_name=root_name,
                root_id=root_id,
                selected_at=datetime.now(UTC),
            )
        )
        logger.info("Selected vault %r at %r", root_name, root_path or "/")
        return boundary

    async def clear(self) -> None:
        """Forget the active vault and everything cached for it."""
        await self._store.vault.delete(VAULT_BOUNDARY_ID)
        await self._invalidate()
        logger.info("Vault selection cleared")

    async def _invalidate(self) -> None:
        files = await self._store.files.clear()
        notes = await self._store.content.clear()
        attachments = 0
        if not self._retain_attachments:
            attachments = await self._store.attachments.clear()
        logger.info(
            "Invalidated vault caches: %d indexed file(s), %d note(s), %d attachment(s)",
            files,
            notes,
            attachments,
        )
