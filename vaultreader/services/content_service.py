"""Note content cache with freshness-tag validation."""

from __future__ import annotations

import enum
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from vaultreader.exceptions import AuthRequiredError, TransientError
from vaultreader.models.cache import CachedContent

if TYPE_CHECKING:
    from vaultreader.remote.base import RemoteDrive
    from vaultreader.store import LocalStore

logger = logging.getLogger(__name__)


class CacheStatus(enum.StrEnum):
    CACHED = "cached"
    STALE = "stale"
    NOT_CACHED = "not-cached"


class ContentCache:
    """Get-or-fetch access to note text.

    Freshness tags are compared for equality only. An unknown tag never evicts
    a cached entry; only an explicit mismatch triggers a fetch.
    """

    def __init__(self, store: LocalStore, remote: RemoteDrive) -> None:
        self._store = store
        self._remote = remote

    async def get_or_fetch(self, remote_id: str, known_freshness_tag: str | None = None) -> str:
        """Return note text, fetching only when nothing is cached or the tag differs.

        When the fetch fails with a transient or auth error and an older copy is
        cached, that copy is returned. Without a cached copy the error propagates.
        """
        cached = await self._store.content.get(remote_id)
        if cached is not None and (
            known_freshness_tag is None or cached.freshness_tag == known_freshness_tag
        ):
            return cached.content

        try:
            raw = await self._remote.fetch_content(remote_id)
        except (TransientError, AuthRequiredError) as exc:
            if cached is None:
                raise
            logger.warning("Serving cached copy of %s after failed fetch: %s", remote_id, exc)
            return cached.content

        content = raw.decode("utf-8", errors="replace")
        await self._store.content.put(
            CachedContent(
                remote_id=remote_id,
                content=content,
                freshness_tag=(
                    known_freshness_tag
                    if known_freshness_tag is not None
                    else (cached.freshness_tag if cached is not None else None)
                ),
                last_synced_at=datetime.now(UTC),
            )
        )
        return content

    async def get_cached(self, remote_id: str) -> str | None:
        """Return cached text without touching the network."""
        cached = await self._store.content.get(remote_id)
        return cached.content if cached is not None else None

    async def status(self, remote_id: str, known_freshness_tag: str | None = None) -> CacheStatus:
        """Report whether opening *remote_id* would be served from cache.

        ``CACHED`` requires a known current tag equal to the cached one.
        """
        cached = await self._store.content.get(remote_id)
        if cached is None:
            return CacheStatus.NOT_CACHED
        if known_freshness_tag is not None and cached.freshness_tag == known_freshness_tag:
            return CacheStatus.CACHED
        return CacheStatus.STALE
