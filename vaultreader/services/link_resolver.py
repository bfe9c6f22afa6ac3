"""Wiki-link resolution over the metadata index."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vaultreader.services.slug_service import create_slug, strip_document_suffix

if TYPE_CHECKING:
    from vaultreader.models.file import IndexedFile
    from vaultreader.services.index_service import MetadataIndex


def split_anchor(link_name: str) -> tuple[str, str | None]:
    """Split ``"Note#Heading"`` into ``("Note", "Heading")``."""
    target, sep, anchor = link_name.partition("#")
    return target, (anchor if sep and anchor else None)


def match_document(documents: list[IndexedFile], target: str) -> IndexedFile | None:
    """Pick the document a normalized *target* refers to.

    An exact name match (suffix stripped, case-insensitive) beats an alias
    match. Within each kind the first entry in *documents* wins, so callers
    pass documents in first-indexed order.
    """
    for entry in documents:
        if strip_document_suffix(entry.name).lower() == target:
            return entry
    for entry in documents:
        if any(alias.lower() == target for alias in entry.alias_list):
            return entry
    return None


class LinkResolver:
    """Maps wiki-link names and aliases to note slugs and back.

    Nothing is pre-indexed: each call scans the current index, so results
    always reflect the latest listing.
    """

    def __init__(self, index: MetadataIndex) -> None:
        self._index = index

    async def resolve(self, link_name: str) -> str | None:
        """Return the slug (with ``#anchor`` re-appended) for *link_name*, or None."""
        _, anchor = split_anchor(link_name)
        match = await self.resolve_entry(link_name)
        if match is None:
            return None

        slug = create_slug(match.name)
        return f"{slug}#{anchor}" if anchor else slug

    async def resolve_entry(self, link_name: str) -> IndexedFile | None:
        """Return the index entry *link_name* refers to, or None."""
        target, _ = split_anchor(link_name)
        normalized = target.strip().lower()
        if not normalized:
            return None
        return match_document(await self._index.documents(), normalized)

    async def slug_to_id(self, slug: str) -> str | None:
        """Return the remote id of the first document whose slug equals *slug*."""
        wanted = slug.lower()
        for entry in await self._index.documents():
            if create_slug(entry.name) == wanted:
                return entry.remote_id
        return None
