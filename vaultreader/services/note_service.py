"""Reader entry point: open notes and prepare their references for rendering."""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from vaultreader.exceptions import AuthRequiredError, NotFoundError, TransientError
from vaultreader.filesystem.frontmatter import parse_aliases
from vaultreader.models.file import DOCUMENT_SUFFIX
from vaultreader.services.slug_service import strip_document_suffix

if TYPE_CHECKING:
    from vaultreader.remote.base import RemoteDrive
    from vaultreader.services.attachment_service import AttachmentHandle
    from vaultreader.services.content_service import CacheStatus, ContentCache
    from vaultreader.services.index_service import MetadataIndex
    from vaultreader.services.link_resolver import LinkResolver
    from vaultreader.services.path_resolver import PathResolver

logger = logging.getLogger(__name__)

NOTE_HREF_TEMPLATE = "#/note/{slug}"
UNRESOLVED_LINK_TEMPLATE = '<span class="unresolved-link" title="{target}">{label}</span>'
UNRESOLVED_EMBED_TEMPLATE = '<span class="unresolved-embed" title="{target}">{label}</span>'

_SKIP_PREFIXES = ("#", "data:", "http:", "https:", "mailto:", "tel:")

_FENCE_RE = re.compile(r"^(```|~~~)[^\n]*\n.*?^\1[ \t]*$", re.MULTILINE | re.DOTALL)
_REFERENCE_RE = re.compile(
    r"(?P<embed>!\[\[(?P<embed_target>[^\]|]+)(?:\|(?P<embed_label>[^\]]*))?\]\])"
    r"|(?P<wiki>\[\[(?P<wiki_target>[^\]|]+)(?:\|(?P<wiki_label>[^\]]*))?\]\])"
    r"|(?P<image>!\[(?P<image_alt>[^\]]*)\]"
    r"\((?P<image_target><[^>]*>|[^)\s]+)(?P<image_title>\s+\"[^\"]*\")?\))"
)


@dataclass
class Note:
    remote_id: str
    name: str | None
    path: str | None
    content: str


@dataclass
class PreparedNote:
    """Note text with references rewritten.

    The handles belong to the caller; ``release()`` revokes them all.
    """

    text: str
    handles: list[AttachmentHandle] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)

    def release(self) -> None:
        for handle in self.handles:
            handle.revoke()


def _is_document_reference(target: str) -> bool:
    name = target.rsplit("/", maxsplit=1)[-1]
    return name.lower().endswith(DOCUMENT_SUFFIX) or "." not in name


def _link_placeholder(target: str, label: str) -> str:
    return UNRESOLVED_LINK_TEMPLATE.format(
        target=html.escape(target, quote=True), label=html.escape(label)
    )


def _embed_placeholder(target: str, label: str) -> str:
    return UNRESOLVED_EMBED_TEMPLATE.format(
        target=html.escape(target, quote=True), label=html.escape(label)
    )


class NoteService:
    """Ties the index, caches and resolvers together for a reader."""

    def __init__(
        self,
        remote: RemoteDrive,
        index: MetadataIndex,
        content: ContentCache,
        links: LinkResolver,
        paths: PathResolver,
    ) -> None:
        self._remote = remote
        self._index = index
        self._content = content
        self._links = links
        self._paths = paths

    async def open_note(self, remote_id: str) -> Note:
        """Return the note text, revalidated against the remote's current tag.

        When the remote cannot be asked for the tag, the index's last known tag
        is used instead, so a cached copy with a different tag is still
        revalidated (and served stale if that fetch fails too).
        """
        entry = await self._index.get_by_remote_id(remote_id)
        try:
            item = await self._remote.get_item(remote_id)
            freshness_tag = item.freshness_tag
        except (TransientError, AuthRequiredError) as exc:
            logger.info("Could not revalidate %s, using indexed tag: %s", remote_id, exc)
            freshness_tag = entry.freshness_tag if entry is not None else None

        content = await self._content.get_or_fetch(remote_id, freshness_tag)

        if entry is not None:
            await self._index.set_freshness_tag(remote_id, freshness_tag)
            await self._index.set_aliases(remote_id, parse_aliases(content))
        return Note(
            remote_id=remote_id,
            name=entry.name if entry is not None else None,
            path=entry.path if entry is not None else None,
            content=content,
        )

    async def open_by_slug(self, slug: str) -> Note:
        remote_id = await self._links.slug_to_id(slug.partition("#")[0])
        if remote_id is None:
            raise NotFoundError(f"No indexed note with slug {slug!r}")
        return await self.open_note(remote_id)

    async def cache_status(self, remote_id: str) -> CacheStatus:
        """Cache state of a note, judged against the tag from the last listing."""
        entry = await self._index.get_by_remote_id(remote_id)
        return await self._content.status(
            remote_id, entry.freshness_tag if entry is not None else None
        )

    async def prepare(self, content: str, note_path: str) -> PreparedNote:
        """Rewrite wiki links and embeds in *content* for rendering.

        Unresolved references become inline placeholders; the rest of the
        note is always returned.
        """
        prepared = PreparedNote(text="")
        handles: dict[str, AttachmentHandle | None] = {}
        pieces: list[str] = []
        position = 0
        for fence in _FENCE_RE.finditer(content):
            pieces.append(
                await self._rewrite(content[position : fence.start()], note_path, prepared, handles)
            )
            pieces.append(fence.group(0))
            position = fence.end()
        pieces.append(await self._rewrite(content[position:], note_path, prepared, handles))
        prepared.text = "".join(pieces)
        return prepared

    async def _rewrite(
        self,
        text: str,
        note_path: str,
        prepared: PreparedNote,
        handles: dict[str, AttachmentHandle | None],
    ) -> str:
        pieces: list[str] = []
        position = 0
        for match in _REFERENCE_RE.finditer(text):
            pieces.append(text[position : match.start()])
            position = match.end()
            if match.group("wiki"):
                link = await self._link(
                    match.group("wiki_target"), match.group("wiki_label"), prepared
                )
                pieces.append(link)
            elif match.group("embed"):
                pieces.append(
                    await self._wiki_embed(
                        match.group("embed_target"),
                        match.group("embed_label"),
                        note_path,
                        prepared,
                        handles,
                    )
                )
            else:
                pieces.append(await self._image(match, note_path, prepared, handles))
        pieces.append(text[position:])
        return "".join(pieces)

    async def _link(self, target: str, label: str | None, prepared: PreparedNote) -> str:
        target = target.strip()
        display = (label or target).strip()
        if target.startswith("#"):
            return f"[{display}]({target.lower().replace(' ', '-')})"
        name, sep, anchor = target.partition("#")
        name = strip_document_suffix(name.strip().rsplit("/", maxsplit=1)[-1])
        slug = await self._links.resolve(f"{name}{sep}{anchor}")
        if slug is None:
            prepared.unresolved.append(target)
            return _link_placeholder(target, display)
        return f"[{display}]({NOTE_HREF_TEMPLATE.format(slug=slug)})"

    async def _wiki_embed(
        self,
        target: str,
        label: str | None,
        note_path: str,
        prepared: PreparedNote,
        handles: dict[str, AttachmentHandle | None],
    ) -> str:
        target = target.strip()
        if _is_document_reference(target.partition("#")[0]):
            # Note transclusion is rendered as a plain link.
            return await self._link(target, label, prepared)

        handle = await self._handle(target.partition("#")[0], note_path, handles, wiki=True)
        # Obsidian uses the label slot for sizes ("300" or "300x200").
        alt = "" if label is None or re.fullmatch(r"\d+(x\d+)?", label.strip()) else label
        if handle is None:
            prepared.unresolved.append(target)
            return _embed_placeholder(target, alt or target)
        if handle not in prepared.handles:
            prepared.handles.append(handle)
        return f"![{alt}]({handle.url})"

    async def _image(
        self,
        match: re.Match[str],
        note_path: str,
        prepared: PreparedNote,
        handles: dict[str, AttachmentHandle | None],
    ) -> str:
        target = match.group("image_target").removeprefix("<").removesuffix(">")
        if target.startswith(_SKIP_PREFIXES):
            return match.group(0)

        alt = match.group("image_alt")
        handle = await self._handle(target, note_path, handles, wiki=False)
        if handle is None:
            prepared.unresolved.append(target)
            return _embed_placeholder(target, alt or target)
        if handle not in prepared.handles:
            prepared.handles.append(handle)
        title = match.group("image_title") or ""
        return f"![{alt}]({handle.url}{title})"

    async def _handle(
        self,
        target: str,
        note_path: str,
        handles: dict[str, AttachmentHandle | None],
        *,
        wiki: bool,
    ) -> AttachmentHandle | None:
        key = f"{'wiki' if wiki else 'path'}:{target}"
        if key not in handles:
            if wiki:
                handles[key] = await self._paths.resolve_wiki_embed(target, note_path)
            else:
                handles[key] = await self._paths.resolve_embed(target, note_path)
        return handles[key]
