"""Slug generation for note file names."""

from __future__ import annotations

from vaultreader.models.file import DOCUMENT_SUFFIX


def strip_document_suffix(filename: str) -> str:
    """Drop a trailing ``.md`` (any case) from *filename*."""
    if filename.lower().endswith(DOCUMENT_SUFFIX):
        return filename[: -len(DOCUMENT_SUFFIX)]
    return filename


def create_slug(filename: str) -> str:
    """Derive the canonical note slug from a file name.

    ``"My Note.md"`` becomes ``"my-note"``: the document suffix is stripped,
    spaces become hyphens and the result is lowercased. Nothing else is
    rewritten, so the mapping stays reversible against the index by
    recomputation.
    """
    return strip_document_suffix(filename).replace(" ", "-").lower()
