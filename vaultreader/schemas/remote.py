"""Remote drive item schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, Field


def normalize_parent_reference(raw_path: str | None) -> str | None:
    """Turn a drive parent reference (``/drive/root:/Vault/Notes``) into ``Vault/Notes``."""
    if raw_path is None:
        return None
    _, sep, tail = raw_path.partition(":")
    path = tail if sep else raw_path
    return unquote(path).strip("/")


class RemoteItem(BaseModel):
    """One entry returned by the remote drive."""

    id: str = Field(min_length=1)
    name: str
    size: int | None = Field(default=None, ge=0)
    freshness_tag: str | None = None
    is_folder: bool = False
    last_modified: datetime | None = None
    parent_path: str | None = None
    mime_type: str | None = None

    @property
    def full_path(self) -> str | None:
        """Drive-root-relative path, when the parent path is known."""
        if self.parent_path is None:
            return None
        return f"{self.parent_path}/{self.name}".strip("/")

    @classmethod
    def from_graph(cls, data: dict[str, Any]) -> RemoteItem:
        """Build an item from a Graph-style ``driveItem`` JSON object."""
        file_facet = data.get("file") or {}
        parent = data.get("parentReference") or {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            size=data.get("size"),
            freshness_tag=data.get("eTag"),
            is_folder="folder" in data,
            last_modified=data.get("lastModifiedDateTime"),
            parent_path=normalize_parent_reference(parent.get("path")),
            mime_type=file_facet.get("mimeType"),
        )


class RemotePage(BaseModel):
    """One page of a folder listing."""

    items: list[RemoteItem] = Field(default_factory=list)
    continuation: str | None = None
