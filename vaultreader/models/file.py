"""Metadata index model."""

from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from vaultreader.models.base import Base

DOCUMENT_SUFFIX = ".md"


class IndexedFile(Base):
    """Known remote entry, upserted from directory listings (never auto-deleted)."""

    __tablename__ = "files"

    # Row id doubles as the first-indexed order used for name tie-breaks.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    remote_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    is_folder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    freshness_tag: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_modified: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parent_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    aliases: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    __table_args__ = (
        Index("idx_files_path", "path"),
        Index("idx_files_name", "name"),
        Index("idx_files_parent_path", "parent_path"),
    )

    @property
    def alias_list(self) -> list[str]:
        return [str(a) for a in json.loads(self.aliases or "[]")]

    @property
    def is_document(self) -> bool:
        return not self.is_folder and self.name.lower().endswith(DOCUMENT_SUFFIX)
