"""Pending operation queue model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vaultreader.models.base import Base


class PendingOperation(Base):
    """Queued remote mutation. Stored here, never reconciled here."""

    __tablename__ = "pending_ops"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    remote_id: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("kind IN ('upload', 'delete', 'update')"),
        CheckConstraint("retry_count >= 0"),
        Index("idx_pending_ops_timestamp", "timestamp"),
    )
