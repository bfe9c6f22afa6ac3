"""Vault boundary model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from vaultreader.models.base import Base

VAULT_BOUNDARY_ID = 1


class VaultBoundary(Base):
    """The single active vault root selection."""

    __tablename__ = "vault_boundary"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=VAULT_BOUNDARY_ID)
    root_path: Mapped[str] = mapped_column(Text, nullable=False)
    root_name: Mapped[str] = mapped_column(Text, nullable=False)
    root_id: Mapped[str] = mapped_column(Text, nullable=False)
    selected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (CheckConstraint(f"id = {VAULT_BOUNDARY_ID}"),)
