"""SQLAlchemy ORM models for VaultReader."""

from vaultreader.models.base import Base
from vaultreader.models.cache import CachedAttachment, CachedContent
from vaultreader.models.file import IndexedFile
from vaultreader.models.pending import PendingOperation
from vaultreader.models.vault import VaultBoundary

__all__ = [
    "Base",
    "CachedAttachment",
    "CachedContent",
    "IndexedFile",
    "PendingOperation",
    "VaultBoundary",
]
