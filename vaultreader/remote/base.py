"""Protocols for the remote drive and identity collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from vaultreader.schemas.remote import RemoteItem, RemotePage


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies a bearer token for each outgoing call.

    Raises ``AuthRequiredError`` when no valid credential is available.
    """

    async def get_token(self) -> str: ...


@runtime_checkable
class RemoteDrive(Protocol):
    """Listing and fetch operations the caches depend on."""

    async def list_children(
        self, path: str = "", continuation: str | None = None
    ) -> RemotePage:
        """List one page of a folder, or continue a previous listing."""
        ...

    async def fetch_content(self, remote_id: str) -> bytes:
        """Download the raw bytes of a file."""
        ...

    async def get_item(self, remote_id: str) -> RemoteItem:
        """Fetch item metadata by id."""
        ...

    async def get_item_by_path(self, path: str) -> RemoteItem:
        """Fetch item metadata by drive-root-relative path."""
        ...
