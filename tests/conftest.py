"""Shared test fixtures for VaultReader."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from vaultreader.app import VaultReader, open_reader
from vaultreader.config import Settings
from vaultreader.exceptions import NotFoundError
from vaultreader.schemas.remote import RemoteItem, RemotePage
from vaultreader.store import LocalStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path


class FakeDrive:
    """In-memory remote drive recording every call.

    Set ``errors[method_name]`` to make that method raise.
    """

    def __init__(self, page_size: int = 2) -> None:
        self.page_size = page_size
        self.items: dict[str, RemoteItem] = {}
        self.blobs: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.errors: dict[str, Exception] = {}

    def _record(self, method: str, arg: str) -> None:
        self.calls.append((method, arg))
        if method in self.errors:
            raise self.errors[method]

    def calls_to(self, method: str) -> list[str]:
        return [arg for name, arg in self.calls if name == method]

    def _find_path(self, path: str) -> RemoteItem | None:
        for item in self.items.values():
            if item.full_path == path:
                return item
        return None

    def add_folder(self, path: str) -> RemoteItem:
        path = path.strip("/")
        existing = self._find_path(path)
        if existing is not None:
            return existing
        parent, _, name = path.rpartition("/")
        if parent:
            self.add_folder(parent)
        item = RemoteItem(
            id=f"folder-{len(self.items) + 1}",
            name=name,
            is_folder=True,
            parent_path=parent,
        )
        self.items[item.id] = item
        return item

    def add_file(
        self,
        path: str,
        data: bytes | str,
        *,
        freshness_tag: str | None = "v1",
        mime_type: str | None = None,
        remote_id: str | None = None,
    ) -> RemoteItem:
        path = path.strip("/")
        parent, _, name = path.rpartition("/")
        if parent:
            self.add_folder(parent)
        raw = data.encode("utf-8") if isinstance(data, str) else data
        item = RemoteItem(
            id=remote_id or f"file-{len(self.items) + 1}",
            name=name,
            size=len(raw),
            freshness_tag=freshness_tag,
            parent_path=parent,
            mime_type=mime_type,
        )
        self.items[item.id] = item
        self.blobs[item.id] = raw
        return item

    def update_file(self, remote_id: str, data: bytes | str, freshness_tag: str) -> None:
        raw = data.encode("utf-8") if isinstance(data, str) else data
        self.blobs[remote_id] = raw
        self.items[remote_id] = self.items[remote_id].model_copy(
            update={"freshness_tag": freshness_tag, "size": len(raw)}
        )

    async def list_children(self, path: str = "", continuation: str | None = None) -> RemotePage:
        self._record("list_children", continuation or path)
        if continuation:
            folder, _, raw_offset = continuation.rpartition("@")
            offset = int(raw_offset)
        else:
            folder, offset = path.strip("/"), 0
        children = [item for item in self.items.values() if item.parent_path == folder]
        end = offset + self.page_size
        return RemotePage(
            items=children[offset:end],
            continuation=f"{folder}@{end}" if end < len(children) else None,
        )

    async def fetch_content(self, remote_id: str) -> bytes:
        self._record("fetch_content", remote_id)
        if remote_id not in self.blobs:
            raise NotFoundError(f"{remote_id} not found", status_code=404)
        return self.blobs[remote_id]

    async def get_item(self, remote_id: str) -> RemoteItem:
        self._record("get_item", remote_id)
        if remote_id not in self.items:
            raise NotFoundError(f"{remote_id} not found", status_code=404)
        return self.items[remote_id]

    async def get_item_by_path(self, path: str) -> RemoteItem:
        self._record("get_item_by_path", path)
        item = self._find_path(path.strip("/"))
        if item is None:
            raise NotFoundError(f"{path} not found", status_code=404)
        return item


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with a temporary database."""
    db_path = tmp_path / "test.db"
    return Settings(
        debug=False,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        access_token="test-token",
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def store(db_engine: AsyncEngine) -> LocalStore:
    """Create a local store with all tables."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    local_store = LocalStore(session_factory)
    await local_store.create_tables()
    return local_store


@pytest.fixture
def drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
async def reader(test_settings: Settings, drive: FakeDrive) -> AsyncGenerator[VaultReader]:
    """A fully wired reader backed by the fake drive."""
    async with open_reader(test_settings, drive) as vault_reader:
        yield vault_reader


@pytest.fixture
async def vault_reader(reader: VaultReader, drive: FakeDrive) -> VaultReader:
    """A reader with vault ``Vault`` selected and a small indexed tree."""
    root = drive.add_folder("Vault")
    drive.add_file("Vault/My Note.md", "# My Note\n\nSee [[Other]].\n", freshness_tag="a1")
    drive.add_file(
        "Vault/Folder/Other.md",
        "---\naliases:\n  - Alias One\n---\n# Other\n",
        freshness_tag="b1",
    )
    drive.add_file("Vault/Folder/img/a.png", b"\x89PNG-a", mime_type="image/png")
    drive.add_file("Vault/assets/logo.svg", b"<svg/>", mime_type=None)
    drive.add_file("Outside/Stray.md", "# Stray\n")
    await reader.vault.select("Vault", "Vault", root.id)
    await reader.index.sync_tree()
    return reader
