"""Tests for the attachment cache and display handles."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from vaultreader.exceptions import TransientError
from vaultreader.services.attachment_service import (
    AttachmentCache,
    AttachmentHandle,
    guess_mime_type,
)

if TYPE_CHECKING:
    from tests.conftest import FakeDrive
    from vaultreader.store import LocalStore


@pytest.fixture
def cache(store: LocalStore, drive: FakeDrive) -> AttachmentCache:
    return AttachmentCache(store, drive)


class TestGetOrFetch:
    async def test_miss_fetches_and_persists_metadata(
        self, cache: AttachmentCache, drive: FakeDrive, store: LocalStore
    ) -> None:
        item = drive.add_file("Vault/a.png", b"PNGDATA", mime_type="image/png")

        assert await cache.get_or_fetch(item.id) == b"PNGDATA"
        row = await store.attachments.get(item.id)
        assert row.mime_type == "image/png"
        assert row.size == 7

    async def test_hit_is_never_revalidated(
        self, cache: AttachmentCache, drive: FakeDrive
    ) -> None:
        item = drive.add_file("Vault/a.png", b"one", mime_type="image/png")
        await cache.get_or_fetch(item.id)
        drive.update_file(item.id, b"two", "v2")
        drive.calls.clear()

        assert await cache.get_or_fetch(item.id) == b"one"
        assert drive.calls == []

    async def test_failure_propagates(self, cache: AttachmentCache, drive: FakeDrive) -> None:
        item = drive.add_file("Vault/a.png", b"one")
        drive.errors["fetch_content"] = TransientError("offline")

        with pytest.raises(TransientError):
            await cache.get_or_fetch(item.id)
        assert await cache.get_cached(item.id) is None

    async def test_mime_type_guessed_from_name(
        self, cache: AttachmentCache, drive: FakeDrive, store: LocalStore
    ) -> None:
        item = drive.add_file("Vault/diagram.svg", b"<svg/>")
        await cache.get_or_fetch(item.id)
        row = await store.attachments.get(item.id)
        assert row.mime_type == "image/svg+xml"

    async def test_mime_type_falls_back_to_hint(
        self, cache: AttachmentCache, drive: FakeDrive, store: LocalStore
    ) -> None:
        item = drive.add_file("Vault/blob", b"\x00\x01")
        await cache.get_or_fetch(item.id, mime_type_hint="image/*")
        row = await store.attachments.get(item.id)
        assert row.mime_type == "image/*"


class TestHandles:
    async def test_open_returns_data_url(self, cache: AttachmentCache, drive: FakeDrive) -> None:
        item = drive.add_file("Vault/a.png", b"hi", mime_type="image/png")
        handle = await cache.open(item.id)
        assert handle.mime_type == "image/png"
        assert handle.url == "data:image/png;base64,aGk="

    async def test_revoke_keeps_cached_copy(
        self, cache: AttachmentCache, drive: FakeDrive
    ) -> None:
        item = drive.add_file("Vault/a.png", b"hi", mime_type="image/png")
        with await cache.open(item.id) as handle:
            assert handle.data == b"hi"
        assert handle.revoked
        with pytest.raises(ValueError, match="revoked"):
            _ = handle.url
        assert await cache.get_cached(item.id) == b"hi"

    def test_repr(self) -> None:
        handle = AttachmentHandle("r1", b"abc", "image/png")
        assert "3 bytes" in repr(handle)
        handle.revoke()
        assert "revoked" in repr(handle)


class TestGuessMimeType:
    def test_known_extension(self) -> None:
        assert guess_mime_type("photo.jpg") == "image/jpeg"

    def test_unknown_without_hint(self) -> None:
        assert guess_mime_type("data.unknownext") == "application/octet-stream"

    def test_no_name_uses_hint(self) -> None:
        assert guess_mime_type(None, "image/*") == "image/*"
