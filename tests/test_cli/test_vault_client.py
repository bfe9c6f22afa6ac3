"""Tests for the vaultreader command-line client."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from cli.vault_client import build_parser, main, run, settings_from_args

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from tests.conftest import FakeDrive
    from vaultreader.config import Settings


async def _run(settings: Settings, drive: FakeDrive, *argv: str) -> int:
    args = build_parser().parse_args(list(argv))
    return await run(settings, args, drive)


@pytest.fixture
def populated(drive: FakeDrive) -> FakeDrive:
    drive.add_folder("Vault")
    drive.add_file(
        "Vault/My Note.md", "# My Note\n\n[[Other]] ![](./missing.png)\n", freshness_tag="a1"
    )
    drive.add_file("Vault/Other.md", "---\nalias: Second\n---\n# Other\n", freshness_tag="b1")
    return drive


class TestParser:
    def test_global_options(self) -> None:
        args = build_parser().parse_args(
            ["--db", "sqlite+aiosqlite:///x.db", "--token", "t", "--debug", "status"]
        )
        assert args.command == "status"
        assert args.db == "sqlite+aiosqlite:///x.db"
        assert args.debug is True

    def test_resolve_path_requires_note(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["resolve-path", "./a.png"])

    def test_settings_from_args(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        args = build_parser().parse_args(
            ["--token", "abc", "--db", "sqlite+aiosqlite:///y.db", "clear"]
        )
        settings = settings_from_args(args)
        assert settings.access_token == "abc"
        assert settings.database_url == "sqlite+aiosqlite:///y.db"
        assert settings.debug is False


class TestCommands:
    async def test_select_looks_up_folder(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert await _run(test_settings, populated, "select", "/Vault") == 0
        assert "Selected vault Vault (Vault)" in capsys.readouterr().out
        assert populated.calls_to("get_item_by_path") == ["Vault"]

    async def test_select_with_id_skips_lookup(
        self, test_settings: Settings, populated: FakeDrive
    ) -> None:
        code = await _run(test_settings, populated, "select", "Vault", "--name", "V", "--id", "x")
        assert code == 0
        assert populated.calls_to("get_item_by_path") == []

    async def test_select_rejects_file(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert await _run(test_settings, populated, "select", "Vault/Other.md") == 1
        assert "not a folder" in capsys.readouterr().out

    async def test_remote_error_reported(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert await _run(test_settings, populated, "select", "Nowhere") == 1
        assert capsys.readouterr().out.startswith("Error:")

    async def test_index_status_and_read(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(test_settings, populated, "select", "Vault")
        assert await _run(test_settings, populated, "index") == 0
        assert "Indexed 2 item(s)." in capsys.readouterr().out

        await _run(test_settings, populated, "status")
        out = capsys.readouterr().out
        assert "Notes:           2" in out
        assert "[not-cached] My Note.md" in out

        assert await _run(test_settings, populated, "read", "my-note") == 0
        assert capsys.readouterr().out.startswith("# My Note")

        await _run(test_settings, populated, "status")
        assert "[cached] My Note.md" in capsys.readouterr().out

    async def test_read_prepare_reports_unresolved(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(test_settings, populated, "select", "Vault")
        await _run(test_settings, populated, "index")
        capsys.readouterr()

        assert await _run(test_settings, populated, "read", "My Note", "--prepare") == 0
        captured = capsys.readouterr()
        assert "[Other](#/note/other)" in captured.out
        assert "Unresolved: ./missing.png" in captured.err

    async def test_read_unknown(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert await _run(test_settings, populated, "read", "ghost") == 1
        assert "no note named 'ghost'" in capsys.readouterr().out

    async def test_resolve_link(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(test_settings, populated, "select", "Vault")
        await _run(test_settings, populated, "index")
        await _run(test_settings, populated, "read", "Other")
        capsys.readouterr()

        assert await _run(test_settings, populated, "resolve-link", "Second#Top") == 0
        assert capsys.readouterr().out.strip() == "other#Top"
        assert await _run(test_settings, populated, "resolve-link", "Nope") == 1
        assert capsys.readouterr().out.strip() == "unresolved"

    async def test_resolve_path(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(test_settings, populated, "select", "Vault")
        capsys.readouterr()

        await _run(
            test_settings, populated, "resolve-path", "../img/a.png", "--note", "Folder/Sub/Note.md"
        )
        assert capsys.readouterr().out.strip() == "Vault/Folder/img/a.png"

    async def test_clear(
        self, test_settings: Settings, populated: FakeDrive, capsys: pytest.CaptureFixture[str]
    ) -> None:
        await _run(test_settings, populated, "select", "Vault")
        await _run(test_settings, populated, "index")
        capsys.readouterr()

        assert await _run(test_settings, populated, "clear") == 0
        await _run(test_settings, populated, "status")
        out = capsys.readouterr().out
        assert "(none selected)" in out
        assert "Indexed files:   0" in out


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_logging_setup(self) -> Iterator[None]:
        with patch("cli.vault_client.configure_logging"):
            yield

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        main([])
        assert "usage:" in capsys.readouterr().out

    def test_network_command_requires_token(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ACCESS_TOKEN", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}", "index"])
        assert exc_info.value.code == 1
        assert "ACCESS_TOKEN" in capsys.readouterr().out

    def test_offline_command_runs_without_token(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ACCESS_TOKEN", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", f"sqlite+aiosqlite:///{tmp_path / 'db' / 'cli.db'}", "status"])
        assert exc_info.value.code == 0
        assert "(none selected)" in capsys.readouterr().out
        assert (tmp_path / "db" / "cli.db").exists()
