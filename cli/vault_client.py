"""Command-line reader for a remote vault with an offline cache."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING, Any

from vaultreader.app import configure_logging, open_reader
from vaultreader.config import Settings
from vaultreader.exceptions import RemoteError
from vaultreader.services.path_resolver import resolve_path

if TYPE_CHECKING:
    from vaultreader.app import VaultReader
    from vaultreader.remote.base import RemoteDrive

NETWORK_COMMANDS = frozenset({"select", "index"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultreader",
        description="Browse and read a remote notes vault through a local cache",
    )
    parser.add_argument("--db", help="Database URL (default: from settings)")
    parser.add_argument("--token", help="Bearer token for the remote drive")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    select = subparsers.add_parser("select", help="Select the vault root folder")
    select.add_argument("root", help="Drive path of the vault folder")
    select.add_argument("--name", help="Display name (default: last path segment)")
    select.add_argument("--id", dest="root_id", help="Remote id of the folder")

    subparsers.add_parser("clear", help="Forget the vault and clear its caches")

    index = subparsers.add_parser("index", help="Refresh the metadata index")
    index.add_argument("folder", nargs="?", default="", help="Vault-relative folder")
    index.add_argument(
        "--no-recursive", action="store_true", help="Only index the given folder"
    )

    subparsers.add_parser("status", help="Show vault and cache status")

    read = subparsers.add_parser("read", help="Print a note by name, alias or slug")
    read.add_argument("target", help="Note name, alias or slug")
    read.add_argument(
        "--prepare", action="store_true", help="Rewrite links and embeds for rendering"
    )

    link = subparsers.add_parser("resolve-link", help="Resolve a wiki link to a slug")
    link.add_argument("name", help="Link target, e.g. 'My Note#Heading'")

    path = subparsers.add_parser("resolve-path", help="Resolve an embedded resource path")
    path.add_argument("raw_path", help="Reference as written in the note")
    path.add_argument("--note", required=True, help="Vault-relative path of the note")

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.db:
        overrides["database_url"] = args.db
    if args.token:
        overrides["access_token"] = args.token
    if args.debug:
        overrides["debug"] = True
    return Settings(**overrides)


async def cmd_select(reader: VaultReader, args: argparse.Namespace) -> int:
    root = args.root.strip("/")
    root_id = args.root_id
    name = args.name
    if root_id is None or name is None:
        item = await reader.remote.get_item_by_path(root)
        if not item.is_folder:
            print(f"Error: {root!r} is not a folder")
            return 1
        root_id = root_id or item.id
        name = name or item.name
    boundary = await reader.vault.select(root, name, root_id)
    print(f"Selected vault {boundary.root_name} ({boundary.root_path or '/'})")
    return 0


async def cmd_clear(reader: VaultReader, args: argparse.Namespace) -> int:
    await reader.vault.clear()
    print("Vault cleared.")
    return 0


async def cmd_index(reader: VaultReader, args: argparse.Namespace) -> int:
    if args.no_recursive:
        total = len(await reader.index.sync_folder(args.folder))
    else:
        total = await reader.index.sync_tree(args.folder)
    print(f"Indexed {total} item(s).")
    return 0


async def cmd_status(reader: VaultReader, args: argparse.Namespace) -> int:
    boundary = await reader.vault.current()
    documents = await reader.index.documents()
    print("Vault Status:")
    if boundary is None:
        print("  Vault:           (none selected)")
    else:
        print(f"  Vault:           {boundary.root_name} ({boundary.root_path or '/'})")
    print(f"  Indexed files:   {await reader.store.files.count()}")
    print(f"  Notes:           {len(documents)}")
    print(f"  Cached notes:    {await reader.store.content.count()}")
    print(f"  Attachments:     {await reader.store.attachments.count()}")
    print(f"  Pending ops:     {await reader.store.pending_ops.count()}")
    for entry in documents:
        status = await reader.notes.cache_status(entry.remote_id)
        print(f"    [{status}] {entry.path}")
    return 0


async def cmd_read(reader: VaultReader, args: argparse.Namespace) -> int:
    entry = await reader.links.resolve_entry(args.target)
    if entry is not None:
        note = await reader.notes.open_note(entry.remote_id)
    else:
        remote_id = await reader.links.slug_to_id(args.target)
        if remote_id is None:
            print(f"Error: no note named {args.target!r}")
            return 1
        note = await reader.notes.open_note(remote_id)

    if not args.prepare:
        print(note.content)
        return 0

    prepared = await reader.notes.prepare(note.content, note.path or "")
    try:
        print(prepared.text)
        for target in prepared.unresolved:
            print(f"  Unresolved: {target}", file=sys.stderr)
    finally:
        prepared.release()
    return 0


async def cmd_resolve_link(reader: VaultReader, args: argparse.Namespace) -> int:
    slug = await reader.links.resolve(args.name)
    if slug is None:
        print("unresolved")
        return 1
    print(slug)
    return 0


async def cmd_resolve_path(reader: VaultReader, args: argparse.Namespace) -> int:
    root = await reader.index.vault_root()
    print(resolve_path(args.raw_path, args.note, root))
    return 0


COMMANDS = {
    "select": cmd_select,
    "clear": cmd_clear,
    "index": cmd_index,
    "status": cmd_status,
    "read": cmd_read,
    "resolve-link": cmd_resolve_link,
    "resolve-path": cmd_resolve_path,
}


async def run(
    settings: Settings, args: argparse.Namespace, remote: RemoteDrive | None = None
) -> int:
    handler = COMMANDS[args.command]
    async with open_reader(settings, remote) as reader:
        try:
            return await handler(reader, args)
        except RemoteError as exc:
            print(f"Error: {exc}")
            return 1


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    settings = settings_from_args(args)
    configure_logging(settings.debug)
    if args.command in NETWORK_COMMANDS:
        try:
            settings.validate_remote()
        except ValueError as exc:
            print(f"Error: {exc}")
            sys.exit(1)

    sys.exit(asyncio.run(run(settings, args)))


if __name__ == "__main__":
    main()
