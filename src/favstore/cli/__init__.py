"""CLI for favstore: schema setup, backup, restore, validation and listing.

Usage:
    favstore init
    favstore backup --all
    favstore backup --favorites --saved-searches -o backups/mine.json
    favstore restore backups/favstore_backup_20240501123000.json --all --yes
    favstore validate backups/favstore_backup_20240501123000.json
    favstore favorites --page-size 24 --limit 100
    favstore --profile server backup --favorites

Commands:
    init       - Create the store schema
    backup     - Write a backup snapshot
    restore    - Restore a backup snapshot
    validate   - Check a backup file without restoring it
    favorites  - List favorites that still resolve
"""

import argparse
import asyncio
import logging
import sys
from contextlib import aclosing
from pathlib import Path

from rich.console import Console
from rich.table import Table

from favstore.backup import (
    BackupOptions,
    RestoreSummary,
    backup_filename,
    create_snapshot,
    read_snapshot_file,
    restore_snapshot,
    validate_snapshot_file,
    write_snapshot_file,
)
from favstore.config.loader import load_config
from favstore.config.models import FavstoreConfig, StoreProfile
from favstore.factory import (
    get_active_profile,
    get_preferences_store,
    get_resolvers,
    get_store,
)
from favstore.favorites.pager import FavoritePager, PagingConfig
from favstore.sources.local import LocalFileResolver

console = Console()


def _load_profile(args: argparse.Namespace) -> tuple[FavstoreConfig, str, StoreProfile]:
    config = load_config(args.config)
    name, profile = get_active_profile(config, args.profile, args.env_prefix)
    return config, name, profile


def _options_from_args(args: argparse.Namespace) -> BackupOptions:
    if args.all:
        return BackupOptions.everything()
    return BackupOptions(
        settings=args.settings,
        favorites=args.favorites,
        saved_searches=args.saved_searches,
    )


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_init(args: argparse.Namespace) -> int:
    _, name, profile = _load_profile(args)
    store = get_store(profile)
    try:
        await store.create_schema()
    finally:
        await store.close()

    console.print(
        f"[bold green]v[/bold green] Schema ready for profile "
        f"[bold cyan]{name}[/bold cyan]"
    )
    return 0


async def _async_backup(args: argparse.Namespace) -> int:
    config, _, profile = _load_profile(args)
    options = _options_from_args(args)

    store = get_store(profile)
    try:
        snapshot = await create_snapshot(store, options, get_preferences_store(profile))
    finally:
        await store.close()

    if snapshot is None:
        console.print(
            "[yellow]Nothing selected.[/yellow] "
            "[dim]Use --settings, --favorites, --saved-searches or --all.[/dim]"
        )
        return 1

    output = args.output or str(Path(config.backups_dir) / backup_filename())
    path = write_snapshot_file(snapshot, output)
    console.print(f"[bold green]v[/bold green] Backup written: [cyan]{path}[/cyan]")
    return 0


async def _async_restore(args: argparse.Namespace) -> int:
    _, name, profile = _load_profile(args)
    options = _options_from_args(args)
    if not options.any_selected:
        console.print(
            "[yellow]Nothing selected.[/yellow] "
            "[dim]Use --settings, --favorites, --saved-searches or --all.[/dim]"
        )
        return 1

    snapshot = read_snapshot_file(args.backup_path)

    if not args.yes:
        console.print(f"This will restore [cyan]{args.backup_path}[/cyan] into profile "
                      f"[bold cyan]{name}[/bold cyan]")
        if options.settings:
            console.print("  [yellow]Preferences will be overwritten.[/yellow]")
        response = input("Continue? [y/N] ")
        if response.lower() not in ["y", "yes"]:
            console.print("Cancelled.")
            return 0

    store = get_store(profile)
    try:
        summary = await restore_snapshot(
            store,
            snapshot,
            options,
            preferences_store=get_preferences_store(profile),
            local_probe=LocalFileResolver(profile.local_root),
        )
    finally:
        await store.close()

    _print_summary(summary)
    return 0


async def _async_favorites(args: argparse.Namespace) -> int:
    config, _, profile = _load_profile(args)
    paging = PagingConfig(page_size=args.page_size or config.page_size)

    store = get_store(profile)
    try:
        pager = FavoritePager(store, get_resolvers(store, profile), paging)
        table = Table(title="Favorites", show_header=True, header_style="bold")
        table.add_column("Source")
        table.add_column("Id")
        table.add_column("Size", justify="right")
        table.add_column("Uploader")

        shown = 0
        async with aclosing(aiter(pager)) as wallpapers:
            async for wallpaper in wallpapers:
                size = (
                    f"{wallpaper.width}x{wallpaper.height}"
                    if wallpaper.width and wallpaper.height
                    else ""
                )
                table.add_row(
                    wallpaper.source_kind.value,
                    wallpaper.source_id,
                    size,
                    wallpaper.uploader.username if wallpaper.uploader else "",
                )
                shown += 1
                if args.limit and shown >= args.limit:
                    break
    finally:
        await store.close()

    console.print(table)
    if pager.dropped_count:
        console.print(
            f"[yellow]{pager.dropped_count} favorites no longer resolve[/yellow]"
        )
    return 0


def _print_summary(summary: RestoreSummary) -> None:
    table = Table(title="Restore Summary", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")

    table.add_row("Preferences", "restored" if summary.preferences_restored else "-")
    table.add_row("Saved searches", str(summary.saved_searches))
    table.add_row("Tags", str(summary.tags))
    table.add_row("Uploaders", str(summary.uploaders))
    table.add_row("Cached items", str(summary.items))
    if summary.items_skipped:
        table.add_row("Cached items skipped", f"[yellow]{summary.items_skipped}[/yellow]")
    table.add_row("Favorites inserted", str(summary.favorites_inserted))
    table.add_row("Favorites already present", str(summary.favorites_existing))
    table.add_row("Favorites dropped", str(len(summary.dropped_favorites)))
    console.print(table)

    for favorite in summary.dropped_favorites:
        console.print(
            f"  [dim]dropped[/dim] {favorite.source_kind.value}:{favorite.source_id}"
        )


# ============================================================================
# Command wrappers
# ============================================================================


def _run(coro) -> int:
    """Run an async command, reporting failures as exit code 1."""
    try:
        return asyncio.run(coro)
    except Exception as e:
        console.print(f"[bold red]x[/bold red] {e}")
        return 1


def cmd_init(args: argparse.Namespace) -> int:
    """Create the store schema."""
    return _run(_async_init(args))


def cmd_backup(args: argparse.Namespace) -> int:
    """Write a backup snapshot."""
    return _run(_async_backup(args))


def cmd_restore(args: argparse.Namespace) -> int:
    """Restore a backup snapshot."""
    return _run(_async_restore(args))


def cmd_favorites(args: argparse.Namespace) -> int:
    """List resolvable favorites."""
    return _run(_async_favorites(args))


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a backup file.

    Reads only the local file -- no store calls.

    Returns:
        0 if the backup is readable, 1 otherwise.
    """
    report = validate_snapshot_file(args.backup_path)

    console.print(f"Validating: [cyan]{args.backup_path}[/cyan]")

    if report.errors:
        console.print(f"\n[bold red]INVALID[/bold red] - {len(report.errors)} errors:")
        for error in report.errors:
            console.print(f"   - {error}")

    if report.warnings:
        console.print(f"\n[yellow]{len(report.warnings)} warnings:[/yellow]")
        for warning in report.warnings:
            console.print(f"   - {warning}")

    if report.valid:
        console.print(f"\n[bold green]v[/bold green] Backup is valid (version {report.version})")
        return 0
    return 1


# ============================================================================
# Main entry point
# ============================================================================


def _add_selection_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--settings", action="store_true", help="Include preferences")
    parser.add_argument("--favorites", action="store_true", help="Include favorites")
    parser.add_argument(
        "--saved-searches", action="store_true", help="Include saved searches"
    )
    parser.add_argument("--all", action="store_true", help="Include everything")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="favstore",
        description="Favorites aggregation, backup and restore",
    )
    parser.add_argument("--config", help="Path to favstore.toml")
    parser.add_argument("--profile", help="Store profile to use")
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_FAVSTORE_PROFILE)"
        ),
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_init = subparsers.add_parser("init", help="Create the store schema")
    p_init.set_defaults(func=cmd_init)

    p_backup = subparsers.add_parser("backup", help="Write a backup snapshot")
    _add_selection_flags(p_backup)
    p_backup.add_argument(
        "--output", "-o",
        help="Output file path (default: <backups_dir>/favstore_backup_<timestamp>.json)",
    )
    p_backup.set_defaults(func=cmd_backup)

    p_restore = subparsers.add_parser("restore", help="Restore a backup snapshot")
    p_restore.add_argument("backup_path", help="Path to backup JSON file")
    _add_selection_flags(p_restore)
    p_restore.add_argument(
        "--yes", "-y", action="store_true", help="Skip confirmation prompt"
    )
    p_restore.set_defaults(func=cmd_restore)

    p_validate = subparsers.add_parser("validate", help="Validate a backup file")
    p_validate.add_argument("backup_path", help="Path to backup JSON file")
    p_validate.set_defaults(func=cmd_validate)

    p_favorites = subparsers.add_parser("favorites", help="List resolvable favorites")
    p_favorites.add_argument("--page-size", type=int, help="Favorites per page")
    p_favorites.add_argument("--limit", type=int, help="Stop after this many items")
    p_favorites.set_defaults(func=cmd_favorites)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
