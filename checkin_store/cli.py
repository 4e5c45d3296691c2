"""
Command-line tool for inspecting the local check-in store.

Usage:
    checkin-store stats
    checkin-store list [--user CODE] [--oldest-first]
    checkin-store export backup.json
    checkin-store clear --yes
    checkin-store remote-stats
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml

from .config import StoreConfig
from .exceptions import CheckinStoreError
from .export import write_snapshot
from .local.store import LocalCheckinStore
from .logging_utils import configure_structured_logging
from .remote import create_adapter

logger = logging.getLogger(__name__)


def _load_config(args: argparse.Namespace) -> StoreConfig:
    config = StoreConfig.from_file(args.config) if args.config else StoreConfig.from_environment()
    if args.local_path:
        config.local_path = Path(args.local_path).expanduser()
    return config


async def _stats(store: LocalCheckinStore, args: argparse.Namespace) -> int:
    stats = await store.get_stats()
    print(f"Check-ins: {stats.total_checkins}")
    print(f"Images:    {stats.total_images}")
    print(f"Storage:   ~{stats.storage_size}")
    orphans = await store.find_orphaned_blobs()
    if orphans:
        print(f"Orphaned images: {len(orphans)}")
    return 0


async def _list(store: LocalCheckinStore, args: argparse.Namespace) -> int:
    records = await store.list_checkins(user_code=args.user, newest_first=not args.oldest_first)
    for record in records:
        loc = record.location
        print(
            f"{record.created_at.astimezone():%Y-%m-%d %H:%M:%S}  {record.submission_id:<22} "
            f"{record.user_code:<12} {loc.latitude:.6f},{loc.longitude:.6f} "
            f"±{loc.accuracy:.0f}m"
        )
    if not records:
        print("No check-ins stored.")
    return 0


async def _export(store: LocalCheckinStore, args: argparse.Namespace) -> int:
    snapshot = await store.export_snapshot()
    path = await write_snapshot(snapshot, args.output)
    print(f"Exported {len(snapshot.records)} check-ins to {path}")
    return 0


async def _clear(store: LocalCheckinStore, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to clear without --yes.", file=sys.stderr)
        return 2
    await store.clear_all_data()
    print(f"Cleared {store.base_path}")
    return 0


async def _remote_stats(store: LocalCheckinStore, args: argparse.Namespace) -> int:
    adapter = create_adapter(store.config)
    if adapter is None:
        print("No remote sync backend configured.", file=sys.stderr)
        return 2
    async with adapter:
        stats = await adapter.compute_stats()
    print(json.dumps(stats.to_dict(), indent=2))
    return 0


COMMANDS = {
    "stats": _stats,
    "list": _list,
    "export": _export,
    "clear": _clear,
    "remote-stats": _remote_stats,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="checkin-store",
        description="Inspect and export the local check-in store",
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--local-path", help="Override the store directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--json-logs", action="store_true", help="Log one JSON object per line to stderr"
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("stats", help="Show counts and estimated storage size")

    list_parser = sub.add_parser("list", help="List stored check-ins, newest first")
    list_parser.add_argument("--user", help="Only this user code")
    list_parser.add_argument("--oldest-first", action="store_true")

    export_parser = sub.add_parser("export", help="Write a JSON snapshot with embedded images")
    export_parser.add_argument("output", type=Path)

    clear_parser = sub.add_parser("clear", help="Delete all check-ins and images")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    sub.add_parser("remote-stats", help="Aggregate stats from the configured remote backend")
    return parser


async def run(args: argparse.Namespace, config: StoreConfig) -> int:
    async with LocalCheckinStore(config) as store:
        return await COMMANDS[args.command](store, args)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.WARNING
    if args.json_logs:
        configure_structured_logging(level)
    else:
        logging.basicConfig(level=level, format="%(levelname)s  %(message)s")

    try:
        config = _load_config(args)
    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        print(f"Error: cannot load settings: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(run(args, config))
    except CheckinStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
