"""
Schema migration command line.

    song-library-migrate up      apply pending versions
    song-library-migrate down    revert the latest applied version
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys

from core import db, migrations
from core.config import Settings, load_settings
from core.log import configure_logging, get_logger

logger = get_logger("song_library.migrate")


async def _up(settings: Settings) -> None:
    applied = await migrations.run_migrations(settings.migrations_path)
    print("applied: " + (", ".join(applied) if applied else "nothing, schema is up to date"))


async def _down(settings: Settings) -> None:
    version = await migrations.rollback_migration(settings.migrations_path)
    print(f"reverted: {version}" if version else "reverted: nothing, no applied versions")


COMMANDS = {"up": _up, "down": _down}


async def migrate(command: str, settings: Settings) -> None:
    await db.init_pool(settings)
    try:
        await COMMANDS[command](settings)
    finally:
        await db.close_pool()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="song-library-migrate")
    sp = p.add_subparsers(dest="command")
    for name, help_text in (
        ("up", "Apply every migration not yet in schema_migrations"),
        ("down", "Revert the most recently applied migration"),
    ):
        cmd = sp.add_parser(name, help=help_text)
        cmd.add_argument("--path", help="Migrations directory (default: MIGRATIONS_PATH)")
    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if not args.command:
        p.error("No command specified")

    settings = load_settings()
    if args.path:
        settings = dataclasses.replace(settings, migrations_path=args.path)
    configure_logging(settings.log_level, settings.log_file)

    try:
        asyncio.run(migrate(args.command, settings))
    except migrations.MigrationError as e:
        logger.error("migrate_failed command=%s error=%s", args.command, e)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
