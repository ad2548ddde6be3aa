"""
Versioned SQL migrations.

Scripts live in one directory as `<version>.up.sql` / `<version>.down.sql` and
are applied in filename order. Applied versions are recorded in the
`schema_migrations` ledger; each version's script and its ledger row are written
in one transaction, so a failing script never leaves a ledger row behind.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import asyncpg

from . import db

logger = logging.getLogger(__name__)

UP_SUFFIX = ".up.sql"
DOWN_SUFFIX = ".down.sql"

LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    id SERIAL PRIMARY KEY,
    version VARCHAR(255) NOT NULL UNIQUE,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


class MigrationError(RuntimeError):
    pass


@dataclass(frozen=True)
class Migration:
    version: str
    up_path: str
    down_path: str


def discover_migrations(path: str) -> list[Migration]:
    try:
        names = sorted(os.listdir(path))
    except OSError as e:
        raise MigrationError(f"Cannot read migrations directory {path!r}: {e}") from e

    migrations: list[Migration] = []
    for name in names:
        if not name.endswith(UP_SUFFIX):
            continue
        version = name[: -len(UP_SUFFIX)]
        if not version:
            continue
        migrations.append(
            Migration(
                version=version,
                up_path=os.path.join(path, name),
                down_path=os.path.join(path, version + DOWN_SUFFIX),
            )
        )
    return migrations


def _read_script(script_path: str) -> str:
    try:
        with open(script_path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise MigrationError(f"Cannot read migration script {script_path!r}: {e}") from e


async def _applied_versions(conn: asyncpg.Connection) -> set[str]:
    rows = await conn.fetch("SELECT version FROM schema_migrations")
    return {str(r["version"]) for r in rows}


async def run_migrations(path: str, *, pool: asyncpg.Pool | None = None) -> list[str]:
    """
    Apply every migration in `path` that is not in the ledger yet.

    Returns the versions applied by this call (empty when up to date).
    """
    migrations = discover_migrations(path)
    pool = pool or db.pool()
    applied_now: list[str] = []

    async with pool.acquire() as conn:  # type: asyncpg.Connection
        try:
            await conn.execute(LEDGER_DDL)
            already_applied = await _applied_versions(conn)
        except asyncpg.PostgresError as e:
            raise MigrationError(f"Cannot prepare schema_migrations ledger: {e}") from e

        for migration in migrations:
            if migration.version in already_applied:
                continue

            script = _read_script(migration.up_path)
            logger.info("migration_apply version=%s", migration.version)
            try:
                async with conn.transaction():
                    await conn.execute(script)
                    await conn.execute(
                        "INSERT INTO schema_migrations (version) VALUES ($1)",
                        migration.version,
                    )
            except asyncpg.PostgresError as e:
                logger.error("migration_failed version=%s error=%s", migration.version, e)
                raise MigrationError(f"Migration {migration.version} failed: {e}") from e

            applied_now.append(migration.version)

    logger.info("migrations_complete applied=%s total=%s", len(applied_now), len(migrations))
    return applied_now


async def rollback_migration(path: str, *, pool: asyncpg.Pool | None = None) -> str | None:
    """
    Revert the most recently applied version using its down-script.

    Returns the reverted version, or None when nothing has been applied.
    """
    pool = pool or db.pool()

    async with pool.acquire() as conn:  # type: asyncpg.Connection
        try:
            await conn.execute(LEDGER_DDL)
            row = await conn.fetchrow(
                """
                SELECT version
                FROM schema_migrations
                ORDER BY applied_at DESC, id DESC
                LIMIT 1
                """
            )
        except asyncpg.PostgresError as e:
            raise MigrationError(f"Cannot read schema_migrations ledger: {e}") from e

        if row is None:
            return None

        version = str(row["version"])
        down_path = os.path.join(path, version + DOWN_SUFFIX)
        if not os.path.exists(down_path):
            raise MigrationError(f"No down-script for migration {version}.")

        script = _read_script(down_path)
        logger.info("migration_rollback version=%s", version)
        try:
            async with conn.transaction():
                await conn.execute(script)
                await conn.execute("DELETE FROM schema_migrations WHERE version = $1", version)
        except asyncpg.PostgresError as e:
            logger.error("migration_rollback_failed version=%s error=%s", version, e)
            raise MigrationError(f"Rollback of {version} failed: {e}") from e

    return version
