"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import Settings

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url(settings: Settings) -> str:
    """
    DATABASE_URL wins; otherwise the DSN is assembled from the DB_* parts.
    """
    if settings.database_url:
        return _sanitize_database_url(settings.database_url)

    user = quote(settings.db_user, safe="")
    password = quote(settings.db_password, safe="")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql://{credentials}@{settings.db_host}:{settings.db_port}/{settings.db_name}"


async def init_pool(settings: Settings) -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout_s,
    )
    logger.info(
        "db_pool_ready host=%s db=%s max_size=%s",
        settings.db_host,
        settings.db_name,
        settings.db_pool_max_size,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


async def ping() -> None:
    """
    Fail fast at startup when the database is unreachable.
    """
    value = await pool().fetchval("SELECT 1")
    if value != 1:
        raise RuntimeError("Database liveness check returned an unexpected value.")


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool().fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def fetch_value(sql: str, *args: Any) -> Any:
    return await pool().fetchval(sql, *args)


async def execute(sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL).

    Returns the command status tag, e.g. "DELETE 1".
    """
    return await pool().execute(sql, *args)


def affected_rows(status: str) -> int:
    """
    Row count from a command status tag ("UPDATE 3" -> 3, "INSERT 0 1" -> 1).
    """
    tail = (status or "").rsplit(" ", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        return 0
