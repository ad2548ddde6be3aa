"""
Song catalog persistence (raw SQL).

Schema (see db/migrations):
- groups(id bigserial, group_name text unique, created_at)
- songs(id bigserial, group_id -> groups.id, song_name, release_date, text, link,
        created_at, updated_at)
"""

from __future__ import annotations

from datetime import date
from typing import Any

from core import db


def _like_pattern(value: str) -> str:
    """
    Escape LIKE wildcards so filters match as plain substrings.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def get_group_id(group_name: str) -> int | None:
    row = await db.fetch_one(
        """
        SELECT id
        FROM groups
        WHERE group_name = $1
        """,
        group_name,
    )
    return int(row["id"]) if row is not None else None


async def insert_group(group_name: str) -> int:
    """
    Raises asyncpg.UniqueViolationError when the name already exists.
    """
    row = await db.fetch_one(
        """
        INSERT INTO groups (group_name)
        VALUES ($1)
        RETURNING id
        """,
        group_name,
    )
    if row is None:
        raise RuntimeError("Failed to insert group.")
    return int(row["id"])


async def list_songs(
    *,
    group_filter: str = "",
    song_filter: str = "",
    limit: int = 10,
    offset: int = 0,
    include_text: bool = False,
) -> list[dict[str, Any]]:
    text_column = ", s.text" if include_text else ""
    return await db.fetch_all(
        f"""
        SELECT s.id, g.group_name, s.song_name, s.release_date{text_column}
        FROM songs s
        JOIN groups g ON g.id = s.group_id
        WHERE ($1::text = '' OR g.group_name ILIKE ('%' || $1::text || '%'))
          AND ($2::text = '' OR s.song_name ILIKE ('%' || $2::text || '%'))
        ORDER BY s.id ASC
        LIMIT $3
        OFFSET $4
        """,
        _like_pattern(group_filter),
        _like_pattern(song_filter),
        limit,
        offset,
    )


async def get_song_text(song_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        SELECT id, text
        FROM songs
        WHERE id = $1
        """,
        song_id,
    )


async def insert_song(
    *,
    group_id: int,
    song_name: str,
    release_date: date | None,
    text: str | None,
    link: str | None,
) -> int:
    row = await db.fetch_one(
        """
        INSERT INTO songs (group_id, song_name, release_date, text, link)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING id
        """,
        group_id,
        song_name,
        release_date,
        text,
        link,
    )
    if row is None:
        raise RuntimeError("Failed to insert song.")
    return int(row["id"])


async def update_song(
    song_id: int,
    *,
    group_id: int | None,
    song_name: str,
    release_date: date | None,
    text: str | None,
    link: str | None,
) -> int:
    """
    Partial update: NULL parameters (and an empty song name) keep the stored value.

    Returns the number of rows touched (0 when the id does not exist).
    """
    status = await db.execute(
        """
        UPDATE songs
        SET group_id = COALESCE($2::bigint, group_id),
            song_name = COALESCE(NULLIF($3::text, ''), song_name),
            release_date = COALESCE($4::date, release_date),
            text = COALESCE($5::text, text),
            link = COALESCE($6::text, link),
            updated_at = now()
        WHERE id = $1
        """,
        song_id,
        group_id,
        song_name,
        release_date,
        text,
        link,
    )
    return db.affected_rows(status)


async def delete_song(song_id: int) -> int:
    status = await db.execute(
        """
        DELETE FROM songs
        WHERE id = $1
        """,
        song_id,
    )
    return db.affected_rows(status)
