"""
Song catalog business logic.

Scope:
- filtered, paginated listing (optionally with verse-paginated lyrics)
- lyrics lookup
- create via the song-details lookup service
- partial update and delete

Store failures surface as SongPersistenceError; the router maps errors to HTTP
status codes. Nothing here retries.
"""

from __future__ import annotations

import logging
from datetime import date

import asyncpg

from core import enrichment

from . import pagination, repository, schemas


class SongNotFoundError(LookupError):
    def __init__(self, song_id: int) -> None:
        super().__init__(f"Song {song_id} not found.")
        self.song_id = song_id


class SongPersistenceError(RuntimeError):
    pass


# asyncpg raises PostgresError for statement failures and OSError subclasses
# (ConnectionRefusedError, ...) when the server is unreachable.
_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class SongService:
    def __init__(
        self,
        *,
        enrichment_base_url: str,
        enrichment_timeout_s: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._enrichment_base_url = enrichment_base_url
        self._enrichment_timeout_s = enrichment_timeout_s
        self._log = logger or logging.getLogger(__name__)

    async def list_songs(
        self,
        *,
        group: str = "",
        song: str = "",
        page: int = pagination.DEFAULT_PAGE,
        limit: int = pagination.DEFAULT_LIMIT,
    ) -> list[schemas.SongSummary]:
        rows = await self._list_rows(group=group, song=song, page=page, limit=limit, include_text=False)
        return [
            schemas.SongSummary(
                id=int(row["id"]),
                group=str(row["group_name"]),
                song=str(row["song_name"]),
                release_date=row["release_date"],
            )
            for row in rows
        ]

    async def list_songs_with_text(
        self,
        *,
        group: str = "",
        song: str = "",
        page: int = pagination.DEFAULT_PAGE,
        limit: int = pagination.DEFAULT_LIMIT,
    ) -> list[schemas.SongSummaryWithText]:
        rows = await self._list_rows(group=group, song=song, page=page, limit=limit, include_text=True)
        return [
            schemas.SongSummaryWithText(
                id=int(row["id"]),
                group=str(row["group_name"]),
                song=str(row["song_name"]),
                release_date=row["release_date"],
                text=pagination.join_verses(pagination.paginate_verses(row.get("text"), page, limit)),
            )
            for row in rows
        ]

    async def _list_rows(
        self,
        *,
        group: str,
        song: str,
        page: int,
        limit: int,
        include_text: bool,
    ) -> list[dict]:
        offset = pagination.page_offset(page, limit)
        if offset > pagination.MAX_VALUE:
            # No table can hold that many rows; the store would reject the OFFSET.
            self._log.info("list_songs count=0 page=%s limit=%s offset_out_of_range", page, limit)
            return []

        try:
            rows = await repository.list_songs(
                group_filter=group,
                song_filter=song,
                limit=limit,
                offset=offset,
                include_text=include_text,
            )
        except _STORE_ERRORS as exc:
            self._log.error(
                "list_songs_failed group=%r song=%r page=%s limit=%s error=%s",
                group,
                song,
                page,
                limit,
                exc,
            )
            raise SongPersistenceError(f"Failed to list songs: {exc}") from exc

        self._log.info("list_songs count=%s page=%s limit=%s", len(rows), page, limit)
        return rows

    async def get_song_text(self, song_id: int) -> str:
        try:
            row = await repository.get_song_text(song_id)
        except _STORE_ERRORS as exc:
            self._log.error("get_song_text_failed song_id=%s error=%s", song_id, exc)
            raise SongPersistenceError(f"Failed to read song text: {exc}") from exc

        if row is None:
            self._log.warning("get_song_text_not_found song_id=%s", song_id)
            raise SongNotFoundError(song_id)

        return str(row.get("text") or "")

    async def _resolve_group_id(self, group_name: str) -> int:
        """
        Reuse the group row for `group_name` or create it.

        groups.group_name is UNIQUE: losing an insert race to another request
        shows up as UniqueViolationError, after which the winner's row is read.
        """
        group_id = await repository.get_group_id(group_name)
        if group_id is not None:
            return group_id

        try:
            return await repository.insert_group(group_name)
        except asyncpg.UniqueViolationError:
            self._log.info("group_insert_race group=%r", group_name)
            group_id = await repository.get_group_id(group_name)
            if group_id is None:
                raise
            return group_id

    async def add_song(self, *, group: str, song: str) -> int:
        try:
            group_id = await self._resolve_group_id(group)
        except _STORE_ERRORS as exc:
            self._log.error("add_song_group_failed group=%r error=%s", group, exc)
            raise SongPersistenceError(f"Failed to resolve group: {exc}") from exc

        try:
            details = await enrichment.fetch_song_details(
                base_url=self._enrichment_base_url,
                group=group,
                song=song,
                timeout_s=self._enrichment_timeout_s,
            )
            release_date = details.release_date_value()
        except enrichment.EnrichmentError as exc:
            self._log.error(
                "add_song_enrichment_failed group=%r song=%r status=%s error=%s",
                group,
                song,
                exc.status_code,
                exc,
            )
            raise

        try:
            song_id = await repository.insert_song(
                group_id=group_id,
                song_name=song,
                release_date=release_date,
                text=details.text,
                link=details.link,
            )
        except _STORE_ERRORS as exc:
            self._log.error("add_song_insert_failed group=%r song=%r error=%s", group, song, exc)
            raise SongPersistenceError(f"Failed to save song: {exc}") from exc

        self._log.info("song_added song_id=%s group=%r song=%r", song_id, group, song)
        return song_id

    async def update_song(
        self,
        song_id: int,
        *,
        group: str = "",
        song: str = "",
        release_date: date | None = None,
        text: str | None = None,
        link: str | None = None,
    ) -> None:
        try:
            group_id = await self._resolve_group_id(group) if group else None
            touched = await repository.update_song(
                song_id,
                group_id=group_id,
                song_name=song,
                release_date=release_date,
                text=text,
                link=link,
            )
        except _STORE_ERRORS as exc:
            self._log.error("update_song_failed song_id=%s error=%s", song_id, exc)
            raise SongPersistenceError(f"Failed to update song: {exc}") from exc

        # A missing id is reported as success; only the log tells them apart.
        if touched == 0:
            self._log.info("update_song_no_rows song_id=%s", song_id)
        else:
            self._log.info("song_updated song_id=%s", song_id)

    async def delete_song(self, song_id: int) -> None:
        try:
            deleted = await repository.delete_song(song_id)
        except _STORE_ERRORS as exc:
            self._log.error("delete_song_failed song_id=%s error=%s", song_id, exc)
            raise SongPersistenceError(f"Failed to delete song: {exc}") from exc

        self._log.info("song_deleted song_id=%s rows=%s", song_id, deleted)
