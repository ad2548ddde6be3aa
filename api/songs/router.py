"""
Song catalog API endpoints.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response, status
from fastapi.responses import PlainTextResponse

from core.enrichment import EnrichmentError

from . import pagination, schemas
from .service import SongNotFoundError, SongPersistenceError, SongService

router = APIRouter()

# Ids outside bigint can never match a row; reject them with the other malformed ids.
SongId = Annotated[int, Path(ge=-pagination.MAX_VALUE - 1, le=pagination.MAX_VALUE)]


def get_song_service(request: Request) -> SongService:
    return request.app.state.song_service


def _server_error(message: str, exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{message}: {exc}",
    )


@router.get("/songs", response_model=None)
async def list_songs(
    group: str = Query(default="", max_length=500),
    song: str = Query(default="", max_length=500),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    with_text: bool = Query(default=False),
    songs: SongService = Depends(get_song_service),
) -> list[schemas.SongSummary]:
    """
    List songs filtered by group/title substring, ordered by id.

    Invalid or non-positive page/limit fall back to 1/10. With `with_text=true`
    each item also carries the page of verses selected by the same page/limit.
    """
    page_value = pagination.parse_positive_int(page, pagination.DEFAULT_PAGE)
    limit_value = pagination.parse_positive_int(limit, pagination.DEFAULT_LIMIT)

    try:
        if with_text:
            return await songs.list_songs_with_text(group=group, song=song, page=page_value, limit=limit_value)
        return await songs.list_songs(group=group, song=song, page=page_value, limit=limit_value)
    except SongPersistenceError as exc:
        raise _server_error("Failed to list songs", exc) from exc


@router.get("/songs/{song_id}")
async def get_song_text(
    song_id: SongId,
    songs: SongService = Depends(get_song_service),
) -> str:
    try:
        return await songs.get_song_text(song_id)
    except SongNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SongPersistenceError as exc:
        raise _server_error("Failed to read song text", exc) from exc


@router.post("/songs/add", status_code=status.HTTP_201_CREATED)
async def add_song(
    payload: schemas.AddSongRequest,
    songs: SongService = Depends(get_song_service),
) -> PlainTextResponse:
    if not payload.group.strip() or not payload.song.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="group and song are required.")

    try:
        await songs.add_song(group=payload.group, song=payload.song)
    except EnrichmentError as exc:
        raise _server_error("Failed to fetch song details", exc) from exc
    except SongPersistenceError as exc:
        raise _server_error("Failed to add song", exc) from exc

    return PlainTextResponse("Song added", status_code=status.HTTP_201_CREATED)


@router.put("/songs/{song_id}")
async def update_song(
    song_id: SongId,
    payload: schemas.UpdateSongRequest,
    songs: SongService = Depends(get_song_service),
) -> PlainTextResponse:
    """
    Partial update. Omitted fields and empty group/song keep the stored values.
    """
    try:
        await songs.update_song(
            song_id,
            group=payload.group,
            song=payload.song,
            release_date=payload.release_date,
            text=payload.text,
            link=payload.link,
        )
    except SongPersistenceError as exc:
        raise _server_error("Failed to update song", exc) from exc

    return PlainTextResponse("Song updated")


@router.delete("/songs/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_song(
    song_id: SongId,
    songs: SongService = Depends(get_song_service),
) -> Response:
    try:
        await songs.delete_song(song_id)
    except SongPersistenceError as exc:
        raise _server_error("Failed to delete song", exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
