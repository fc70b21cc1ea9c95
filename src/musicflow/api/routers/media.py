"""Media retrieval: stream, download, cover art, lyrics."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_cover_store, get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.application.services.browse_service import BrowseService
from musicflow.application.services.catalog_queries import load_song
from musicflow.domain.exceptions import AuthorizationError, EntityNotFoundException
from musicflow.infrastructure.images.cover_store import CoverStore, mime_for
from musicflow.infrastructure.persistence.models import AlbumModel, SongModel, UserModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])


async def _song_file(session: AsyncSession, song_id: str) -> tuple[SongModel, Path]:
    song = await load_song(session, song_id)
    path = Path(song.file_path)
    if not path.is_file():
        logger.warning(f"Song {song_id} is cataloged but missing on disk: {path}")
        raise EntityNotFoundException("File", song_id)
    return song, path


@subsonic_endpoint(router, "stream")
async def stream(
    song_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> FileResponse:
    if not user.stream_role:
        raise AuthorizationError("User is not allowed to stream")
    song, path = await _song_file(session, song_id)
    return FileResponse(path, media_type=song.content_type or "audio/mpeg")


@subsonic_endpoint(router, "download")
async def download(
    song_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> FileResponse:
    if not user.download_role:
        raise AuthorizationError("User is not allowed to download")
    _song, path = await _song_file(session, song_id)
    return FileResponse(path, media_type="application/octet-stream", filename=path.name)


@subsonic_endpoint(router, "getCoverArt")
async def get_cover_art(
    cover_id: str = Query(..., alias="id"),
    size: int | None = Query(None),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    store: CoverStore = Depends(get_cover_store),
) -> FileResponse:
    # Clients sometimes pass an album or song id instead of the cover id
    album = await session.get(AlbumModel, store.album_id_for(cover_id))
    if album is None:
        song = await session.get(SongModel, cover_id)
        if song is not None:
            album = await session.get(AlbumModel, song.album_id)
    if album is None or album.cover_art is None:
        raise EntityNotFoundException("Cover art", cover_id)

    if size is None:
        original = store.find_original(album.cover_art)
        if original is None:
            raise EntityNotFoundException("Cover art", cover_id)
        return FileResponse(original, media_type=mime_for(original))

    derivative = await store.get_derivative(album.cover_art, size)
    if derivative is None:
        raise EntityNotFoundException("Cover art", cover_id)
    return FileResponse(derivative, media_type="image/webp")


@subsonic_endpoint(router, "getLyrics")
async def get_lyrics(
    request: Request,
    artist: str | None = Query(None),
    title: str | None = Query(None),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    song = await BrowseService(session).find_lyrics(artist, title)
    if song is None:
        return subsonic_response(request, {"lyrics": {}})
    return subsonic_response(
        request,
        {"lyrics": {"artist": song.artist.name, "title": song.title, "value": song.lyrics}},
    )
