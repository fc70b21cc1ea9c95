"""Playlist endpoints."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import playlist_payload
from musicflow.application.services.annotation_service import AnnotationService
from musicflow.application.services.playlist_service import PlaylistService
from musicflow.domain.exceptions import MissingParameterError
from musicflow.infrastructure.persistence.models import PlaylistModel, SongModel, UserModel

router = APIRouter(tags=["playlists"])


async def _with_songs(
    session: AsyncSession, user: UserModel, playlist: PlaylistModel, songs: list[SongModel]
) -> dict:
    annotations = await AnnotationService(session).lookup(user.id, (s.id for s in songs))
    return playlist_payload(playlist, songs, annotations)


@subsonic_endpoint(router, "getPlaylists")
async def get_playlists(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    playlists = await PlaylistService(session).list_visible(user)
    return subsonic_response(
        request, {"playlists": {"playlist": [playlist_payload(p) for p in playlists]}}
    )


@subsonic_endpoint(router, "getPlaylist")
async def get_playlist(
    request: Request,
    playlist_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    playlist, songs = await PlaylistService(session).get(playlist_id, user)
    return subsonic_response(
        request, {"playlist": await _with_songs(session, user, playlist, songs)}
    )


@subsonic_endpoint(router, "createPlaylist")
async def create_playlist(
    request: Request,
    playlist_id: str | None = Query(None, alias="playlistId"),
    name: str | None = Query(None),
    song_ids: list[str] = Query([], alias="songId"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    service = PlaylistService(session)
    if playlist_id:
        playlist, songs = await service.replace(playlist_id, user, song_ids, name)
    elif name:
        playlist, songs = await service.create(user, name, song_ids)
    else:
        raise MissingParameterError("name or playlistId")
    return subsonic_response(
        request, {"playlist": await _with_songs(session, user, playlist, songs)}
    )


@subsonic_endpoint(router, "updatePlaylist")
async def update_playlist(
    request: Request,
    playlist_id: str = Query(..., alias="playlistId"),
    name: str | None = Query(None),
    comment: str | None = Query(None),
    public: bool | None = Query(None),
    song_ids_to_add: list[str] = Query([], alias="songIdToAdd"),
    song_indexes_to_remove: list[int] = Query([], alias="songIndexToRemove"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await PlaylistService(session).update(
        playlist_id,
        user,
        name=name,
        comment=comment,
        public=public,
        song_ids_to_add=song_ids_to_add,
        song_indexes_to_remove=song_indexes_to_remove,
    )
    return subsonic_response(request)


@subsonic_endpoint(router, "deletePlaylist")
async def delete_playlist(
    request: Request,
    playlist_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await PlaylistService(session).delete(playlist_id, user)
    return subsonic_response(request)


@subsonic_endpoint(router, "appendPlaylist")
async def append_playlist(
    request: Request,
    playlist_id: str = Query(..., alias="id"),
    song_ids: list[str] = Query([], alias="songId"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await PlaylistService(session).append(playlist_id, user, song_ids)
    return subsonic_response(request)
