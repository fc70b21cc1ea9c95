"""Browsing endpoints: folders, indexes, artists, albums, songs, genres."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import (
    get_current_user,
    get_db_session,
    get_settings_from_state,
)
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import album_payload, artist_payload, song_payload
from musicflow.application.services.annotation_service import AnnotationService
from musicflow.application.services.browse_service import IGNORED_ARTICLES, BrowseService
from musicflow.application.services.catalog_queries import load_song
from musicflow.config import Settings
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["browsing"])

MUSIC_FOLDER_ID = 1


def music_folder_payload(settings: Settings) -> dict:
    return {"id": MUSIC_FOLDER_ID, "name": settings.storage.music_path.name or "Music"}


@subsonic_endpoint(router, "getMusicFolders")
async def get_music_folders(
    request: Request,
    user: UserModel = Depends(get_current_user),
    settings: Settings = Depends(get_settings_from_state),
) -> Response:
    return subsonic_response(
        request, {"musicFolders": {"musicFolder": [music_folder_payload(settings)]}}
    )


async def _index_payload(session: AsyncSession, user: UserModel) -> dict:
    service = BrowseService(session)
    groups = await service.indexes()
    annotations = await AnnotationService(session).lookup(
        user.id, (entry.artist.id for group in groups for entry in group.artists)
    )
    return {
        "ignoredArticles": " ".join(IGNORED_ARTICLES),
        "index": [
            {
                "name": group.name,
                "artist": [
                    artist_payload(entry.artist, entry.album_count, annotations)
                    for entry in group.artists
                ],
            }
            for group in groups
        ],
    }


@subsonic_endpoint(router, "getIndexes")
async def get_indexes(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    payload = await _index_payload(session, user)
    payload["lastModified"] = await BrowseService(session).last_modified_ms()
    return subsonic_response(request, {"indexes": payload})


@subsonic_endpoint(router, "getArtists")
async def get_artists(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    return subsonic_response(request, {"artists": await _index_payload(session, user)})


@subsonic_endpoint(router, "getMusicDirectory")
async def get_music_directory(
    request: Request,
    directory_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    directory = await BrowseService(session).get_music_directory(directory_id)
    annotations = await AnnotationService(session).lookup(
        user.id,
        [directory.id]
        + [album.id for album in directory.albums]
        + [song.id for song in directory.songs],
    )
    children = [album_payload(album, annotations) for album in directory.albums]
    children += [song_payload(song, annotations) for song in directory.songs]
    payload = {
        "id": directory.id,
        "name": directory.name,
        "parent": directory.parent,
        "child": children,
    }
    if directory.id in annotations.starred:
        payload["starred"] = annotations.starred[directory.id]
    return subsonic_response(request, {"directory": payload})


@subsonic_endpoint(router, "getArtist")
async def get_artist(
    request: Request,
    artist_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    artist, albums = await BrowseService(session).get_artist(artist_id)
    annotations = await AnnotationService(session).lookup(
        user.id, [artist.id] + [album.id for album in albums]
    )
    payload = artist_payload(artist, len(albums), annotations)
    payload["album"] = [album_payload(album, annotations) for album in albums]
    return subsonic_response(request, {"artist": payload})


@subsonic_endpoint(router, "getAlbum")
async def get_album(
    request: Request,
    album_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    album, songs = await BrowseService(session).get_album(album_id)
    annotations = await AnnotationService(session).lookup(
        user.id, [album.id] + [song.id for song in songs]
    )
    payload = album_payload(album, annotations)
    payload["song"] = [song_payload(song, annotations) for song in songs]
    return subsonic_response(request, {"album": payload})


@subsonic_endpoint(router, "getSong")
async def get_song(
    request: Request,
    song_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    song = await load_song(session, song_id)
    annotations = await AnnotationService(session).lookup(user.id, [song.id])
    return subsonic_response(request, {"song": song_payload(song, annotations)})


@subsonic_endpoint(router, "getGenres")
async def get_genres(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    genres = await BrowseService(session).genres()
    return subsonic_response(
        request,
        {
            "genres": {
                "genre": [
                    {"songCount": g.song_count, "albumCount": g.album_count, "value": g.name}
                    for g in genres
                ]
            }
        },
    )
