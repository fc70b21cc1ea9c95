"""Album and song lists."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import album_payload, artist_payload, song_payload
from musicflow.application.services.annotation_service import AnnotationService
from musicflow.application.services.list_service import ListService
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["lists"])


async def _album_list(
    session: AsyncSession,
    user: UserModel,
    list_type: str,
    size: int,
    offset: int,
    from_year: int | None,
    to_year: int | None,
    genre: str | None,
) -> list[dict]:
    albums = await ListService(session).album_list(
        list_type,
        user.id,
        size=size,
        offset=offset,
        from_year=from_year,
        to_year=to_year,
        genre=genre,
    )
    annotations = await AnnotationService(session).lookup(user.id, (a.id for a in albums))
    return [album_payload(album, annotations) for album in albums]


@subsonic_endpoint(router, "getAlbumList")
async def get_album_list(
    request: Request,
    list_type: str = Query(..., alias="type"),
    size: int = Query(10),
    offset: int = Query(0),
    from_year: int | None = Query(None, alias="fromYear"),
    to_year: int | None = Query(None, alias="toYear"),
    genre: str | None = Query(None),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    albums = await _album_list(session, user, list_type, size, offset, from_year, to_year, genre)
    return subsonic_response(request, {"albumList": {"album": albums}})


@subsonic_endpoint(router, "getAlbumList2")
async def get_album_list2(
    request: Request,
    list_type: str = Query(..., alias="type"),
    size: int = Query(10),
    offset: int = Query(0),
    from_year: int | None = Query(None, alias="fromYear"),
    to_year: int | None = Query(None, alias="toYear"),
    genre: str | None = Query(None),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    albums = await _album_list(session, user, list_type, size, offset, from_year, to_year, genre)
    return subsonic_response(request, {"albumList2": {"album": albums}})


@subsonic_endpoint(router, "getRandomSongs")
async def get_random_songs(
    request: Request,
    size: int = Query(10),
    genre: str | None = Query(None),
    from_year: int | None = Query(None, alias="fromYear"),
    to_year: int | None = Query(None, alias="toYear"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    songs = await ListService(session).random_songs(size, genre, from_year, to_year)
    annotations = await AnnotationService(session).lookup(user.id, (s.id for s in songs))
    return subsonic_response(
        request, {"randomSongs": {"song": [song_payload(s, annotations) for s in songs]}}
    )


@subsonic_endpoint(router, "getSongsByGenre")
async def get_songs_by_genre(
    request: Request,
    genre: str = Query(...),
    count: int = Query(10),
    offset: int = Query(0),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    songs = await ListService(session).songs_by_genre(genre, count, offset)
    annotations = await AnnotationService(session).lookup(user.id, (s.id for s in songs))
    return subsonic_response(
        request, {"songsByGenre": {"song": [song_payload(s, annotations) for s in songs]}}
    )


@subsonic_endpoint(router, "getTopSongs")
async def get_top_songs(
    request: Request,
    artist: str = Query(...),
    count: int = Query(50),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    songs = await ListService(session).top_songs(artist, count)
    annotations = await AnnotationService(session).lookup(user.id, (s.id for s in songs))
    return subsonic_response(
        request, {"topSongs": {"song": [song_payload(s, annotations) for s in songs]}}
    )


async def _starred_payload(session: AsyncSession, user: UserModel) -> dict:
    artists, albums, songs = await ListService(session).starred(user.id)
    annotations = await AnnotationService(session).lookup(
        user.id,
        [a.id for a in artists] + [a.id for a in albums] + [s.id for s in songs],
    )
    return {
        "artist": [artist_payload(a, annotations=annotations) for a in artists],
        "album": [album_payload(a, annotations) for a in albums],
        "song": [song_payload(s, annotations) for s in songs],
    }


@subsonic_endpoint(router, "getStarred")
async def get_starred(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    return subsonic_response(request, {"starred": await _starred_payload(session, user)})


@subsonic_endpoint(router, "getStarred2")
async def get_starred2(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    return subsonic_response(request, {"starred2": await _starred_payload(session, user)})
