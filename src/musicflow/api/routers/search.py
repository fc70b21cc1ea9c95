"""search, search2 and search3."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import album_payload, artist_payload, song_payload
from musicflow.application.services.annotation_service import AnnotationService
from musicflow.application.services.search_service import SearchPage, SearchService
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["search"])


async def _search(
    session: AsyncSession,
    user: UserModel,
    query: str | None,
    artists: SearchPage,
    albums: SearchPage,
    songs: SearchPage,
) -> dict:
    result = await SearchService(session).search(query, artists, albums, songs)
    annotations = await AnnotationService(session).lookup(
        user.id,
        [a.id for a in result.artists]
        + [a.id for a in result.albums]
        + [s.id for s in result.songs],
    )
    return {
        "artist": [artist_payload(a, annotations=annotations) for a in result.artists],
        "album": [album_payload(a, annotations) for a in result.albums],
        "song": [song_payload(s, annotations) for s in result.songs],
    }


@subsonic_endpoint(router, "search3")
async def search3(
    request: Request,
    query: str | None = Query(None),
    artist_count: int = Query(20, alias="artistCount"),
    artist_offset: int = Query(0, alias="artistOffset"),
    album_count: int = Query(20, alias="albumCount"),
    album_offset: int = Query(0, alias="albumOffset"),
    song_count: int = Query(20, alias="songCount"),
    song_offset: int = Query(0, alias="songOffset"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    payload = await _search(
        session,
        user,
        query,
        SearchPage(artist_count, artist_offset),
        SearchPage(album_count, album_offset),
        SearchPage(song_count, song_offset),
    )
    return subsonic_response(request, {"searchResult3": payload})


@subsonic_endpoint(router, "search2")
async def search2(
    request: Request,
    query: str | None = Query(None),
    artist_count: int = Query(20, alias="artistCount"),
    artist_offset: int = Query(0, alias="artistOffset"),
    album_count: int = Query(20, alias="albumCount"),
    album_offset: int = Query(0, alias="albumOffset"),
    song_count: int = Query(20, alias="songCount"),
    song_offset: int = Query(0, alias="songOffset"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    payload = await _search(
        session,
        user,
        query,
        SearchPage(artist_count, artist_offset),
        SearchPage(album_count, album_offset),
        SearchPage(song_count, song_offset),
    )
    return subsonic_response(request, {"searchResult2": payload})


@subsonic_endpoint(router, "search")
async def search(
    request: Request,
    artist: str | None = Query(None),
    album: str | None = Query(None),
    title: str | None = Query(None),
    any_field: str | None = Query(None, alias="any"),
    count: int = Query(20),
    offset: int = Query(0),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    matches = await SearchService(session).search_songs(
        artist=artist, album=album, title=title, any_field=any_field, count=count, offset=offset
    )
    annotations = await AnnotationService(session).lookup(user.id, (s.id for s in matches.songs))
    return subsonic_response(
        request,
        {
            "searchResult": {
                "offset": offset,
                "totalHits": matches.total,
                "match": [song_payload(s, annotations) for s in matches.songs],
            }
        },
    )
