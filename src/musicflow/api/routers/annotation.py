"""Stars, ratings, scrobbles and the now-playing list."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import song_payload
from musicflow.application.services.annotation_service import AnnotationService
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["annotation"])


@subsonic_endpoint(router, "star")
async def star(
    request: Request,
    ids: list[str] = Query([], alias="id"),
    album_ids: list[str] = Query([], alias="albumId"),
    artist_ids: list[str] = Query([], alias="artistId"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await AnnotationService(session).star(user, ids, album_ids, artist_ids)
    return subsonic_response(request)


@subsonic_endpoint(router, "unstar")
async def unstar(
    request: Request,
    ids: list[str] = Query([], alias="id"),
    album_ids: list[str] = Query([], alias="albumId"),
    artist_ids: list[str] = Query([], alias="artistId"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await AnnotationService(session).unstar(user, ids, album_ids, artist_ids)
    return subsonic_response(request)


@subsonic_endpoint(router, "setRating")
async def set_rating(
    request: Request,
    item_id: str = Query(..., alias="id"),
    rating: int = Query(...),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await AnnotationService(session).set_rating(user, item_id, rating)
    return subsonic_response(request)


@subsonic_endpoint(router, "getRating")
async def get_rating(
    request: Request,
    item_id: str = Query(..., alias="id"),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    rating = await AnnotationService(session).get_rating(user, item_id)
    return subsonic_response(request, {"rating": {"id": item_id, "rating": rating}})


@subsonic_endpoint(router, "scrobble")
async def scrobble(
    request: Request,
    ids: list[str] = Query(..., alias="id"),
    times: list[int] = Query([], alias="time"),
    submission: bool = Query(True),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await AnnotationService(session).scrobble(user, ids, times, submission)
    return subsonic_response(request)


@subsonic_endpoint(router, "getNowPlaying")
async def get_now_playing(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    service = AnnotationService(session)
    playing = await service.now_playing()
    annotations = await service.lookup(user.id, (entry.song.id for entry in playing))
    entries = []
    for entry in playing:
        payload = song_payload(entry.song, annotations)
        payload.update(username=entry.username, minutesAgo=entry.minutes_ago, playerId=0)
        entries.append(payload)
    return subsonic_response(request, {"nowPlaying": {"entry": entries}})
