"""Play queue endpoints."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import play_queue_payload
from musicflow.application.services.annotation_service import AnnotationService
from musicflow.application.services.play_queue_service import PlayQueueService
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["play_queue"])


@subsonic_endpoint(router, "getPlayQueue")
async def get_play_queue(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    saved = await PlayQueueService(session).get(user)
    if saved is None:
        return subsonic_response(request, {"playQueue": {"entry": []}})
    queue, songs = saved
    annotations = await AnnotationService(session).lookup(user.id, (s.id for s in songs))
    payload = play_queue_payload(queue, songs, annotations)
    payload["username"] = user.username
    return subsonic_response(request, {"playQueue": payload})


@subsonic_endpoint(router, "savePlayQueue")
async def save_play_queue(
    request: Request,
    ids: list[str] = Query([], alias="id"),
    current: str | None = Query(None),
    position: int = Query(0),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await PlayQueueService(session).save(
        user, ids, current, position, client=request.query_params.get("c")
    )
    return subsonic_response(request)
