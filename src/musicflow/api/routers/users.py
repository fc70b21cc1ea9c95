"""User management endpoints."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.api.dependencies import get_current_user, get_db_session
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.api.subsonic.serializers import user_payload
from musicflow.application.services.user_service import UserChanges, UserService
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["users"])


def _changes(request: Request) -> UserChanges:
    """Collect the optional createUser/updateUser fields from the query string."""
    params = request.query_params

    def flag(name: str) -> bool | None:
        value = params.get(name)
        if value is None:
            return None
        return value.lower() in ("true", "1", "yes")

    max_bit_rate = params.get("maxBitRate")
    return UserChanges(
        email=params.get("email"),
        password=params.get("password"),
        admin_role=flag("adminRole"),
        settings_role=flag("settingsRole"),
        stream_role=flag("streamRole"),
        download_role=flag("downloadRole"),
        upload_role=flag("uploadRole"),
        playlist_role=flag("playlistRole"),
        cover_art_role=flag("coverArtRole"),
        comment_role=flag("commentRole"),
        podcast_role=flag("podcastRole"),
        share_role=flag("shareRole"),
        video_conversion_role=flag("videoConversionRole"),
        scrobbling_enabled=flag("scrobblingEnabled"),
        max_bit_rate=int(max_bit_rate) if max_bit_rate and max_bit_rate.isdigit() else None,
    )


@subsonic_endpoint(router, "getUser")
async def get_user(
    request: Request,
    username: str = Query(...),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    target = await UserService(session).get(user, username)
    return subsonic_response(request, {"user": user_payload(target)})


@subsonic_endpoint(router, "getUsers")
async def get_users(
    request: Request,
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    users = await UserService(session).list_all(user)
    return subsonic_response(request, {"users": {"user": [user_payload(u) for u in users]}})


@subsonic_endpoint(router, "createUser")
async def create_user(
    request: Request,
    username: str = Query(...),
    password: str = Query(...),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await UserService(session).create(user, username, _changes(request))
    return subsonic_response(request)


@subsonic_endpoint(router, "updateUser")
async def update_user(
    request: Request,
    username: str = Query(...),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await UserService(session).update(user, username, _changes(request))
    return subsonic_response(request)


@subsonic_endpoint(router, "deleteUser")
async def delete_user(
    request: Request,
    username: str = Query(...),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await UserService(session).delete(user, username)
    return subsonic_response(request)


@subsonic_endpoint(router, "changePassword")
async def change_password(
    request: Request,
    username: str = Query(...),
    password: str = Query(...),
    user: UserModel = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await UserService(session).change_password(user, username, password)
    return subsonic_response(request)
