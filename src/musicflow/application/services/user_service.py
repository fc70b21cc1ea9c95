"""User administration."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.application.services.auth_service import decode_password
from musicflow.domain.exceptions import (
    AuthorizationError,
    ValidationException,
)
from musicflow.infrastructure.persistence.models import UserModel
from musicflow.infrastructure.persistence.repositories import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class UserChanges:
    """Optional fields accepted by createUser/updateUser. None means unchanged."""

    email: str | None = None
    password: str | None = None
    admin_role: bool | None = None
    settings_role: bool | None = None
    stream_role: bool | None = None
    download_role: bool | None = None
    upload_role: bool | None = None
    playlist_role: bool | None = None
    cover_art_role: bool | None = None
    comment_role: bool | None = None
    podcast_role: bool | None = None
    share_role: bool | None = None
    video_conversion_role: bool | None = None
    scrobbling_enabled: bool | None = None
    max_bit_rate: int | None = None


_ROLE_FIELDS = {
    "admin_role": "is_admin",
    "settings_role": "settings_role",
    "stream_role": "stream_role",
    "download_role": "download_role",
    "upload_role": "upload_role",
    "playlist_role": "playlist_role",
    "cover_art_role": "cover_art_role",
    "comment_role": "comment_role",
    "podcast_role": "podcast_role",
    "share_role": "share_role",
    "video_conversion_role": "video_conversion_role",
    "scrobbling_enabled": "scrobbling_enabled",
    "max_bit_rate": "max_bit_rate",
}


def require_admin(user: UserModel) -> None:
    if not user.is_admin:
        raise AuthorizationError("Admin role required")


class UserService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)

    async def get(self, caller: UserModel, username: str) -> UserModel:
        if username != caller.username:
            require_admin(caller)
        return await self.users.require_by_username(username)

    async def list_all(self, caller: UserModel) -> list[UserModel]:
        require_admin(caller)
        return await self.users.list_all()

    async def create(self, caller: UserModel, username: str, changes: UserChanges) -> UserModel:
        require_admin(caller)
        if not username.strip():
            raise ValidationException("Username must not be empty")
        if not changes.password:
            raise ValidationException("Password must not be empty")
        if await self.users.get_by_username(username) is not None:
            raise ValidationException(f"User {username} already exists")

        user = UserModel(username=username, password=decode_password(changes.password))
        self._apply(user, changes)
        self.session.add(user)
        await self.session.flush()
        logger.info(f"Created user {username}")
        return user

    async def update(self, caller: UserModel, username: str, changes: UserChanges) -> UserModel:
        require_admin(caller)
        user = await self.users.require_by_username(username)
        if changes.password:
            user.password = decode_password(changes.password)
        self._apply(user, changes)
        return user

    async def delete(self, caller: UserModel, username: str) -> None:
        require_admin(caller)
        if username == caller.username:
            raise ValidationException("Users cannot delete themselves")
        user = await self.users.require_by_username(username)
        await self.session.delete(user)
        logger.info(f"Deleted user {username}")

    async def change_password(self, caller: UserModel, username: str, password: str) -> None:
        if username != caller.username:
            require_admin(caller)
        decoded = decode_password(password)
        if not decoded:
            raise ValidationException("Password must not be empty")
        user = await self.users.require_by_username(username)
        user.password = decoded

    @staticmethod
    def _apply(user: UserModel, changes: UserChanges) -> None:
        if changes.email is not None:
            user.email = changes.email
        for change_field, column in _ROLE_FIELDS.items():
            value = getattr(changes, change_field)
            if value is not None:
                setattr(user, column, value)
