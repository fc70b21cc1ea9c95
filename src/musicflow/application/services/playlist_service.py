"""Playlist management.

Owners (and admins) may change a playlist; everyone else only sees public ones.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from musicflow.application.services.catalog_queries import load_songs_in_order
from musicflow.domain.exceptions import (
    AuthorizationError,
    EntityNotFoundException,
    ValidationException,
)
from musicflow.infrastructure.persistence.models import (
    PlaylistModel,
    PlaylistSongModel,
    SongModel,
    UserModel,
)
from musicflow.infrastructure.persistence.repositories import PlaylistRepository

logger = logging.getLogger(__name__)


class PlaylistService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.playlists = PlaylistRepository(session)

    async def list_visible(self, user: UserModel) -> list[PlaylistModel]:
        result = await self.session.execute(
            select(PlaylistModel)
            .options(selectinload(PlaylistModel.owner))
            .where(or_(PlaylistModel.owner_id == user.id, PlaylistModel.is_public.is_(True)))
            .order_by(PlaylistModel.name)
        )
        return list(result.scalars().all())

    async def get(self, playlist_id: str, user: UserModel) -> tuple[PlaylistModel, list[SongModel]]:
        playlist = await self._load(playlist_id)
        if not playlist.is_public and not self._can_modify(playlist, user):
            raise EntityNotFoundException("Playlist", playlist_id)
        return playlist, await self._songs(playlist)

    async def create(
        self, user: UserModel, name: str, song_ids: list[str]
    ) -> tuple[PlaylistModel, list[SongModel]]:
        if not user.playlist_role:
            raise AuthorizationError("User is not allowed to manage playlists")
        if not name.strip():
            raise ValidationException("Playlist name must not be empty")
        playlist = PlaylistModel(owner_id=user.id, name=name.strip())
        self.session.add(playlist)
        await self.session.flush()
        await self._replace_songs(playlist.id, song_ids)
        logger.info(f"Created playlist '{playlist.name}' for {user.username}")
        return await self.get(playlist.id, user)

    async def replace(
        self, playlist_id: str, user: UserModel, song_ids: list[str], name: str | None = None
    ) -> tuple[PlaylistModel, list[SongModel]]:
        """createPlaylist with playlistId: overwrite the song list."""
        playlist = await self._load_for_update(playlist_id, user)
        if name:
            playlist.name = name
        await self._replace_songs(playlist.id, song_ids)
        return await self.get(playlist.id, user)

    async def update(
        self,
        playlist_id: str,
        user: UserModel,
        name: str | None = None,
        comment: str | None = None,
        public: bool | None = None,
        song_ids_to_add: list[str] | None = None,
        song_indexes_to_remove: list[int] | None = None,
    ) -> None:
        playlist = await self._load_for_update(playlist_id, user)
        if name is not None:
            playlist.name = name
        if comment is not None:
            playlist.comment = comment
        if public is not None:
            playlist.is_public = public

        if song_ids_to_add or song_indexes_to_remove:
            current = [entry.song_id for entry in playlist.entries]
            remove = set(song_indexes_to_remove or [])
            kept = [song_id for index, song_id in enumerate(current) if index not in remove]
            await self._replace_songs(playlist.id, kept + list(song_ids_to_add or []))

    async def append(self, playlist_id: str, user: UserModel, song_ids: list[str]) -> None:
        """Add songs to the end of the playlist."""
        await self.update(playlist_id, user, song_ids_to_add=song_ids)

    async def delete(self, playlist_id: str, user: UserModel) -> None:
        playlist = await self._load_for_update(playlist_id, user)
        await self.session.delete(playlist)
        logger.info(f"Deleted playlist {playlist_id}")

    async def _load(self, playlist_id: str) -> PlaylistModel:
        result = await self.session.execute(
            select(PlaylistModel)
            .options(selectinload(PlaylistModel.owner), selectinload(PlaylistModel.entries))
            .where(PlaylistModel.id == playlist_id)
            .execution_options(populate_existing=True)
        )
        playlist = result.scalar_one_or_none()
        if playlist is None:
            raise EntityNotFoundException("Playlist", playlist_id)
        return playlist

    async def _load_for_update(self, playlist_id: str, user: UserModel) -> PlaylistModel:
        playlist = await self._load(playlist_id)
        if not self._can_modify(playlist, user):
            raise AuthorizationError("Only the owner may modify this playlist")
        return playlist

    @staticmethod
    def _can_modify(playlist: PlaylistModel, user: UserModel) -> bool:
        return playlist.owner_id == user.id or user.is_admin

    async def _songs(self, playlist: PlaylistModel) -> list[SongModel]:
        return await load_songs_in_order(
            self.session, [entry.song_id for entry in playlist.entries]
        )

    async def _replace_songs(self, playlist_id: str, song_ids: list[str]) -> None:
        songs = await load_songs_in_order(self.session, song_ids)
        if len(songs) != len(song_ids):
            missing = sorted(set(song_ids) - {song.id for song in songs})
            raise EntityNotFoundException("Song", ", ".join(missing))

        playlist = await self._load(playlist_id)
        playlist.entries.clear()
        await self.session.flush()
        for position, song in enumerate(songs):
            playlist.entries.append(
                PlaylistSongModel(playlist_id=playlist_id, position=position, song_id=song.id)
            )
        await self.session.flush()
        await self.playlists.refresh_stats([playlist_id])
