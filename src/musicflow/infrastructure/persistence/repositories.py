"""Catalog repositories.

Repositories stage changes on the injected session; committing is the job of
whoever owns the session (``Database.session_scope`` or the catalog writer).
"""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import String, delete, exists, func, select, type_coerce, update
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.domain.exceptions import EntityNotFoundException
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    PlaylistModel,
    PlaylistSongModel,
    RatingModel,
    SongModel,
    UserModel,
)


class ArtistRepository:
    """Artist lookups and orphan cleanup."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, artist_id: str) -> ArtistModel | None:
        return await self.session.get(ArtistModel, artist_id)

    async def require(self, artist_id: str) -> ArtistModel:
        artist = await self.get_by_id(artist_id)
        if artist is None:
            raise EntityNotFoundException("Artist", artist_id)
        return artist

    async def get_by_name(self, name: str) -> ArtistModel | None:
        """Exact, case-sensitive name match. Scans never fuzzy-merge artists."""
        result = await self.session.execute(
            select(ArtistModel).where(ArtistModel.name == name)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[ArtistModel]:
        result = await self.session.execute(
            select(ArtistModel).order_by(func.lower(ArtistModel.name))
        )
        return list(result.scalars().all())

    async def count_all(self) -> int:
        result = await self.session.execute(select(func.count(ArtistModel.id)))
        return int(result.scalar_one())

    async def delete_without_albums(self) -> int:
        """Delete every artist that owns no album. Returns rows deleted."""
        stmt = delete(ArtistModel).where(
            ~exists().where(AlbumModel.artist_id == ArtistModel.id)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]


class AlbumRepository:
    """Album lookups and derived-column maintenance."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, album_id: str) -> AlbumModel | None:
        return await self.session.get(AlbumModel, album_id)

    async def require(self, album_id: str) -> AlbumModel:
        album = await self.get_by_id(album_id)
        if album is None:
            raise EntityNotFoundException("Album", album_id)
        return album

    async def get_by_artist_and_name(self, artist_id: str, name: str) -> AlbumModel | None:
        result = await self.session.execute(
            select(AlbumModel).where(
                AlbumModel.artist_id == artist_id, AlbumModel.name == name
            )
        )
        return result.scalar_one_or_none()

    async def list_by_artist(self, artist_id: str) -> list[AlbumModel]:
        result = await self.session.execute(
            select(AlbumModel)
            .where(AlbumModel.artist_id == artist_id)
            .order_by(AlbumModel.year.desc(), AlbumModel.name)
        )
        return list(result.scalars().all())

    async def count_all(self) -> int:
        result = await self.session.execute(select(func.count(AlbumModel.id)))
        return int(result.scalar_one())

    async def refresh_stats(self, album_ids: Iterable[str]) -> None:
        """Recompute song_count and duration from the album's current songs."""
        for album_id in set(album_ids):
            song_count = (
                select(func.count(SongModel.id))
                .where(SongModel.album_id == album_id)
                .scalar_subquery()
            )
            total_duration = (
                select(func.coalesce(func.sum(SongModel.duration), 0))
                .where(SongModel.album_id == album_id)
                .scalar_subquery()
            )
            await self.session.execute(
                update(AlbumModel)
                .where(AlbumModel.id == album_id)
                .values(song_count=song_count, duration=total_duration)
                .execution_options(synchronize_session=False)
            )

    async def delete_without_songs(self) -> int:
        """Delete every album with zero songs. Returns rows deleted."""
        stmt = delete(AlbumModel).where(
            ~exists().where(SongModel.album_id == AlbumModel.id)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def set_cover(
        self, album_id: str, cover_id: str, cover_path: str, cover_hash: str
    ) -> bool:
        """Point the album at a stored cover. Returns False if the album is gone."""
        result = await self.session.execute(
            update(AlbumModel)
            .where(AlbumModel.id == album_id)
            .values(
                cover_art=cover_id,
                cover_art_path=cover_path,
                cover_art_hash=cover_hash,
            )
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)  # type: ignore[attr-defined]


class SongRepository:
    """Song lookups keyed by id or file path."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, song_id: str) -> SongModel | None:
        return await self.session.get(SongModel, song_id)

    async def require(self, song_id: str) -> SongModel:
        song = await self.get_by_id(song_id)
        if song is None:
            raise EntityNotFoundException("Song", song_id)
        return song

    async def get_by_file_path(self, file_path: str) -> SongModel | None:
        result = await self.session.execute(
            select(SongModel).where(SongModel.file_path == file_path)
        )
        return result.scalar_one_or_none()

    async def list_by_album(self, album_id: str) -> list[SongModel]:
        result = await self.session.execute(
            select(SongModel)
            .where(SongModel.album_id == album_id)
            .order_by(
                func.coalesce(SongModel.disc, 1),
                func.coalesce(SongModel.track, 0),
                SongModel.title,
            )
        )
        return list(result.scalars().all())

    async def count_all(self) -> int:
        result = await self.session.execute(select(func.count(SongModel.id)))
        return int(result.scalar_one())

    # Hey future me - updated_at is read back as RAW TEXT on purpose! The change detector
    # must treat an unreadable timestamp as "changed", and SQLAlchemy's DateTime processor
    # would raise on a malformed value before we ever got to decide that.
    async def timestamp_snapshot(self) -> dict[str, str | datetime | None]:
        """Map every cataloged file_path to its recorded updated_at."""
        result = await self.session.execute(
            select(SongModel.file_path, type_coerce(SongModel.updated_at, String))
        )
        return {row[0]: row[1] for row in result.all()}

    async def all_file_paths(self) -> list[tuple[str, str, str]]:
        """(song_id, album_id, file_path) for every song."""
        result = await self.session.execute(
            select(SongModel.id, SongModel.album_id, SongModel.file_path)
        )
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def delete_by_ids(self, song_ids: list[str]) -> int:
        if not song_ids:
            return 0
        result = await self.session.execute(
            delete(SongModel)
            .where(SongModel.id.in_(song_ids))
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)  # type: ignore[attr-defined]


class PlaylistRepository:
    """Playlist lookups and derived-column maintenance."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, playlist_id: str) -> PlaylistModel | None:
        return await self.session.get(PlaylistModel, playlist_id)

    async def ids_containing(self, song_ids: list[str]) -> set[str]:
        if not song_ids:
            return set()
        result = await self.session.execute(
            select(PlaylistSongModel.playlist_id)
            .where(PlaylistSongModel.song_id.in_(song_ids))
            .distinct()
        )
        return set(result.scalars().all())

    async def refresh_stats(self, playlist_ids: Iterable[str]) -> None:
        """Recompute song_count and duration from the playlist's entries."""
        for playlist_id in set(playlist_ids):
            song_count = (
                select(func.count())
                .select_from(PlaylistSongModel)
                .where(PlaylistSongModel.playlist_id == playlist_id)
                .scalar_subquery()
            )
            total_duration = (
                select(func.coalesce(func.sum(SongModel.duration), 0))
                .select_from(PlaylistSongModel)
                .join(SongModel, SongModel.id == PlaylistSongModel.song_id)
                .where(PlaylistSongModel.playlist_id == playlist_id)
                .scalar_subquery()
            )
            await self.session.execute(
                update(PlaylistModel)
                .where(PlaylistModel.id == playlist_id)
                .values(song_count=song_count, duration=total_duration)
                .execution_options(synchronize_session=False)
            )


class RatingRepository:
    """Ratings hold a bare item id, so catalog deletes do not cascade to them."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def delete_orphaned(self) -> int:
        """Delete ratings whose song, album or artist no longer exists."""
        catalog_ids = select(SongModel.id).union_all(
            select(AlbumModel.id), select(ArtistModel.id)
        )
        result = await self.session.execute(
            delete(RatingModel).where(RatingModel.item_id.not_in(catalog_ids))
        )
        return int(result.rowcount or 0)  # type: ignore[attr-defined]


class UserRepository:
    """User lookups."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_username(self, username: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()

    async def require_by_username(self, username: str) -> UserModel:
        user = await self.get_by_username(username)
        if user is None:
            raise EntityNotFoundException("User", username)
        return user

    async def list_all(self) -> list[UserModel]:
        result = await self.session.execute(select(UserModel).order_by(UserModel.username))
        return list(result.scalars().all())

    async def any_admin(self) -> bool:
        result = await self.session.execute(
            select(exists().where(UserModel.is_admin.is_(True)))
        )
        return bool(result.scalar())
