"""Shared catalog query pieces.

Everything that feeds the serializers loads relationships eagerly through
these options; async sessions cannot lazy-load.
"""

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from musicflow.domain.exceptions import EntityNotFoundException
from musicflow.infrastructure.persistence.models import AlbumModel, SongModel

SONG_OPTIONS = (selectinload(SongModel.album), selectinload(SongModel.artist))
ALBUM_OPTIONS = (selectinload(AlbumModel.artist),)

MAX_PAGE_SIZE = 500


def song_select() -> Select[tuple[SongModel]]:
    return select(SongModel).options(*SONG_OPTIONS)


def album_select() -> Select[tuple[AlbumModel]]:
    return select(AlbumModel).options(*ALBUM_OPTIONS)


def clamp_page(size: int, default: int = 10, maximum: int = MAX_PAGE_SIZE) -> int:
    if size <= 0:
        return default
    return min(size, maximum)


async def load_song(session: AsyncSession, song_id: str) -> SongModel:
    result = await session.execute(song_select().where(SongModel.id == song_id))
    song = result.scalar_one_or_none()
    if song is None:
        raise EntityNotFoundException("Song", song_id)
    return song


async def load_album(session: AsyncSession, album_id: str) -> AlbumModel:
    result = await session.execute(album_select().where(AlbumModel.id == album_id))
    album = result.scalar_one_or_none()
    if album is None:
        raise EntityNotFoundException("Album", album_id)
    return album


async def load_songs_in_order(session: AsyncSession, song_ids: list[str]) -> list[SongModel]:
    """Load songs keeping the caller's order and duplicates; unknown ids are dropped."""
    if not song_ids:
        return []
    result = await session.execute(song_select().where(SongModel.id.in_(set(song_ids))))
    by_id = {song.id: song for song in result.scalars().all()}
    return [by_id[song_id] for song_id in song_ids if song_id in by_id]
