"""Album lists, random songs, genre and top-song listings.

Optional filters are composed as SQLAlchemy expressions; user input never
ends up in SQL text.
"""

from sqlalchemy import ColumnElement, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.application.services.catalog_queries import (
    album_select,
    clamp_page,
    song_select,
)
from musicflow.domain.entities import AlbumListType
from musicflow.domain.exceptions import MissingParameterError, ValidationException
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    SongModel,
    StarredModel,
)


def year_range_filter(
    column: ColumnElement[int | None], from_year: int | None, to_year: int | None
) -> list[ColumnElement[bool]]:
    """Inclusive year range; a reversed range (2010..2000) is honoured too."""
    conditions: list[ColumnElement[bool]] = [column.is_not(None)]
    if from_year is not None and to_year is not None:
        low, high = sorted((from_year, to_year))
        conditions.append(column.between(low, high))
    elif from_year is not None:
        conditions.append(column >= from_year)
    elif to_year is not None:
        conditions.append(column <= to_year)
    return conditions


class ListService:
    """Ordered and filtered catalog listings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def album_list(
        self,
        list_type: str,
        user_id: str,
        size: int = 10,
        offset: int = 0,
        from_year: int | None = None,
        to_year: int | None = None,
        genre: str | None = None,
    ) -> list[AlbumModel]:
        try:
            kind = AlbumListType(list_type)
        except ValueError as e:
            raise ValidationException(f"Unknown album list type: {list_type}") from e

        stmt = album_select()
        if kind is AlbumListType.RANDOM:
            stmt = stmt.order_by(func.random())
        elif kind is AlbumListType.NEWEST:
            stmt = stmt.order_by(AlbumModel.created_at.desc())
        elif kind in (AlbumListType.HIGHEST, AlbumListType.FREQUENT):
            stmt = stmt.order_by(AlbumModel.play_count.desc(), AlbumModel.name)
        elif kind is AlbumListType.RECENT:
            stmt = stmt.order_by(AlbumModel.updated_at.desc())
        elif kind is AlbumListType.ALPHABETICAL_BY_NAME:
            stmt = stmt.order_by(func.lower(AlbumModel.name))
        elif kind is AlbumListType.ALPHABETICAL_BY_ARTIST:
            stmt = stmt.join(ArtistModel, ArtistModel.id == AlbumModel.artist_id).order_by(
                func.lower(ArtistModel.name), func.lower(AlbumModel.name)
            )
        elif kind is AlbumListType.BY_YEAR:
            stmt = stmt.where(and_(*year_range_filter(AlbumModel.year, from_year, to_year)))
            descending = from_year is not None and to_year is not None and from_year > to_year
            stmt = stmt.order_by(
                AlbumModel.year.desc() if descending else AlbumModel.year, AlbumModel.name
            )
        elif kind is AlbumListType.BY_GENRE:
            if not genre:
                raise MissingParameterError("genre")
            stmt = stmt.where(AlbumModel.genre == genre).order_by(AlbumModel.name)
        elif kind is AlbumListType.STARRED:
            stmt = stmt.join(StarredModel, StarredModel.album_id == AlbumModel.id).where(
                StarredModel.user_id == user_id
            ).order_by(StarredModel.created_at.desc())

        result = await self.session.execute(
            stmt.limit(clamp_page(size)).offset(max(offset, 0))
        )
        return list(result.scalars().all())

    async def random_songs(
        self,
        size: int = 10,
        genre: str | None = None,
        from_year: int | None = None,
        to_year: int | None = None,
    ) -> list[SongModel]:
        conditions: list[ColumnElement[bool]] = []
        if genre:
            conditions.append(SongModel.genre == genre)
        if from_year is not None or to_year is not None:
            conditions.extend(year_range_filter(SongModel.year, from_year, to_year))

        stmt = song_select()
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.session.execute(
            stmt.order_by(func.random()).limit(clamp_page(size))
        )
        return list(result.scalars().all())

    async def songs_by_genre(self, genre: str, count: int = 10, offset: int = 0) -> list[SongModel]:
        result = await self.session.execute(
            song_select()
            .where(SongModel.genre == genre)
            .order_by(SongModel.title)
            .limit(clamp_page(count))
            .offset(max(offset, 0))
        )
        return list(result.scalars().all())

    async def top_songs(self, artist_name: str, count: int = 50) -> list[SongModel]:
        result = await self.session.execute(
            song_select()
            .join(ArtistModel, ArtistModel.id == SongModel.artist_id)
            .where(ArtistModel.name == artist_name)
            .order_by(SongModel.play_count.desc(), SongModel.title)
            .limit(clamp_page(count, default=50))
        )
        return list(result.scalars().all())

    async def starred(
        self, user_id: str
    ) -> tuple[list[ArtistModel], list[AlbumModel], list[SongModel]]:
        artists = await self.session.execute(
            select(ArtistModel)
            .join(StarredModel, StarredModel.artist_id == ArtistModel.id)
            .where(StarredModel.user_id == user_id)
            .order_by(ArtistModel.name)
        )
        albums = await self.session.execute(
            album_select()
            .join(StarredModel, StarredModel.album_id == AlbumModel.id)
            .where(StarredModel.user_id == user_id)
            .order_by(AlbumModel.name)
        )
        songs = await self.session.execute(
            song_select()
            .join(StarredModel, StarredModel.song_id == SongModel.id)
            .where(StarredModel.user_id == user_id)
            .order_by(SongModel.title)
        )
        return (
            list(artists.scalars().all()),
            list(albums.scalars().all()),
            list(songs.scalars().all()),
        )
