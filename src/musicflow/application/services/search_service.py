"""search, search2 and search3: case-insensitive substring search."""

from dataclasses import dataclass

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.application.services.catalog_queries import (
    album_select,
    clamp_page,
    song_select,
)
from musicflow.domain.exceptions import MissingParameterError
from musicflow.infrastructure.persistence.models import AlbumModel, ArtistModel, SongModel


@dataclass
class SearchPage:
    count: int = 20
    offset: int = 0


@dataclass
class SearchResult:
    artists: list[ArtistModel]
    albums: list[AlbumModel]
    songs: list[SongModel]


@dataclass
class SongMatches:
    songs: list[SongModel]
    total: int


def normalize_query(query: str | None) -> str:
    """Strip quotes and wildcards clients add; empty means match everything."""
    if not query:
        return ""
    return query.strip().strip('"').strip("*").strip()


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, term: str) -> ColumnElement[bool]:  # type: ignore[no-untyped-def]
    return func.lower(column).like(f"%{_escape_like(term.lower())}%", escape="\\")


class SearchService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def search(
        self,
        query: str | None,
        artists: SearchPage,
        albums: SearchPage,
        songs: SearchPage,
    ) -> SearchResult:
        term = normalize_query(query)

        artist_stmt = select(ArtistModel).order_by(func.lower(ArtistModel.name))
        album_stmt = album_select().order_by(func.lower(AlbumModel.name))
        song_stmt = song_select().order_by(func.lower(SongModel.title))
        if term:
            artist_stmt = artist_stmt.where(_contains(ArtistModel.name, term))
            album_stmt = album_stmt.where(_contains(AlbumModel.name, term))
            song_stmt = song_stmt.where(_contains(SongModel.title, term))

        return SearchResult(
            artists=await self._page(artist_stmt, artists),
            albums=await self._page(album_stmt, albums),
            songs=await self._page(song_stmt, songs),
        )

    async def search_songs(
        self,
        artist: str | None = None,
        album: str | None = None,
        title: str | None = None,
        any_field: str | None = None,
        count: int = 20,
        offset: int = 0,
    ) -> SongMatches:
        """Legacy search: every given field must match, ``any`` matches title, album or artist."""
        conditions: list[ColumnElement[bool]] = []
        if artist:
            conditions.append(_contains(ArtistModel.name, artist))
        if album:
            conditions.append(_contains(AlbumModel.name, album))
        if title:
            conditions.append(_contains(SongModel.title, title))
        if any_field:
            conditions.append(
                or_(
                    _contains(SongModel.title, any_field),
                    _contains(AlbumModel.name, any_field),
                    _contains(ArtistModel.name, any_field),
                )
            )
        if not conditions:
            raise MissingParameterError("artist, album, title or any")

        stmt = (
            song_select()
            .join(AlbumModel, AlbumModel.id == SongModel.album_id)
            .join(ArtistModel, ArtistModel.id == SongModel.artist_id)
            .where(*conditions)
        )
        total = await self.session.scalar(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        )
        page = await self._page(
            stmt.order_by(func.lower(SongModel.title), SongModel.id), SearchPage(count, offset)
        )
        return SongMatches(songs=page, total=int(total or 0))

    async def _page(self, stmt, page: SearchPage) -> list:  # type: ignore[no-untyped-def]
        if page.count <= 0:
            return []
        result = await self.session.execute(
            stmt.limit(clamp_page(page.count, default=20)).offset(max(page.offset, 0))
        )
        return list(result.scalars().all())
