"""Browsing by artist, album and genre."""

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.application.services.catalog_queries import (
    album_select,
    load_album,
    song_select,
)
from musicflow.domain.exceptions import EntityNotFoundException
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    SongModel,
    ensure_utc_aware,
)

IGNORED_ARTICLES = ("The", "El", "La", "Los", "Las", "Le", "Les")


def index_letter(name: str) -> str:
    """Index bucket for an artist: uppercase first letter, or # for anything else."""
    stripped = name.strip()
    if not stripped:
        return "#"
    first = stripped[0].upper()
    return first if first.isalpha() else "#"


@dataclass
class ArtistEntry:
    artist: ArtistModel
    album_count: int


@dataclass
class IndexGroup:
    name: str
    artists: list[ArtistEntry]


@dataclass
class GenreEntry:
    name: str
    song_count: int
    album_count: int


@dataclass
class Directory:
    """getMusicDirectory result: an artist's albums or an album's songs."""

    id: str
    name: str
    parent: str | None
    albums: list[AlbumModel]
    songs: list[SongModel]


class BrowseService:
    """Read-only catalog browsing."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def artists_with_counts(self) -> list[ArtistEntry]:
        album_count = (
            select(func.count(AlbumModel.id))
            .where(AlbumModel.artist_id == ArtistModel.id)
            .correlate(ArtistModel)
            .scalar_subquery()
        )
        result = await self.session.execute(
            select(ArtistModel, album_count).order_by(func.lower(ArtistModel.name))
        )
        return [ArtistEntry(artist=row[0], album_count=int(row[1])) for row in result.all()]

    async def indexes(self) -> list[IndexGroup]:
        """Artists grouped by index letter, letters sorted with # last."""
        groups: dict[str, list[ArtistEntry]] = {}
        for entry in await self.artists_with_counts():
            groups.setdefault(index_letter(entry.artist.name), []).append(entry)
        ordered = sorted(groups, key=lambda letter: (letter == "#", letter))
        return [IndexGroup(name=letter, artists=groups[letter]) for letter in ordered]

    async def last_modified_ms(self) -> int:
        result = await self.session.execute(select(func.max(SongModel.updated_at)))
        latest = result.scalar_one_or_none()
        return int(ensure_utc_aware(latest).timestamp() * 1000) if latest else 0

    async def get_artist(self, artist_id: str) -> tuple[ArtistModel, list[AlbumModel]]:
        artist = await self.session.get(ArtistModel, artist_id)
        if artist is None:
            raise EntityNotFoundException("Artist", artist_id)
        result = await self.session.execute(
            album_select()
            .where(AlbumModel.artist_id == artist_id)
            .order_by(AlbumModel.year.desc(), AlbumModel.name)
        )
        return artist, list(result.scalars().all())

    async def get_album(self, album_id: str) -> tuple[AlbumModel, list[SongModel]]:
        album = await load_album(self.session, album_id)
        return album, await self.album_songs(album_id)

    async def album_songs(self, album_id: str) -> list[SongModel]:
        """Songs of an album ordered by disc, then track."""
        result = await self.session.execute(
            song_select()
            .where(SongModel.album_id == album_id)
            .order_by(
                func.coalesce(SongModel.disc, 1),
                func.coalesce(SongModel.track, 0),
                SongModel.title,
            )
        )
        return list(result.scalars().all())

    async def get_music_directory(self, directory_id: str) -> Directory:
        artist = await self.session.get(ArtistModel, directory_id)
        if artist is not None:
            _, albums = await self.get_artist(directory_id)
            return Directory(
                id=artist.id, name=artist.name, parent="1", albums=albums, songs=[]
            )
        album = await self.session.get(AlbumModel, directory_id)
        if album is not None:
            album, songs = await self.get_album(directory_id)
            return Directory(
                id=album.id, name=album.name, parent=album.artist_id, albums=[], songs=songs
            )
        raise EntityNotFoundException("Directory", directory_id)

    async def genres(self) -> list[GenreEntry]:
        song_counts = await self.session.execute(
            select(SongModel.genre, func.count(SongModel.id))
            .where(SongModel.genre.is_not(None), SongModel.genre != "")
            .group_by(SongModel.genre)
        )
        album_counts = await self.session.execute(
            select(AlbumModel.genre, func.count(AlbumModel.id))
            .where(AlbumModel.genre.is_not(None), AlbumModel.genre != "")
            .group_by(AlbumModel.genre)
        )
        albums_by_genre = {row[0]: int(row[1]) for row in album_counts.all()}
        entries = [
            GenreEntry(name=row[0], song_count=int(row[1]), album_count=albums_by_genre.pop(row[0], 0))
            for row in song_counts.all()
        ]
        entries.extend(GenreEntry(name=name, song_count=0, album_count=count) for name, count in albums_by_genre.items())
        return sorted(entries, key=lambda entry: entry.name.lower())

    async def find_lyrics(self, artist: str | None, title: str | None) -> SongModel | None:
        """First song with stored lyrics whose artist/title contain the given text."""
        stmt = song_select().where(SongModel.lyrics.is_not(None), SongModel.lyrics != "")
        if artist:
            stmt = stmt.join(ArtistModel, ArtistModel.id == SongModel.artist_id).where(
                ArtistModel.name.ilike(f"%{artist}%")
            )
        if title:
            stmt = stmt.where(SongModel.title.ilike(f"%{title}%"))
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none()
