"""Transactional batch writer for extracted track metadata."""

import hashlib
import logging
from collections.abc import Callable
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.domain.entities import BatchResult, PendingCover, TrackMetadata
from musicflow.domain.exceptions import BatchWriteFailed
from musicflow.infrastructure.persistence.database import Database
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    SongModel,
    new_id,
    utc_now,
)
from musicflow.infrastructure.persistence.repositories import (
    AlbumRepository,
    ArtistRepository,
    SongRepository,
)

logger = logging.getLogger(__name__)


class CatalogWriter:
    """Upserts artist -> album -> song rows, one transaction per batch.

    A batch either lands completely or not at all. Cover bytes found while
    writing are returned as pending effects and must only be processed
    after ``write_batch`` reports a commit.
    """

    def __init__(self, db: Database, id_factory: Callable[[], str] = new_id) -> None:
        self.db = db
        self._new_id = id_factory

    async def write_batch(self, batch: list[TrackMetadata]) -> BatchResult:
        if not batch:
            return BatchResult()

        pending: list[PendingCover] = []
        try:
            async with self.db.session_scope() as session:
                touched_albums: set[str] = set()
                queued_covers: set[str] = set()
                for metadata in batch:
                    await self._write_one(
                        session, metadata, touched_albums, queued_covers, pending
                    )
                await session.flush()
                await AlbumRepository(session).refresh_stats(touched_albums)
        except SQLAlchemyError as e:
            # Hey future me - no per-row retry here! One bad row fails the whole batch,
            # every file in it is counted as failed, and the next batch starts clean.
            error = BatchWriteFailed(e, [m.file_path for m in batch])
            logger.error(
                f"{error.message} ({len(batch)} files rolled back)",
                extra={"batch_size": len(batch)},
            )
            return BatchResult(failed_paths=error.file_paths)

        return BatchResult(written=len(batch), pending_covers=pending)

    async def _write_one(
        self,
        session: AsyncSession,
        metadata: TrackMetadata,
        touched_albums: set[str],
        queued_covers: set[str],
        pending: list[PendingCover],
    ) -> None:
        artist = await self._resolve_artist(session, metadata.artist)
        album = await self._resolve_album(session, artist, metadata)

        if metadata.cover is not None and album.id not in queued_covers:
            cover_hash = hashlib.sha256(metadata.cover.data).hexdigest()
            if cover_hash != album.cover_art_hash:
                pending.append(
                    PendingCover(
                        album_id=album.id,
                        mime=metadata.cover.mime,
                        data=metadata.cover.data,
                    )
                )
            queued_covers.add(album.id)

        songs = SongRepository(session)
        song = await songs.get_by_file_path(metadata.file_path)
        if song is None:
            song = SongModel(id=self._new_id(), file_path=metadata.file_path)
            session.add(song)
        elif song.album_id != album.id:
            # Retagged into another album: the old one needs its totals recomputed too
            touched_albums.add(song.album_id)

        song.album_id = album.id
        song.artist_id = artist.id
        song.title = metadata.title
        song.track = metadata.track
        song.disc = metadata.disc
        song.duration = metadata.duration
        song.bit_rate = metadata.bit_rate
        song.genre = metadata.genre
        song.year = metadata.year
        song.content_type = metadata.content_type
        song.file_size = metadata.file_size
        song.lyrics = metadata.lyrics
        song.updated_at = utc_now()

        touched_albums.add(album.id)

    async def _resolve_artist(self, session: AsyncSession, name: str) -> ArtistModel:
        artist = await ArtistRepository(session).get_by_name(name)
        if artist is None:
            artist = ArtistModel(id=self._new_id(), name=name)
            session.add(artist)
            logger.debug(f"New artist: {name}")
        return artist

    async def _resolve_album(
        self, session: AsyncSession, artist: ArtistModel, metadata: TrackMetadata
    ) -> AlbumModel:
        album = await AlbumRepository(session).get_by_artist_and_name(
            artist.id, metadata.album
        )
        if album is None:
            album = AlbumModel(
                id=self._new_id(),
                artist_id=artist.id,
                name=metadata.album,
                year=metadata.year,
                genre=metadata.genre,
                path=str(Path(metadata.file_path).parent),
                song_count=0,
                duration=0,
                play_count=0,
            )
            session.add(album)
            logger.debug(f"New album: {artist.name} - {metadata.album}")
            return album

        # Only fill gaps, never overwrite values another file already provided
        if album.year is None and metadata.year is not None:
            album.year = metadata.year
        if album.genre is None and metadata.genre:
            album.genre = metadata.genre
        if album.path is None:
            album.path = str(Path(metadata.file_path).parent)
        return album
