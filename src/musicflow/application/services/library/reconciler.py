"""Removes catalog rows whose backing files are gone."""

import asyncio
import logging
import os

from musicflow.domain.entities import ReconcileResult
from musicflow.infrastructure.persistence.database import Database
from musicflow.infrastructure.persistence.repositories import (
    AlbumRepository,
    ArtistRepository,
    PlaylistRepository,
    RatingRepository,
    SongRepository,
)

logger = logging.getLogger(__name__)

# SQLite caps bound parameters per statement
_DELETE_CHUNK = 500


def _find_missing(rows: list[tuple[str, str, str]]) -> list[tuple[str, str]]:
    return [(song_id, album_id) for song_id, album_id, path in rows if not os.path.exists(path)]


class Reconciler:
    """Deletes stale songs, then empty albums, then empty artists."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def reconcile(self) -> ReconcileResult:
        result = ReconcileResult()
        async with self.db.session_scope() as session:
            songs = SongRepository(session)
            albums = AlbumRepository(session)

            rows = await songs.all_file_paths()
            missing = await asyncio.to_thread(_find_missing, rows)
            song_ids = [song_id for song_id, _ in missing]
            if song_ids:
                playlists = PlaylistRepository(session)
                playlist_ids = await playlists.ids_containing(song_ids)
                for start in range(0, len(song_ids), _DELETE_CHUNK):
                    result.songs_deleted += await songs.delete_by_ids(
                        song_ids[start : start + _DELETE_CHUNK]
                    )
                await albums.refresh_stats(album_id for _, album_id in missing)
                await playlists.refresh_stats(playlist_ids)

            # Order matters: songs, then albums, then artists
            result.albums_deleted = await albums.delete_without_songs()
            result.artists_deleted = await ArtistRepository(session).delete_without_albums()
            if song_ids or result.albums_deleted or result.artists_deleted:
                await RatingRepository(session).delete_orphaned()

        if result.songs_deleted or result.albums_deleted or result.artists_deleted:
            logger.info(
                f"Reconciled catalog: {result.songs_deleted} songs, "
                f"{result.albums_deleted} albums, {result.artists_deleted} artists removed",
                extra={
                    "songs_deleted": result.songs_deleted,
                    "albums_deleted": result.albums_deleted,
                    "artists_deleted": result.artists_deleted,
                },
            )
        return result
