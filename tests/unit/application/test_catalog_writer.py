"""Tests for the transactional catalog batch writer."""

import hashlib
import itertools

from sqlalchemy import select

from musicflow.application.services.library.catalog_writer import CatalogWriter
from musicflow.domain.entities import CoverImage, TrackMetadata
from musicflow.infrastructure.persistence import Database
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    SongModel,
)


def _track(
    path: str, artist: str, album: str, title: str, duration: int = 100, **fields: object
) -> TrackMetadata:
    return TrackMetadata(
        file_path=path,
        title=title,
        artist=artist,
        album=album,
        content_type="audio/flac",
        duration=duration,
        **fields,  # type: ignore[arg-type]
    )


async def _all(db: Database, model: type) -> list:
    async with db.session_scope() as session:
        return list((await session.execute(select(model))).scalars().all())


class TestWriteBatch:
    async def test_creates_artist_album_song(self, db: Database) -> None:
        writer = CatalogWriter(db)

        result = await writer.write_batch(
            [
                _track("/m/A/X/a.flac", "A", "X", "a", duration=200, year=2001, genre="Rock"),
                _track("/m/A/X/b.flac", "A", "X", "b", duration=100),
                _track("/m/B/Y/c.flac", "B", "Y", "c", duration=50),
            ]
        )

        assert result.committed
        assert result.written == 3
        artists = await _all(db, ArtistModel)
        albums = {a.name: a for a in await _all(db, AlbumModel)}
        assert sorted(a.name for a in artists) == ["A", "B"]
        assert albums["X"].song_count == 2
        assert albums["X"].duration == 300
        assert albums["X"].year == 2001
        assert albums["X"].genre == "Rock"
        assert albums["X"].path == "/m/A/X"
        assert albums["Y"].song_count == 1
        assert albums["Y"].duration == 50

    async def test_rewrite_is_idempotent(self, db: Database) -> None:
        writer = CatalogWriter(db)
        batch = [_track("/m/A/X/a.flac", "A", "X", "a", duration=120)]

        await writer.write_batch(batch)
        first = await _all(db, SongModel)
        await writer.write_batch(batch)
        second = await _all(db, SongModel)

        assert len(second) == 1
        assert second[0].id == first[0].id
        (album,) = await _all(db, AlbumModel)
        assert album.song_count == 1
        assert album.duration == 120

    async def test_same_name_different_artists_are_separate_albums(self, db: Database) -> None:
        writer = CatalogWriter(db)

        await writer.write_batch(
            [
                _track("/m/1.flac", "A", "Greatest Hits", "one"),
                _track("/m/2.flac", "B", "Greatest Hits", "two"),
            ]
        )

        albums = await _all(db, AlbumModel)
        assert len(albums) == 2
        assert len({a.artist_id for a in albums}) == 2

    async def test_artist_names_match_exactly(self, db: Database) -> None:
        writer = CatalogWriter(db)

        await writer.write_batch(
            [_track("/m/1.flac", "abba", "X", "1"), _track("/m/2.flac", "ABBA", "X", "2")]
        )

        assert sorted(a.name for a in await _all(db, ArtistModel)) == ["ABBA", "abba"]

    async def test_album_year_and_genre_only_fill_gaps(self, db: Database) -> None:
        writer = CatalogWriter(db)

        await writer.write_batch([_track("/m/1.flac", "A", "X", "1")])
        await writer.write_batch([_track("/m/2.flac", "A", "X", "2", year=1999, genre="Jazz")])
        await writer.write_batch([_track("/m/3.flac", "A", "X", "3", year=2010, genre="Pop")])

        (album,) = await _all(db, AlbumModel)
        assert album.year == 1999
        assert album.genre == "Jazz"
        assert album.song_count == 3

    async def test_retagged_song_moves_and_both_albums_recount(self, db: Database) -> None:
        writer = CatalogWriter(db)
        await writer.write_batch(
            [
                _track("/m/1.flac", "A", "Old", "1", duration=10),
                _track("/m/2.flac", "A", "Old", "2", duration=20),
            ]
        )

        await writer.write_batch([_track("/m/2.flac", "A", "New", "2", duration=20)])

        albums = {a.name: a for a in await _all(db, AlbumModel)}
        assert (albums["Old"].song_count, albums["Old"].duration) == (1, 10)
        assert (albums["New"].song_count, albums["New"].duration) == (1, 20)

    async def test_failed_batch_leaves_no_trace(self, db: Database) -> None:
        # Every generated id is the same, so the second artist row collides
        writer = CatalogWriter(db, id_factory=lambda: "00000000-dup")

        result = await writer.write_batch(
            [_track("/m/A/1.flac", "A", "X", "1"), _track("/m/B/2.flac", "B", "Y", "2")]
        )

        assert not result.committed
        assert result.written == 0
        assert result.failed_paths == ["/m/A/1.flac", "/m/B/2.flac"]
        assert result.pending_covers == []
        assert await _all(db, ArtistModel) == []
        assert await _all(db, AlbumModel) == []
        assert await _all(db, SongModel) == []

    async def test_next_batch_succeeds_after_failure(self, db: Database) -> None:
        ids = itertools.chain(["dup", "dup", "dup", "dup"], (f"id-{n}" for n in itertools.count()))
        writer = CatalogWriter(db, id_factory=lambda: next(ids))

        failed = await writer.write_batch(
            [_track("/m/1.flac", "A", "X", "1"), _track("/m/2.flac", "B", "Y", "2")]
        )
        ok = await writer.write_batch([_track("/m/3.flac", "C", "Z", "3")])

        assert not failed.committed
        assert ok.committed
        assert [s.file_path for s in await _all(db, SongModel)] == ["/m/3.flac"]

    async def test_empty_batch(self, db: Database) -> None:
        result = await CatalogWriter(db).write_batch([])
        assert result.committed
        assert result.written == 0


class TestPendingCovers:
    """Cover bytes are returned, not written, and only once per album."""

    async def test_cover_queued_once_per_album(self, db: Database) -> None:
        cover = CoverImage("image/png", b"png-bytes")
        writer = CatalogWriter(db)

        result = await writer.write_batch(
            [
                _track("/m/1.flac", "A", "X", "1", cover=cover),
                _track("/m/2.flac", "A", "X", "2", cover=cover),
            ]
        )

        assert len(result.pending_covers) == 1
        pending = result.pending_covers[0]
        assert pending.mime == "image/png"
        assert pending.data == b"png-bytes"
        (album,) = await _all(db, AlbumModel)
        assert pending.album_id == album.id
        # Nothing is linked until the cover processor runs
        assert album.cover_art is None

    async def test_cover_with_known_hash_is_not_queued_again(self, db: Database) -> None:
        cover = CoverImage("image/png", b"same")
        writer = CatalogWriter(db)
        await writer.write_batch([_track("/m/1.flac", "A", "X", "1", cover=cover)])
        async with db.session_scope() as session:
            album = (await session.execute(select(AlbumModel))).scalar_one()
            album.cover_art_hash = hashlib.sha256(b"same").hexdigest()

        again = await writer.write_batch([_track("/m/2.flac", "A", "X", "2", cover=cover)])
        changed = await writer.write_batch(
            [_track("/m/3.flac", "A", "X", "3", cover=CoverImage("image/png", b"new"))]
        )

        assert again.pending_covers == []
        assert len(changed.pending_covers) == 1

    async def test_songs_without_cover_queue_nothing(self, db: Database) -> None:
        result = await CatalogWriter(db).write_batch([_track("/m/1.flac", "A", "X", "1")])
        assert result.pending_covers == []
