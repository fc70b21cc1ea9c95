"""Tests for catalog reconciliation against the filesystem."""

from pathlib import Path

from sqlalchemy import func, select

from musicflow.application.services.library.catalog_writer import CatalogWriter
from musicflow.application.services.library.reconciler import Reconciler
from musicflow.domain.entities import TrackMetadata
from musicflow.infrastructure.persistence import Database
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    PlaylistModel,
    PlaylistSongModel,
    RatingModel,
    SongModel,
    UserModel,
)


def _file(path: Path) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"audio")
    return str(path)


def _track(path: str, artist: str, album: str, duration: int = 60) -> TrackMetadata:
    return TrackMetadata(
        file_path=path,
        title=Path(path).stem,
        artist=artist,
        album=album,
        content_type="audio/flac",
        duration=duration,
    )


async def _count(db: Database, model: type) -> int:
    async with db.session_scope() as session:
        return int((await session.execute(select(func.count()).select_from(model))).scalar_one())


class TestReconciler:
    async def test_nothing_missing(self, db: Database, tmp_path: Path) -> None:
        await CatalogWriter(db).write_batch([_track(_file(tmp_path / "a.flac"), "A", "X")])

        result = await Reconciler(db).reconcile()

        assert (result.songs_deleted, result.albums_deleted, result.artists_deleted) == (0, 0, 0)
        assert await _count(db, SongModel) == 1

    async def test_removes_song_then_empty_album_then_empty_artist(
        self, db: Database, tmp_path: Path
    ) -> None:
        keep = _file(tmp_path / "A" / "X" / "a.flac")
        gone = _file(tmp_path / "B" / "Y" / "c.flac")
        await CatalogWriter(db).write_batch([_track(keep, "A", "X"), _track(gone, "B", "Y")])
        Path(gone).unlink()

        result = await Reconciler(db).reconcile()

        assert result.songs_deleted == 1
        assert result.albums_deleted == 1
        assert result.artists_deleted == 1
        assert await _count(db, SongModel) == 1
        assert await _count(db, AlbumModel) == 1
        assert await _count(db, ArtistModel) == 1

    async def test_partially_emptied_album_is_recounted(
        self, db: Database, tmp_path: Path
    ) -> None:
        a = _file(tmp_path / "a.flac")
        b = _file(tmp_path / "b.flac")
        await CatalogWriter(db).write_batch(
            [_track(a, "A", "X", duration=30), _track(b, "A", "X", duration=70)]
        )
        Path(b).unlink()

        result = await Reconciler(db).reconcile()

        assert result.songs_deleted == 1
        assert result.albums_deleted == 0
        async with db.session_scope() as session:
            album = (await session.execute(select(AlbumModel))).scalar_one()
        assert (album.song_count, album.duration) == (1, 30)

    async def test_artist_with_remaining_album_survives(
        self, db: Database, tmp_path: Path
    ) -> None:
        one = _file(tmp_path / "1.flac")
        two = _file(tmp_path / "2.flac")
        await CatalogWriter(db).write_batch([_track(one, "A", "X"), _track(two, "A", "Y")])
        Path(two).unlink()

        result = await Reconciler(db).reconcile()

        assert result.albums_deleted == 1
        assert result.artists_deleted == 0

    async def test_playlists_lose_deleted_songs(self, db: Database, tmp_path: Path) -> None:
        a = _file(tmp_path / "a.flac")
        b = _file(tmp_path / "b.flac")
        await CatalogWriter(db).write_batch(
            [_track(a, "A", "X", duration=10), _track(b, "A", "X", duration=20)]
        )
        async with db.session_scope() as session:
            songs = {s.file_path: s.id for s in (await session.execute(select(SongModel))).scalars()}
            user = UserModel(username="u", password="p")
            session.add(user)
            await session.flush()
            playlist = PlaylistModel(owner_id=user.id, name="mix", song_count=2, duration=30)
            session.add(playlist)
            await session.flush()
            session.add_all(
                [
                    PlaylistSongModel(playlist_id=playlist.id, position=0, song_id=songs[a]),
                    PlaylistSongModel(playlist_id=playlist.id, position=1, song_id=songs[b]),
                ]
            )
        Path(b).unlink()

        await Reconciler(db).reconcile()

        async with db.session_scope() as session:
            playlist = (await session.execute(select(PlaylistModel))).scalar_one()
            entries = (await session.execute(select(PlaylistSongModel))).scalars().all()
        assert [e.song_id for e in entries] == [songs[a]]
        assert (playlist.song_count, playlist.duration) == (1, 10)

    async def test_ratings_of_deleted_items_are_removed(
        self, db: Database, tmp_path: Path
    ) -> None:
        keep = _file(tmp_path / "A" / "X" / "a.flac")
        gone = _file(tmp_path / "B" / "Y" / "c.flac")
        await CatalogWriter(db).write_batch([_track(keep, "A", "X"), _track(gone, "B", "Y")])
        async with db.session_scope() as session:
            songs = {s.file_path: s for s in (await session.execute(select(SongModel))).scalars()}
            user = UserModel(username="u", password="p")
            session.add(user)
            await session.flush()
            session.add_all(
                [
                    RatingModel(user_id=user.id, item_id=songs[keep].id, rating=5),
                    RatingModel(user_id=user.id, item_id=songs[gone].id, rating=4),
                    RatingModel(user_id=user.id, item_id=songs[gone].album_id, rating=3),
                    RatingModel(user_id=user.id, item_id=songs[gone].artist_id, rating=2),
                ]
            )
        Path(gone).unlink()

        await Reconciler(db).reconcile()

        async with db.session_scope() as session:
            ratings = (await session.execute(select(RatingModel))).scalars().all()
        assert [(r.item_id, r.rating) for r in ratings] == [(songs[keep].id, 5)]
