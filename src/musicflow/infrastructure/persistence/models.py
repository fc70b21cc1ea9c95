"""SQLAlchemy ORM models for the MusicFlow catalog."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! Values come back naive even though we
# always write UTC. Use this before comparing DB datetimes with aware ones.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def new_id() -> str:
    """Generate a new primary key."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ArtistModel(Base):
    """Artist, resolved by exact name during scans."""

    __tablename__ = "artists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    musicbrainz_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    cover_art: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    albums: Mapped[list["AlbumModel"]] = relationship(
        "AlbumModel", back_populates="artist", passive_deletes=True
    )


# Listen up, song_count and duration are DERIVED columns! They must always equal
# COUNT(songs)/SUM(songs.duration) for this album. CatalogWriter and the reconciler
# recompute them with AlbumRepository.refresh_stats() after touching songs. Never bump them by hand.
class AlbumModel(Base):
    """Album, unique per (artist_id, name)."""

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    genre: Mapped[str | None] = mapped_column(String(255), nullable=True)
    path: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Cover reference; stays NULL until the original bytes are on disk
    cover_art: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cover_art_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_art_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    song_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    play_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    artist: Mapped["ArtistModel"] = relationship("ArtistModel", back_populates="albums")
    songs: Mapped[list["SongModel"]] = relationship(
        "SongModel", back_populates="album", passive_deletes=True
    )

    __table_args__ = (
        UniqueConstraint("artist_id", "name", name="uq_albums_artist_name"),
        Index("ix_albums_name", "name"),
        Index("ix_albums_genre", "genre"),
        Index("ix_albums_year", "year"),
    )


class SongModel(Base):
    """One audio file. file_path is the natural key used by scans."""

    __tablename__ = "songs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    album_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="CASCADE"), nullable=False
    )
    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    track: Mapped[int | None] = mapped_column(Integer, nullable=True)
    disc: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bit_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    genre: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content_type: Mapped[str] = mapped_column(
        String(64), default="audio/mpeg", nullable=False
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    file_size: Mapped[int | None] = mapped_column(sa.BigInteger, nullable=True)
    lyrics: Mapped[str | None] = mapped_column(Text, nullable=True)
    play_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    album: Mapped["AlbumModel"] = relationship("AlbumModel", back_populates="songs")
    artist: Mapped["ArtistModel"] = relationship("ArtistModel")

    __table_args__ = (
        Index("ix_songs_album_id", "album_id"),
        Index("ix_songs_artist_id", "artist_id"),
        Index("ix_songs_title", "title"),
        Index("ix_songs_genre", "genre"),
    )


class UserModel(Base):
    """Subsonic user with role flags.

    The password is stored as given because token auth needs
    md5(password + salt) on the server side.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    settings_role: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    stream_role: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    download_role: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    upload_role: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    playlist_role: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    cover_art_role: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    comment_role: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    podcast_role: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    share_role: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    video_conversion_role: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    scrobbling_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    max_bit_rate: Mapped[int] = mapped_column(Integer, default=320, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class PlaylistModel(Base):
    """User playlist. song_count/duration are kept in step with its entries."""

    __tablename__ = "playlists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    song_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    owner: Mapped["UserModel"] = relationship("UserModel")
    entries: Mapped[list["PlaylistSongModel"]] = relationship(
        "PlaylistSongModel",
        order_by="PlaylistSongModel.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PlaylistSongModel(Base):
    """Ordered playlist entry."""

    __tablename__ = "playlist_songs"

    playlist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    song_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="CASCADE"), nullable=False
    )

    song: Mapped["SongModel"] = relationship("SongModel")


class StarredModel(Base):
    """A star on exactly one of artist, album or song."""

    __tablename__ = "starred"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    artist_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=True
    )
    album_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="CASCADE"), nullable=True
    )
    song_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (Index("ix_starred_user", "user_id"),)


class RatingModel(Base):
    """User rating (1..5) of an artist, album or song id."""

    __tablename__ = "ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[str] = mapped_column(String(36), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_ratings_user_item"),
    )


class ScrobbleModel(Base):
    """One play report."""

    __tablename__ = "scrobbles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    song_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="CASCADE"), nullable=False
    )
    time: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    submission: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PlayQueueModel(Base):
    """Saved play queue, one per user."""

    __tablename__ = "play_queues"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    current_song_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="SET NULL"), nullable=True
    )
    position: Mapped[int] = mapped_column(sa.BigInteger, default=0, nullable=False)
    changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    entries: Mapped[list["PlayQueueSongModel"]] = relationship(
        "PlayQueueSongModel",
        order_by="PlayQueueSongModel.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PlayQueueSongModel(Base):
    """Ordered play queue entry."""

    __tablename__ = "play_queue_songs"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("play_queues.user_id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    song_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("songs.id", ondelete="CASCADE"), nullable=False
    )

    song: Mapped["SongModel"] = relationship("SongModel")
