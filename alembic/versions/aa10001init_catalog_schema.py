"""initial catalog schema

Revision ID: aa10001init
Revises:
Create Date: 2026-01-12 09:00:00.000000

Hey future me - this is the WHOLE schema in one revision.

CATALOG:
- artists: unique by exact name
- albums: unique per (artist_id, name); song_count/duration are derived
- songs: file_path is the natural key the scanner upserts on

Deleting an artist cascades to its albums, deleting an album cascades to its
songs. SQLite only honours ON DELETE when PRAGMA foreign_keys=ON, which the
Database class sets on every connection.

USER DATA:
- users, playlists/playlist_songs, starred, ratings, scrobbles,
  play_queues/play_queue_songs
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'aa10001init'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # === Catalog ===
    op.create_table(
        'artists',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('musicbrainz_id', sa.String(36), nullable=True),
        sa.Column('cover_art', sa.String(64), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'albums',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'artist_id',
            sa.String(36),
            sa.ForeignKey('artists.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('year', sa.Integer, nullable=True),
        sa.Column('genre', sa.String(255), nullable=True),
        sa.Column('path', sa.Text, nullable=True),
        sa.Column('cover_art', sa.String(64), nullable=True),
        sa.Column('cover_art_path', sa.Text, nullable=True),
        sa.Column('cover_art_hash', sa.String(64), nullable=True),
        sa.Column('song_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('duration', sa.Integer, nullable=False, server_default='0'),
        sa.Column('play_count', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('artist_id', 'name', name='uq_albums_artist_name'),
    )
    op.create_index('ix_albums_name', 'albums', ['name'])
    op.create_index('ix_albums_genre', 'albums', ['genre'])
    op.create_index('ix_albums_year', 'albums', ['year'])

    op.create_table(
        'songs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'album_id',
            sa.String(36),
            sa.ForeignKey('albums.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'artist_id',
            sa.String(36),
            sa.ForeignKey('artists.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('title', sa.String(512), nullable=False),
        sa.Column('track', sa.Integer, nullable=True),
        sa.Column('disc', sa.Integer, nullable=True),
        sa.Column('duration', sa.Integer, nullable=False, server_default='0'),
        sa.Column('bit_rate', sa.Integer, nullable=True),
        sa.Column('genre', sa.String(255), nullable=True),
        sa.Column('year', sa.Integer, nullable=True),
        sa.Column('content_type', sa.String(64), nullable=False, server_default='audio/mpeg'),
        sa.Column('file_path', sa.Text, nullable=False, unique=True),
        sa.Column('file_size', sa.BigInteger, nullable=True),
        sa.Column('lyrics', sa.Text, nullable=True),
        sa.Column('play_count', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_songs_album_id', 'songs', ['album_id'])
    op.create_index('ix_songs_artist_id', 'songs', ['artist_id'])
    op.create_index('ix_songs_title', 'songs', ['title'])
    op.create_index('ix_songs_genre', 'songs', ['genre'])

    # === Users ===
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(255), nullable=False, unique=True),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_admin', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('settings_role', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('stream_role', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('download_role', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('upload_role', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('playlist_role', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('cover_art_role', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('comment_role', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('podcast_role', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('share_role', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            'video_conversion_role', sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column('scrobbling_enabled', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('max_bit_rate', sa.Integer, nullable=False, server_default='320'),
        *_timestamps(),
    )

    # === Playlists ===
    op.create_table(
        'playlists',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'owner_id',
            sa.String(36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('comment', sa.Text, nullable=True),
        sa.Column('is_public', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('song_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('duration', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_table(
        'playlist_songs',
        sa.Column(
            'playlist_id',
            sa.String(36),
            sa.ForeignKey('playlists.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('position', sa.Integer, primary_key=True),
        sa.Column(
            'song_id',
            sa.String(36),
            sa.ForeignKey('songs.id', ondelete='CASCADE'),
            nullable=False,
        ),
    )

    # === Annotations ===
    op.create_table(
        'starred',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'artist_id',
            sa.String(36),
            sa.ForeignKey('artists.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column(
            'album_id',
            sa.String(36),
            sa.ForeignKey('albums.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column(
            'song_id',
            sa.String(36),
            sa.ForeignKey('songs.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_starred_user', 'starred', ['user_id'])

    op.create_table(
        'ratings',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('item_id', sa.String(36), nullable=False),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'item_id', name='uq_ratings_user_item'),
    )

    op.create_table(
        'scrobbles',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'song_id',
            sa.String(36),
            sa.ForeignKey('songs.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('submission', sa.Boolean, nullable=False, server_default=sa.true()),
    )

    # === Play queue ===
    op.create_table(
        'play_queues',
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column(
            'current_song_id',
            sa.String(36),
            sa.ForeignKey('songs.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('position', sa.BigInteger, nullable=False, server_default='0'),
        sa.Column('changed_by', sa.String(255), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        'play_queue_songs',
        sa.Column(
            'user_id',
            sa.String(36),
            sa.ForeignKey('play_queues.user_id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('position', sa.Integer, primary_key=True),
        sa.Column(
            'song_id',
            sa.String(36),
            sa.ForeignKey('songs.id', ondelete='CASCADE'),
            nullable=False,
        ),
    )


def downgrade() -> None:
    # Reverse dependency order
    op.drop_table('play_queue_songs')
    op.drop_table('play_queues')
    op.drop_table('scrobbles')
    op.drop_table('ratings')
    op.drop_index('ix_starred_user', table_name='starred')
    op.drop_table('starred')
    op.drop_table('playlist_songs')
    op.drop_table('playlists')
    op.drop_table('users')
    for index in ('ix_songs_genre', 'ix_songs_title', 'ix_songs_artist_id', 'ix_songs_album_id'):
        op.drop_index(index, table_name='songs')
    op.drop_table('songs')
    for index in ('ix_albums_year', 'ix_albums_genre', 'ix_albums_name'):
        op.drop_index(index, table_name='albums')
    op.drop_table('albums')
    op.drop_table('artists')
