"""ORM model -> Subsonic payload dicts.

Songs and albums must be loaded with their artist/album relationships
(see ``musicflow.application.services.catalog_queries``); async sessions
cannot lazy-load them here.
"""

from pathlib import Path
from typing import Any

from musicflow.application.services.annotation_service import Annotations
from musicflow.infrastructure.persistence.models import (
    AlbumModel,
    ArtistModel,
    PlaylistModel,
    PlayQueueModel,
    SongModel,
    UserModel,
)

_EMPTY = Annotations()


def _annotate(payload: dict[str, Any], item_id: str, annotations: Annotations) -> dict[str, Any]:
    starred = annotations.starred.get(item_id)
    if starred is not None:
        payload["starred"] = starred
    rating = annotations.ratings.get(item_id)
    if rating:
        payload["userRating"] = rating
    return payload


def artist_payload(
    artist: ArtistModel,
    album_count: int | None = None,
    annotations: Annotations = _EMPTY,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": artist.id,
        "name": artist.name,
        "coverArt": artist.cover_art,
        "albumCount": album_count,
    }
    if artist.musicbrainz_id:
        payload["musicBrainzId"] = artist.musicbrainz_id
    return _annotate(payload, artist.id, annotations)


def album_payload(album: AlbumModel, annotations: Annotations = _EMPTY) -> dict[str, Any]:
    """AlbumID3 shape; also carries the directory-style fields for getAlbumList."""
    payload: dict[str, Any] = {
        "id": album.id,
        "name": album.name,
        "title": album.name,
        "album": album.name,
        "artist": album.artist.name,
        "artistId": album.artist_id,
        "parent": album.artist_id,
        "isDir": True,
        "coverArt": album.cover_art,
        "songCount": album.song_count,
        "duration": album.duration,
        "playCount": album.play_count,
        "created": album.created_at,
        "year": album.year,
        "genre": album.genre,
    }
    return _annotate(payload, album.id, annotations)


def song_payload(song: SongModel, annotations: Annotations = _EMPTY) -> dict[str, Any]:
    path = Path(song.file_path)
    payload: dict[str, Any] = {
        "id": song.id,
        "parent": song.album_id,
        "isDir": False,
        "title": song.title,
        "album": song.album.name,
        "artist": song.artist.name,
        "track": song.track,
        "discNumber": song.disc,
        "year": song.year,
        "genre": song.genre,
        "coverArt": song.album.cover_art,
        "size": song.file_size,
        "contentType": song.content_type,
        "suffix": path.suffix.lstrip(".").lower(),
        "duration": song.duration,
        "bitRate": song.bit_rate,
        "path": f"{song.artist.name}/{song.album.name}/{path.name}",
        "playCount": song.play_count,
        "created": song.created_at,
        "albumId": song.album_id,
        "artistId": song.artist_id,
        "type": "music",
        "isVideo": False,
    }
    return _annotate(payload, song.id, annotations)


def playlist_payload(
    playlist: PlaylistModel,
    songs: list[SongModel] | None = None,
    annotations: Annotations = _EMPTY,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": playlist.id,
        "name": playlist.name,
        "comment": playlist.comment,
        "owner": playlist.owner.username,
        "public": playlist.is_public,
        "songCount": playlist.song_count,
        "duration": playlist.duration,
        "created": playlist.created_at,
        "changed": playlist.updated_at,
    }
    if songs is not None:
        payload["entry"] = [song_payload(song, annotations) for song in songs]
    return payload


def user_payload(user: UserModel) -> dict[str, Any]:
    return {
        "username": user.username,
        "email": user.email,
        "scrobblingEnabled": user.scrobbling_enabled,
        "maxBitRate": user.max_bit_rate,
        "adminRole": user.is_admin,
        "settingsRole": user.settings_role,
        "downloadRole": user.download_role,
        "uploadRole": user.upload_role,
        "playlistRole": user.playlist_role,
        "coverArtRole": user.cover_art_role,
        "commentRole": user.comment_role,
        "podcastRole": user.podcast_role,
        "streamRole": user.stream_role,
        "jukeboxRole": False,
        "shareRole": user.share_role,
        "videoConversionRole": user.video_conversion_role,
        "folder": [1],
    }


def play_queue_payload(
    queue: PlayQueueModel, songs: list[SongModel], annotations: Annotations = _EMPTY
) -> dict[str, Any]:
    return {
        "current": queue.current_song_id,
        "position": queue.position,
        "changed": queue.changed_at,
        "changedBy": queue.changed_by,
        "entry": [song_payload(song, annotations) for song in songs],
    }
