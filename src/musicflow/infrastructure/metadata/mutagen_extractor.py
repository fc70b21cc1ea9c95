"""Mutagen-backed metadata extractor.

Reads tags, stream info, lyrics and the first embedded picture from
ID3 (mp3/wav/aac), Vorbis comments (flac/ogg/opus) and MP4 atoms (m4a).
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Any

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.flac import Picture
from mutagen.mp4 import MP4Cover

from musicflow.domain.entities import CoverImage, TrackMetadata
from musicflow.domain.exceptions import ExtractionFailed
from musicflow.domain.value_objects import content_type_for

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"

# Hey future me - one table for all three tag dialects! Keys are whatever mutagen
# exposes: ID3 frame ids (TIT2...), lowercase Vorbis comment names, and MP4 atoms.
# ID3 keys carry a ":desc" suffix for some frames (USLT::eng), so we match on the
# part before the first colon.
TAG_MAPPINGS: dict[str, str] = {
    # ID3 (MP3, WAV, AAC)
    "TIT2": "title",
    "TPE1": "artist",
    "TPE2": "album_artist",
    "TALB": "album",
    "TRCK": "track",
    "TPOS": "disc",
    "TDRC": "year",
    "TYER": "year",
    "TCON": "genre",
    "USLT": "lyrics",
    # Vorbis (FLAC, OGG, OPUS)
    "title": "title",
    "artist": "artist",
    "albumartist": "album_artist",
    "album artist": "album_artist",
    "album": "album",
    "tracknumber": "track",
    "discnumber": "disc",
    "date": "year",
    "year": "year",
    "genre": "genre",
    "lyrics": "lyrics",
    "unsyncedlyrics": "lyrics",
    # MP4 (M4A)
    "©nam": "title",
    "©ART": "artist",
    "aART": "album_artist",
    "©alb": "album",
    "©day": "year",
    "©gen": "genre",
    "trkn": "track",
    "disk": "disc",
    "©lyr": "lyrics",
}

_YEAR_RE = re.compile(r"(\d{4})")


def parse_year(value: str | None) -> int | None:
    """Parse "2004", "2004-05-17" or "2004/05" into 2004."""
    if not value:
        return None
    match = _YEAR_RE.search(value)
    if not match:
        return None
    year = int(match.group(1))
    return year if year > 0 else None


def parse_position(value: Any) -> int | None:
    """Parse a track/disc position from "3", "3/12" or an MP4 (3, 12) tuple."""
    if value is None:
        return None
    if isinstance(value, tuple):
        value = value[0] if value else None
        return int(value) if value else None
    text = str(value).split("/", 1)[0].strip()
    if not text.isdigit():
        return None
    number = int(text)
    return number if number > 0 else None


def _tag_value(value: Any) -> Any:
    """Unwrap mutagen's frame/list containers to the first plain value."""
    if hasattr(value, "text"):
        text = value.text
        if isinstance(text, list):
            return str(text[0]) if text else None
        return str(text)
    if isinstance(value, list):
        return value[0] if value else None
    return value


class MutagenMetadataExtractor:
    """Synchronous extractor; the scanner runs it on worker threads."""

    def __init__(self, library_root: Path | None = None) -> None:
        self.library_root = library_root.resolve() if library_root else None

    def extract(self, path: Path) -> TrackMetadata:
        """Extract metadata from one file.

        Raises:
            ExtractionFailed: The file cannot be opened or is not a
                recognised audio container.
        """
        try:
            audio = MutagenFile(path)
            file_size = path.stat().st_size
        except (MutagenError, OSError) as e:
            raise ExtractionFailed(path, e) from e

        if audio is None:
            raise ExtractionFailed(path, "unrecognised audio format")

        tags = self._read_tags(audio)

        info = getattr(audio, "info", None)
        length = float(getattr(info, "length", 0) or 0)
        duration = int(round(length))

        bit_rate: int | None = None
        stream_bitrate = getattr(info, "bitrate", None)
        if stream_bitrate:
            bit_rate = int(stream_bitrate) // 1000
        elif length > 0:
            bit_rate = int(file_size * 8 / length / 1000)

        artist = tags.get("artist") or tags.get("album_artist") or self._dir_name(path, 2)
        album = tags.get("album") or self._dir_name(path, 1)

        return TrackMetadata(
            file_path=str(path),
            title=tags.get("title") or path.stem,
            artist=artist or UNKNOWN_ARTIST,
            album=album or UNKNOWN_ALBUM,
            album_artist=tags.get("album_artist"),
            genre=tags.get("genre"),
            year=parse_year(tags.get("year")),
            track=parse_position(tags.get("track")),
            disc=parse_position(tags.get("disc")),
            duration=duration,
            bit_rate=bit_rate,
            sample_rate=getattr(info, "sample_rate", None),
            channels=getattr(info, "channels", None),
            content_type=content_type_for(path),
            file_size=file_size,
            lyrics=tags.get("lyrics"),
            cover=self._read_cover(audio),
        )

    def _read_tags(self, audio: Any) -> dict[str, Any]:
        result: dict[str, Any] = {}
        audio_tags = getattr(audio, "tags", None)
        if not audio_tags:
            return result

        for key, raw in audio_tags.items():
            base_key = key.split(":", 1)[0] if key[:1].isupper() else key
            field = TAG_MAPPINGS.get(base_key) or TAG_MAPPINGS.get(base_key.lower())
            if field is None or field in result:
                continue
            value = _tag_value(raw)
            if isinstance(value, str):
                value = value.strip() or None
            if value is not None:
                result[field] = value
        return result

    def _read_cover(self, audio: Any) -> CoverImage | None:
        # FLAC keeps pictures outside the tag block
        pictures = getattr(audio, "pictures", None)
        if pictures:
            picture = pictures[0]
            return CoverImage(mime=picture.mime or "image/jpeg", data=bytes(picture.data))

        audio_tags = getattr(audio, "tags", None)
        if not audio_tags:
            return None

        # ID3
        getall = getattr(audio_tags, "getall", None)
        if callable(getall):
            frames = getall("APIC")
            if frames:
                return CoverImage(mime=frames[0].mime or "image/jpeg", data=bytes(frames[0].data))
            return None

        # MP4
        covers = audio_tags.get("covr") if hasattr(audio_tags, "get") else None
        if covers:
            cover = covers[0]
            mime = "image/png" if getattr(cover, "imageformat", None) == MP4Cover.FORMAT_PNG else "image/jpeg"
            return CoverImage(mime=mime, data=bytes(cover))

        # Ogg Vorbis / Opus: base64 FLAC picture blocks
        blocks = audio_tags.get("metadata_block_picture") if hasattr(audio_tags, "get") else None
        if blocks:
            try:
                picture = Picture(base64.b64decode(blocks[0]))
            except (binascii.Error, MutagenError, ValueError) as e:
                logger.debug(f"Ignoring unreadable embedded picture: {e}")
                return None
            return CoverImage(mime=picture.mime or "image/jpeg", data=bytes(picture.data))
        return None

    def _dir_name(self, path: Path, levels_up: int) -> str | None:
        """Name of the directory ``levels_up`` above the file, inside the library."""
        directory = path.parent
        for _ in range(levels_up - 1):
            directory = directory.parent
        if self.library_root is not None:
            resolved = directory.resolve()
            if resolved == self.library_root or self.library_root not in resolved.parents:
                return None
        return directory.name or None
