"""Domain entities and scan bookkeeping records."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class CoverImage:
    """Raw embedded cover art."""

    mime: str
    data: bytes


@dataclass
class TrackMetadata:
    """Everything the extractor learned about one audio file.

    artist/album/title are always filled in; the extractor falls back to
    directory and file names when tags are missing.
    """

    file_path: str
    title: str
    artist: str
    album: str
    content_type: str
    duration: int = 0
    album_artist: str | None = None
    genre: str | None = None
    year: int | None = None
    track: int | None = None
    disc: int | None = None
    bit_rate: int | None = None
    sample_rate: int | None = None
    channels: int | None = None
    file_size: int | None = None
    lyrics: str | None = None
    cover: CoverImage | None = None


@dataclass(frozen=True)
class PendingCover:
    """Cover bytes queued during a batch, processed after the batch commits."""

    album_id: str
    mime: str
    data: bytes


@dataclass
class BatchResult:
    """Outcome of one catalog transaction."""

    written: int = 0
    failed_paths: list[str] = field(default_factory=list)
    pending_covers: list[PendingCover] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return not self.failed_paths


@dataclass
class ChangeSet:
    """Candidates partitioned by the change detector."""

    to_scan: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Rows removed by the reconciler."""

    songs_deleted: int = 0
    albums_deleted: int = 0
    artists_deleted: int = 0


@dataclass(frozen=True)
class ScanProgress:
    """Read-only snapshot of the scan progress counters."""

    scanning: bool = False
    total: int = 0
    current: int = 0


@dataclass
class ScanSummary:
    """Final counts of one scan run.

    artists/albums/songs are catalog totals after the scan; the remaining
    fields count what this run did.
    """

    artists: int = 0
    albums: int = 0
    songs: int = 0
    discovered: int = 0
    scanned: int = 0
    skipped: int = 0
    failed: int = 0
    deleted: int = 0
    covers_stored: int = 0
    duration_seconds: float = 0.0


class AlbumListType(str, Enum):
    """Orderings supported by getAlbumList/getAlbumList2."""

    RANDOM = "random"
    NEWEST = "newest"
    HIGHEST = "highest"
    FREQUENT = "frequent"
    RECENT = "recent"
    ALPHABETICAL_BY_NAME = "alphabeticalByName"
    ALPHABETICAL_BY_ARTIST = "alphabeticalByArtist"
    BY_YEAR = "byYear"
    BY_GENRE = "byGenre"
    STARRED = "starred"


__all__ = [
    "AlbumListType",
    "BatchResult",
    "ChangeSet",
    "CoverImage",
    "PendingCover",
    "ReconcileResult",
    "ScanProgress",
    "ScanSummary",
    "TrackMetadata",
]
