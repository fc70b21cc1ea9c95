"""Supported audio formats."""

from pathlib import Path

# Extension (lowercase, no dot) -> MIME type served by stream/download
CONTENT_TYPES: dict[str, str] = {
    "mp3": "audio/mpeg",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "opus": "audio/opus",
}

AUDIO_EXTENSIONS: frozenset[str] = frozenset(CONTENT_TYPES)

DEFAULT_CONTENT_TYPE = "audio/mpeg"


def is_audio_file(path: Path) -> bool:
    """Check whether the path has a supported audio extension (case-insensitive)."""
    return path.suffix.lstrip(".").lower() in AUDIO_EXTENSIONS


def content_type_for(path: Path | str) -> str:
    """Map a file extension to its MIME type, defaulting to audio/mpeg."""
    suffix = Path(path).suffix.lstrip(".").lower()
    return CONTENT_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)
