"""Ports implemented by infrastructure adapters.

The scanner depends only on these protocols, so tests can hand it a fake
extractor or cover store instead of mutagen and Pillow.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from musicflow.domain.entities import TrackMetadata


class MetadataExtractor(Protocol):
    """Reads tags and embedded cover art from one audio file.

    Implementations are synchronous and CPU-bound; the scanner calls them
    from worker threads. They raise ExtractionFailed for unreadable files.
    """

    def extract(self, path: Path) -> TrackMetadata: ...


class CoverStorage(Protocol):
    """Durable storage for album cover originals and derived sizes."""

    def cover_id_for(self, album_id: str) -> str: ...

    async def write_original(self, album_id: str, mime: str, data: bytes) -> Path: ...

    async def prewarm(self, cover_id: str, data: bytes) -> Path: ...
