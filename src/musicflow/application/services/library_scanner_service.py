"""Incremental library scanner pipeline.

Hey future me - the flow is strictly linear and runs on ONE coordinating task:

    discover -> detect changes -> [extract chunk (K threads) -> write batch -> covers]* -> reconcile

Batches are written one after another. Only extraction inside a chunk runs in
parallel, on a ThreadPoolExecutor so mutagen never blocks the event loop.
"""

import asyncio
import logging
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from musicflow.application.services.library.catalog_writer import CatalogWriter
from musicflow.application.services.library.cover_processor import CoverProcessor
from musicflow.application.services.library.discovery import (
    detect_changes,
    discover_audio_files,
)
from musicflow.application.services.library.reconciler import Reconciler
from musicflow.config import ScannerSettings
from musicflow.domain.entities import ScanSummary, TrackMetadata
from musicflow.domain.exceptions import ExtractionFailed
from musicflow.domain.ports import CoverStorage, MetadataExtractor
from musicflow.infrastructure.persistence.database import Database
from musicflow.infrastructure.persistence.repositories import (
    AlbumRepository,
    ArtistRepository,
    SongRepository,
)

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Where the pipeline publishes its counters."""

    def set_total(self, total: int) -> None: ...

    def advance(self, count: int) -> None: ...


def _chunks(items: list[Path], size: int) -> Iterator[list[Path]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class LibraryScannerService:
    """Runs one scan of the music library against the catalog."""

    def __init__(
        self,
        db: Database,
        library_path: Path,
        extractor: MetadataExtractor,
        cover_store: CoverStorage,
        settings: ScannerSettings | None = None,
        catalog_writer: CatalogWriter | None = None,
    ) -> None:
        self.db = db
        self.library_path = Path(library_path)
        self.extractor = extractor
        self.settings = settings or ScannerSettings()
        self.writer = catalog_writer or CatalogWriter(db)
        self.covers = CoverProcessor(db, cover_store, self.settings.cover_concurrency)
        self.reconciler = Reconciler(db)

    async def scan(self, progress: ProgressSink) -> ScanSummary:
        """Run the whole pipeline.

        Raises:
            LibraryPathNotFound: The library root is missing. Nothing is
                touched in that case, not even reconciliation.
        """
        started = time.monotonic()
        summary = ScanSummary()

        candidates = await asyncio.to_thread(discover_audio_files, self.library_path)
        summary.discovered = len(candidates)
        logger.info(
            f"Discovered {len(candidates)} audio files in {self.library_path}",
            extra={"discovered": len(candidates)},
        )

        async with self.db.session_scope() as session:
            recorded = await SongRepository(session).timestamp_snapshot()
        changes = await asyncio.to_thread(detect_changes, candidates, recorded)
        summary.skipped = len(changes.skipped)
        progress.set_total(len(changes.to_scan))

        if changes.to_scan:
            with ThreadPoolExecutor(
                max_workers=self.settings.extract_workers,
                thread_name_prefix="musicflow-extract",
            ) as executor:
                for chunk in _chunks(changes.to_scan, self.settings.batch_size):
                    await self._process_chunk(chunk, executor, summary)
                    progress.advance(len(chunk))

        # Runs even when nothing changed, so deletions are always picked up
        reconciled = await self.reconciler.reconcile()
        summary.deleted = reconciled.songs_deleted

        async with self.db.session_scope() as session:
            summary.artists = await ArtistRepository(session).count_all()
            summary.albums = await AlbumRepository(session).count_all()
            summary.songs = await SongRepository(session).count_all()

        summary.duration_seconds = round(time.monotonic() - started, 3)
        return summary

    async def _process_chunk(
        self,
        chunk: list[Path],
        executor: ThreadPoolExecutor,
        summary: ScanSummary,
    ) -> None:
        extracted, failed = await self._extract_all(chunk, executor)
        summary.failed += failed
        if not extracted:
            return

        batch = await self.writer.write_batch(extracted)
        summary.scanned += batch.written
        summary.failed += len(batch.failed_paths)

        # Covers strictly after the batch commit
        if batch.committed and batch.pending_covers:
            summary.covers_stored += await self.covers.process(batch.pending_covers)

    async def _extract_all(
        self, chunk: list[Path], executor: ThreadPoolExecutor
    ) -> tuple[list[TrackMetadata], int]:
        loop = asyncio.get_running_loop()
        futures = [loop.run_in_executor(executor, self._extract_one, path) for path in chunk]

        extracted: list[TrackMetadata] = []
        failed = 0
        for next_done in asyncio.as_completed(futures):
            try:
                extracted.append(await next_done)
            except ExtractionFailed as e:
                failed += 1
                logger.warning(e.message, extra={"file_path": str(e.path)})
        return extracted, failed

    def _extract_one(self, path: Path) -> TrackMetadata:
        """Worker-thread entry point. Every failure becomes ExtractionFailed."""
        try:
            return self.extractor.extract(path)
        except ExtractionFailed:
            raise
        except Exception as e:
            # Corrupt files make tag parsers raise almost anything
            raise ExtractionFailed(path, e) from e
