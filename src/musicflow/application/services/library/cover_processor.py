"""Post-commit cover persistence."""

import asyncio
import hashlib
import logging

from sqlalchemy.exc import SQLAlchemyError

from musicflow.domain.entities import PendingCover
from musicflow.domain.exceptions import CachePrewarmFailed, CoverWriteFailed
from musicflow.domain.ports import CoverStorage
from musicflow.infrastructure.persistence.database import Database
from musicflow.infrastructure.persistence.repositories import AlbumRepository

logger = logging.getLogger(__name__)


class CoverProcessor:
    """Writes cover originals and points albums at them.

    Runs strictly after the batch that produced the covers has committed, so
    an album is never left referencing a cover that is not on disk.
    """

    def __init__(self, db: Database, store: CoverStorage, concurrency: int = 4) -> None:
        self.db = db
        self.store = store
        self.concurrency = max(1, concurrency)
        # Strong references only; asyncio keeps weak refs to running tasks
        self._prewarm_tasks: set[asyncio.Task[None]] = set()

    async def process(self, covers: list[PendingCover]) -> int:
        """Store every pending cover. Returns how many albums got a cover."""
        if not covers:
            return 0
        semaphore = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(
            *(self._process_one(cover, semaphore) for cover in covers)
        )
        return sum(1 for stored in results if stored)

    async def _process_one(self, cover: PendingCover, semaphore: asyncio.Semaphore) -> bool:
        async with semaphore:
            try:
                path = await self.store.write_original(cover.album_id, cover.mime, cover.data)
            except OSError as e:
                error = CoverWriteFailed(cover.album_id, e)
                logger.warning(error.message, extra={"album_id": cover.album_id})
                return False

            cover_id = self.store.cover_id_for(cover.album_id)
            self._spawn_prewarm(cover_id, cover.data)

            try:
                async with self.db.session_scope() as session:
                    updated = await AlbumRepository(session).set_cover(
                        cover.album_id,
                        cover_id,
                        str(path),
                        hashlib.sha256(cover.data).hexdigest(),
                    )
            except SQLAlchemyError as e:
                error = CoverWriteFailed(cover.album_id, e)
                logger.warning(error.message, extra={"album_id": cover.album_id})
                return False

            if not updated:
                logger.debug(f"Album {cover.album_id} vanished before its cover was linked")
            return updated

    # Hey future me - this is a DETACHED task on purpose. Nobody awaits it during a scan,
    # and a failure only ever shows up as a log line. getCoverArt renders lazily anyway.
    def _spawn_prewarm(self, cover_id: str, data: bytes) -> None:
        task = asyncio.create_task(self._prewarm(cover_id, data), name=f"prewarm:{cover_id}")
        self._prewarm_tasks.add(task)
        task.add_done_callback(self._prewarm_tasks.discard)

    async def _prewarm(self, cover_id: str, data: bytes) -> None:
        try:
            await self.store.prewarm(cover_id, data)
        except Exception as e:
            # Pillow raises a wide range of errors on bad image data; all of them end here
            logger.warning(CachePrewarmFailed(cover_id, e).message)

    async def wait_for_prewarm(self) -> None:
        """Wait for outstanding prewarm tasks (shutdown and tests)."""
        if self._prewarm_tasks:
            await asyncio.gather(*list(self._prewarm_tasks))
