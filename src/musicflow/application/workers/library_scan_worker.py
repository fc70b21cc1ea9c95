"""Single-flight library scan coordinator.

States are Idle -> Scanning -> Idle. A start request while Scanning raises
ServerBusyError; there is no queue of pending scans.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from musicflow.application.services.library_scanner_service import (
    LibraryScannerService,
)
from musicflow.domain.entities import ScanProgress, ScanSummary
from musicflow.domain.exceptions import LibraryPathNotFound, ServerBusyError

logger = logging.getLogger(__name__)


class ScanStatus:
    """Lock-protected progress counters.

    The status endpoint only ever sees immutable ScanProgress snapshots.
    Writers hold the lock just long enough to swap a scalar.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._scanning = False
        self._total = 0
        self._current = 0

    def try_begin(self) -> bool:
        """Enter Scanning and reset counters. False if already scanning."""
        with self._lock:
            if self._scanning:
                return False
            self._scanning = True
            self._total = 0
            self._current = 0
            return True

    def set_total(self, total: int) -> None:
        with self._lock:
            self._total = total

    def advance(self, count: int) -> None:
        with self._lock:
            self._current += count

    def finish(self) -> None:
        with self._lock:
            self._scanning = False

    def snapshot(self) -> ScanProgress:
        with self._lock:
            return ScanProgress(
                scanning=self._scanning, total=self._total, current=self._current
            )


class LibraryScanWorker:
    """Owns the scan status and launches scans in the background.

    The scanner itself is built per run by ``scanner_factory`` so every scan
    starts from fresh settings and holds no catalog data between runs.
    """

    def __init__(self, scanner_factory: Callable[[], LibraryScannerService]) -> None:
        self._scanner_factory = scanner_factory
        self.status = ScanStatus()
        self._task: asyncio.Task[ScanSummary | None] | None = None
        self.last_summary: ScanSummary | None = None
        self.last_scan_at: datetime | None = None

    def progress(self) -> ScanProgress:
        return self.status.snapshot()

    def start_scan(self) -> ScanProgress:
        """Launch a scan and return immediately.

        Raises:
            ServerBusyError: A scan is already running.
        """
        if not self.status.try_begin():
            raise ServerBusyError()
        self._task = asyncio.create_task(self._run_guarded(), name="library-scan")
        return self.status.snapshot()

    async def run_scan(self) -> ScanSummary:
        """Run a scan in the caller's task and return its summary.

        Raises:
            ServerBusyError: A scan is already running.
            LibraryPathNotFound: The library root is missing.
        """
        if not self.status.try_begin():
            raise ServerBusyError()
        return await self._execute()

    async def wait(self) -> ScanSummary | None:
        """Wait for the background scan started by ``start_scan``."""
        if self._task is None:
            return None
        return await self._task

    async def stop(self) -> None:
        """Cancel a running background scan (application shutdown)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.info("Library scan cancelled during shutdown")

    async def _run_guarded(self) -> ScanSummary | None:
        try:
            return await self._execute()
        except LibraryPathNotFound as e:
            logger.error(f"Library scan aborted: {e.message}")
        except Exception:
            logger.exception("Library scan crashed")
        return None

    async def _execute(self) -> ScanSummary:
        # Counters were reset by try_begin(); scanning is cleared no matter how we leave
        try:
            logger.info("Library scan started")
            summary = await self._scanner_factory().scan(self.status)
            self.last_summary = summary
            self.last_scan_at = datetime.now(UTC)
            logger.info(
                f"Library scan finished: {summary.artists} artists, {summary.albums} albums, "
                f"{summary.songs} songs, {summary.failed} failed, {summary.deleted} deleted "
                f"({summary.scanned} scanned, {summary.skipped} unchanged, "
                f"{summary.duration_seconds:.1f}s)",
                extra={
                    "artists": summary.artists,
                    "albums": summary.albums,
                    "songs": summary.songs,
                    "failed": summary.failed,
                    "deleted": summary.deleted,
                    "scanned": summary.scanned,
                    "skipped": summary.skipped,
                },
            )
            return summary
        finally:
            self.status.finish()
