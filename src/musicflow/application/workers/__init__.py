"""Background workers."""

from .library_scan_worker import LibraryScanWorker, ScanStatus

__all__ = ["LibraryScanWorker", "ScanStatus"]
