"""Incremental library scanner stages.

discovery -> change detection -> extraction (in library_scanner_service)
-> catalog_writer -> cover_processor -> reconciler
"""

from .catalog_writer import CatalogWriter
from .cover_processor import CoverProcessor
from .discovery import detect_changes, discover_audio_files
from .reconciler import Reconciler

__all__ = [
    "CatalogWriter",
    "CoverProcessor",
    "Reconciler",
    "detect_changes",
    "discover_audio_files",
]
