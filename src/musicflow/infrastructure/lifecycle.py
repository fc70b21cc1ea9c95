"""Application lifecycle management for startup and shutdown tasks.

Everything before ``yield`` runs once at startup, everything after it at
shutdown. Long-lived resources (database, cover store, scan worker) hang off
``app.state`` so the request dependencies can reach them.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from musicflow.application.services.auth_service import AuthService
from musicflow.application.services.library_scanner_service import (
    LibraryScannerService,
)
from musicflow.application.workers.library_scan_worker import LibraryScanWorker
from musicflow.config import Settings, get_settings
from musicflow.infrastructure.images.cover_store import CoverStore
from musicflow.infrastructure.metadata import MutagenMetadataExtractor
from musicflow.infrastructure.observability import configure_logging
from musicflow.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


def build_scan_worker(settings: Settings, db: Database, cover_store: CoverStore) -> LibraryScanWorker:
    """Wire a scan worker whose every run gets a freshly built scanner."""

    def scanner_factory() -> LibraryScannerService:
        library_path = settings.storage.music_path
        return LibraryScannerService(
            db=db,
            library_path=library_path,
            extractor=MutagenMetadataExtractor(library_root=library_path),
            cover_store=cover_store,
            settings=settings.scanner,
        )

    return LibraryScanWorker(scanner_factory)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks including:
    - Logging configuration
    - Directory creation
    - Database initialization and the bootstrap admin account
    - Cover store and library scan worker
    - Resource cleanup
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app.state.settings = settings

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s %s", settings.app_name, settings.app_version)

    db: Database | None = None
    scan_worker: LibraryScanWorker | None = None
    try:
        settings.ensure_directories()
        logger.info("Storage directories initialized")

        db = Database(settings)
        await db.create_tables()
        app.state.db = db
        logger.info("Database initialized: %s", settings.database.url)

        async with db.session_scope() as session:
            await AuthService(session).ensure_default_admin(settings.auth)

        cover_store = CoverStore(
            settings.storage.cover_art_path, prewarm_size=settings.scanner.prewarm_size
        )
        app.state.cover_store = cover_store

        scan_worker = build_scan_worker(settings, db, cover_store)
        app.state.scan_worker = scan_worker
        logger.info("Library scanner ready for %s", settings.storage.music_path)

        yield

    finally:
        logger.info("Shutting down application")
        if scan_worker is not None:
            await scan_worker.stop()
        if db is not None:
            await db.close()
            logger.info("Database connections closed")
