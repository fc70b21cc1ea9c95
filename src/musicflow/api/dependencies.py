"""Dependency injection for API endpoints."""

import logging
from collections.abc import AsyncGenerator
from typing import cast

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.application.services.auth_service import AuthService
from musicflow.application.services.user_service import require_admin
from musicflow.application.workers.library_scan_worker import LibraryScanWorker
from musicflow.config import Settings
from musicflow.infrastructure.images.cover_store import CoverStore
from musicflow.infrastructure.persistence.database import Database
from musicflow.infrastructure.persistence.models import UserModel

logger = logging.getLogger(__name__)


def get_settings_from_state(request: Request) -> Settings:
    return cast(Settings, request.app.state.settings)


def get_database(request: Request) -> Database:
    if not hasattr(request.app.state, "db"):
        raise HTTPException(status_code=503, detail="Database not initialized")
    return cast(Database, request.app.state.db)


async def get_db_session(
    db: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """One transactional session per request: commit on success, rollback on error."""
    async with db.session_scope() as session:
        yield session


def get_scan_worker(request: Request) -> LibraryScanWorker:
    if not hasattr(request.app.state, "scan_worker"):
        raise HTTPException(status_code=503, detail="Library scanner not initialized")
    return cast(LibraryScanWorker, request.app.state.scan_worker)


def get_cover_store(request: Request) -> CoverStore:
    return cast(CoverStore, request.app.state.cover_store)


# Hey future me - Subsonic credentials ride in the QUERY STRING (u, p | t+s) on every call.
# There is no session cookie; each request authenticates from scratch.
async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> UserModel:
    params = request.query_params
    return await AuthService(session).authenticate(
        username=params.get("u"),
        password=params.get("p"),
        token=params.get("t"),
        salt=params.get("s"),
    )


async def get_admin_user(user: UserModel = Depends(get_current_user)) -> UserModel:
    require_admin(user)
    return user
