"""Subsonic API routers, all mounted under /rest."""

from fastapi import APIRouter

from . import (
    annotation,
    browsing,
    library,
    lists,
    media,
    play_queue,
    playlists,
    search,
    system,
    users,
)

api_router = APIRouter(prefix="/rest")
for module in (
    system,
    browsing,
    lists,
    search,
    playlists,
    annotation,
    media,
    library,
    users,
    play_queue,
):
    api_router.include_router(module.router)

__all__ = ["api_router"]
