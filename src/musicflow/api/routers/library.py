"""Library scanning endpoints."""

from fastapi import APIRouter, Depends, Request, Response

from musicflow.api.dependencies import (
    get_admin_user,
    get_current_user,
    get_scan_worker,
    get_settings_from_state,
)
from musicflow.api.routers.browsing import music_folder_payload
from musicflow.api.subsonic import subsonic_endpoint, subsonic_response
from musicflow.application.workers.library_scan_worker import LibraryScanWorker
from musicflow.config import Settings
from musicflow.domain.entities import ScanProgress
from musicflow.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["library"])


def _scan_status(progress: ScanProgress) -> dict:
    return {
        "scanStatus": {
            "scanning": progress.scanning,
            "count": progress.current,
            "total": progress.total,
        }
    }


@subsonic_endpoint(router, "startScan")
async def start_scan(
    request: Request,
    user: UserModel = Depends(get_admin_user),
    worker: LibraryScanWorker = Depends(get_scan_worker),
) -> Response:
    # Raises ServerBusyError (code 60) when a scan is already running
    progress = worker.start_scan()
    return subsonic_response(request, _scan_status(progress))


@subsonic_endpoint(router, "getScanStatus")
async def get_scan_status(
    request: Request,
    user: UserModel = Depends(get_current_user),
    worker: LibraryScanWorker = Depends(get_scan_worker),
) -> Response:
    return subsonic_response(request, _scan_status(worker.progress()))


@subsonic_endpoint(router, "getSystemInfo")
async def get_system_info(
    request: Request,
    user: UserModel = Depends(get_current_user),
    worker: LibraryScanWorker = Depends(get_scan_worker),
    settings: Settings = Depends(get_settings_from_state),
) -> Response:
    return subsonic_response(
        request,
        {
            "systemInfo": {
                "musicFolders": {"musicFolder": [music_folder_payload(settings)]},
                "indexing": worker.progress().scanning,
                "scanDate": worker.last_scan_at,
            }
        },
    )
