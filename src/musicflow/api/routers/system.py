"""System endpoints. Both are public: clients call them before authenticating."""

from fastapi import APIRouter, Request, Response

from musicflow.api.subsonic import subsonic_endpoint, subsonic_response

router = APIRouter(tags=["system"])


@subsonic_endpoint(router, "ping")
async def ping(request: Request) -> Response:
    return subsonic_response(request)


@subsonic_endpoint(router, "getLicense")
async def get_license(request: Request) -> Response:
    return subsonic_response(
        request,
        {
            "license": {
                "valid": True,
                "email": "musicflow@localhost",
                "licenseExpires": "2099-12-31T23:59:59",
            }
        },
    )
