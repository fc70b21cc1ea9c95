"""Exception handlers rendering Subsonic failed envelopes.

Every error leaves the API as ``{"subsonic-response": {"status": "failed",
"error": {"code": ..., "message": ...}}}`` (or its XML form), with the
HTTP status of the exception class.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from musicflow.api.subsonic.response import error_response
from musicflow.domain.exceptions import MusicFlowError

logger = logging.getLogger(__name__)

MISSING_PARAMETER_CODE = 10
GENERIC_ERROR_CODE = 0


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the app."""

    @app.exception_handler(MusicFlowError)
    async def musicflow_error_handler(request: Request, exc: MusicFlowError) -> Response:
        if exc.http_status >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__}: {exc.message}")
        return error_response(request, exc.subsonic_code, exc.message, exc.http_status)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> Response:
        errors = exc.errors()
        missing = [
            str(error["loc"][-1]) for error in errors if error.get("type") == "missing"
        ]
        if missing:
            return error_response(
                request,
                MISSING_PARAMETER_CODE,
                f"Required parameter is missing: {', '.join(missing)}",
                status.HTTP_400_BAD_REQUEST,
            )
        details = "; ".join(
            f"{error['loc'][-1]}: {error.get('msg', 'invalid value')}" for error in errors
        )
        return error_response(
            request,
            GENERIC_ERROR_CODE,
            f"Invalid parameter: {details}",
            status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        code = 50 if exc.status_code == status.HTTP_404_NOT_FOUND else GENERIC_ERROR_CODE
        return error_response(request, code, str(exc.detail), exc.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> Response:
        logger.error(f"Database error on {request.url.path}: {exc}", exc_info=exc)
        return error_response(
            request,
            GENERIC_ERROR_CODE,
            "Database error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.exception_handler(OSError)
    async def io_error_handler(request: Request, exc: OSError) -> Response:
        logger.error(f"I/O error on {request.url.path}: {exc}", exc_info=exc)
        return error_response(
            request,
            GENERIC_ERROR_CODE,
            "IO error",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
