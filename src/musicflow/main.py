"""FastAPI application factory and entry point."""

import uvicorn
from fastapi import FastAPI

from musicflow.api.exception_handlers import register_exception_handlers
from musicflow.api.routers import api_router
from musicflow.config import Settings, get_settings
from musicflow.infrastructure.lifecycle import lifespan
from musicflow.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the application.

    Passing ``settings`` pins them for this app instance (tests do this);
    otherwise the process-wide settings are used.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Subsonic-compatible music server",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router)

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "musicflow.main:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
