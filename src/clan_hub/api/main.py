"""
FastAPI application for the Clan Hub API.

Serves the public roster and news feed, the admin write endpoints and the
YouTube / Twitch / PUBG proxies, and runs the background jobs.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import msgspec
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ..core.config import get_settings
from ..jobs import JobScheduler, create_scheduler
from ..services import MemberStatsService
from .dependencies import (
    build_feed_sync_job,
    close_clients,
    close_repos,
    get_pubg_client,
    get_repos,
    get_youtube_client,
)
from .errors import APIError, api_error_handler
from .routers import auth, channels, members, news, pubg, twitch

logger = logging.getLogger(__name__)


class MSGSpecResponse(Response):
    """Custom response class using msgspec for JSON serialization."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        if content is None:
            return b""
        return msgspec.json.encode(content)


async def run_youtube_sync() -> Any:
    """Scheduled feed sync over the process-wide collaborators."""
    return await build_feed_sync_job(get_repos(), get_youtube_client(), get_settings()).run()


async def run_member_refresh() -> Any:
    """Scheduled stats refresh of the whole roster."""
    return await MemberStatsService(get_repos(), get_pubg_client()).refresh_all()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle.

    Startup:
    - Open the storage backend
    - Start the job scheduler (when enabled)

    Shutdown:
    - Stop the scheduler
    - Close upstream clients and the storage backend
    """
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")

    repos = get_repos()
    if repos.db is not None:
        from ..schema import init_database

        repos.db.open()
        init_database(repos.db)
        logger.info("Database connection pool opened")

    scheduler: JobScheduler = create_scheduler(settings, run_youtube_sync, run_member_refresh)
    app.state.scheduler = scheduler
    if settings.scheduler_enabled:
        await scheduler.start()

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await scheduler.stop()
    await close_clients()
    close_repos()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Clan roster, news feed and PUBG / YouTube / Twitch proxies",
        version=settings.app_version,
        default_response_class=MSGSpecResponse,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=settings.cors_expose_headers,
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        return response

    app.add_exception_handler(APIError, api_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions with consistent format."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        show_detail = settings.debug and settings.environment != "production"
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                    "detail": str(exc) if show_detail else None,
                }
            },
        )

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(tz=timezone.utc).isoformat()}

    @app.get("/api/status", tags=["health"])
    async def status(request: Request):
        """Online message plus scheduler state."""
        scheduler: JobScheduler | None = getattr(request.app.state, "scheduler", None)
        return {
            "status": "online",
            "message": f"{settings.app_name} is running",
            "version": settings.app_version,
            "storage": "postgres" if settings.use_postgres else "memory",
            "scheduler": scheduler.get_status() if scheduler else None,
        }

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(members.router, prefix="/api/members", tags=["members"])
    app.include_router(news.router, prefix="/api/news", tags=["news"])
    app.include_router(channels.router, prefix="/api/youtube", tags=["youtube"])
    app.include_router(twitch.router, prefix="/api/twitch", tags=["twitch"])
    app.include_router(pubg.router, prefix="/api/pubg", tags=["pubg"])

    return app


app = create_app()
