"""FastAPI application factory.

create_app() returns a configured FastAPI instance. Everything with
process-wide state (settings, database engine, token service, media
store) is built here and hung off app.state, so each app instance, and
each test, gets its own. Lifespan only manages connections that need an
event loop: Redis on startup, engine disposal on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vidtube import __version__
from vidtube.api import api_router
from vidtube.auth.tokens import TokenService
from vidtube.config import Settings
from vidtube.db.engine import Database
from vidtube.db.redis import close_redis, connect_redis
from vidtube.errors import register_error_handlers
from vidtube.middleware.rate_limit import RateLimitMiddleware
from vidtube.middleware.request_id import RequestIdMiddleware
from vidtube.middleware.security import SecurityHeadersMiddleware
from vidtube.storage.media import MediaStore, build_media_store

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Console output while developing, JSON lines everywhere else."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if settings.debug else logging.INFO
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "vidtube.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        media_store=app.state.media is not None,
    )
    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    # Redis is optional; without it the rate limiter is a no-op.
    app.state.redis = await connect_redis(settings.redis_url)

    yield

    logger.info("vidtube.shutdown")
    await close_redis(app.state.redis)
    app.state.redis = None
    await app.state.db.dispose()


def create_app(
    settings: Optional[Settings] = None,
    media_store: Optional[MediaStore] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    settings defaults to Settings() from the environment. media_store
    defaults to the S3-compatible store described by settings (None when
    no bucket is configured, in which case upload routes answer 502).
    """
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="VidTube",
        description="Video-sharing platform backend",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.tokens = TokenService(settings)
    app.state.media = media_store if media_store is not None else build_media_store(settings)
    app.state.redis = None

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = Settings()
    uvicorn.run(
        "vidtube.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
