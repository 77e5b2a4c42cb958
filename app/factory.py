# =============================================================================
# app/factory.py - FastAPI Application Factory
# =============================================================================
# Builds the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   from app.factory import create_app
#   app = create_app(settings)
#
# Logging and the Sentry SDK are process-wide and owned by the caller
# (app/main.py or app/__main__.py), which sets them up before the app is
# built and tears them down once at process exit.
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware

from app import __version__
from app.auth import routes as auth_routes
from app.config import Settings, get_settings
from app.exceptions import (
    AppException,
    app_exception_handler,
    unhandled_exception_handler,
)
from app.logging_config import RequestContextMiddleware
from app.realtime import ConnectionManager, create_redis_client, redis_listener
from app.realtime import routes as realtime_routes
from app.routers import diagnostics, health
from app.security import HSTSMiddleware

logger = logging.getLogger(__name__)

API_TITLE = "Sentry Extension Example API"

API_DESCRIPTION = """
## Error Tracking, Logging & Real-time Notifications

A small API wired up with:

- **Sentry** error tracking and performance tracing
- **Structured logging** with per-request ids
- **CORS** for any origin
- **Real-time notifications** over WebSockets at `/api/notify`

### Trace Sampling

| Request | Decision |
|---------|----------|
| Continues a sampled trace | always traced |
| Continues an unsampled trace | never traced |
| `/api/notify` channel | never traced |
| Anything else | default rate (`SENTRY_TRACES_SAMPLE_RATE`) |
"""


async def _stop_listener(task: asyncio.Task, shutdown_event: asyncio.Event) -> None:
    shutdown_event.set()
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: connect to Redis and start the notification listener
    - Shutdown: stop the listener, close Redis
    """
    settings: Settings = app.state.settings
    listener_task: Optional[asyncio.Task] = None
    shutdown_event = asyncio.Event()

    logger.info(f"Starting {API_TITLE} in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    if settings.REDIS_URL:
        app.state.redis = create_redis_client(settings.REDIS_URL)
        listener_task = asyncio.create_task(
            redis_listener(app.state.redis, app.state.connection_manager, shutdown_event)
        )

    try:
        yield
    finally:
        logger.info(f"Shutting down {API_TITLE}")

        if listener_task is not None:
            await _stop_listener(listener_task, shutdown_event)

        if app.state.redis is not None:
            await app.state.redis.aclose()
            app.state.redis = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Middleware, outermost first:
        Sentry ASGI integration (added by the SDK when initialized)
        -> server errors (traceback page in development) -> HSTS (outside
        development) -> HTTPS redirection (HTTPS_REDIRECT)
        -> request context/logging -> CORS -> exception handlers -> routing
    Authentication runs per route as a dependency.

    Args:
        settings: Settings to build with; defaults to get_settings()
    """
    settings = settings or get_settings()

    docs_enabled = settings.docs_enabled
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        debug=settings.is_development,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Auth", "description": "Inspect the caller's identity"},
            {"name": "Notifications", "description": "Real-time notification channel"},
            {"name": "Diagnostics", "description": "Error-capture checks"},
            {"name": "Health", "description": "API health and readiness checks"},
        ],
    )

    app.state.settings = settings
    app.state.connection_manager = ConnectionManager()
    app.state.redis = None

    # -------------------------------------------------------------------------
    # Middleware (last added runs first)
    # -------------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    if settings.HTTPS_REDIRECT:
        app.add_middleware(HTTPSRedirectMiddleware)
    if settings.hsts_enabled:
        app.add_middleware(
            HSTSMiddleware,
            max_age=settings.HSTS_MAX_AGE,
            include_subdomains=settings.HSTS_INCLUDE_SUBDOMAINS,
        )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # -------------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------------

    app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(diagnostics.router, prefix="/api/v1", tags=["Diagnostics"])
    app.include_router(realtime_routes.router, tags=["Notifications"])

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint - returns API info."""
        return {
            "name": API_TITLE,
            "version": __version__,
            "docs": "/docs" if docs_enabled else None,
            "health": "/api/v1/health",
        }

    return app
