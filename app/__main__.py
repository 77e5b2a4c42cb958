# =============================================================================
# app/__main__.py - Process Entry Point
# =============================================================================
# Runs the API under uvicorn with logging scoped to the process lifetime.
#
# Usage:
#   python -m app
#   sentry-extension-example
#
# Startup failures are logged and re-raised so the process exits non-zero
# instead of running half configured.
# =============================================================================

import logging
from typing import Optional

import uvicorn

from app.config import Settings, get_settings
from app.factory import create_app
from app.logging_config import logging_lifetime
from app.telemetry import TelemetryConfig, init_telemetry, shutdown_telemetry

logger = logging.getLogger(__name__)


class ServerStartupError(RuntimeError):
    """Raised when uvicorn gives up before the server is listening."""


def serve(app, settings: Settings) -> None:
    """
    Run uvicorn until it stops.

    uvicorn reports startup failures (port in use, lifespan errors) by
    exiting instead of raising, so they are turned into ServerStartupError.
    """
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,
    ))

    try:
        server.run()
    except SystemExit as e:
        raise ServerStartupError(
            f"Server failed to start on {settings.API_HOST}:{settings.API_PORT} (exit code {e.code})"
        ) from e

    if not server.started:
        raise ServerStartupError(
            f"Server failed to start on {settings.API_HOST}:{settings.API_PORT}"
        )


def run(settings: Optional[Settings] = None) -> None:
    """
    Start the API server and block until it stops.

    Owns the process-wide telemetry: initialized here and torn down once on
    the way out.

    Raises:
        ServerStartupError: If the server never started listening
        Exception: Whatever else stopped startup or the server, after logging it
    """
    settings = settings or get_settings()

    with logging_lifetime(level=settings.log_level, json_format=settings.LOG_JSON):
        try:
            logger.debug("init main")
            init_telemetry(TelemetryConfig.from_settings(settings))

            serve(create_app(settings), settings)
        except Exception:
            logger.exception("Stopped program because of exception")
            raise
        finally:
            shutdown_telemetry()


if __name__ == "__main__":
    run()
