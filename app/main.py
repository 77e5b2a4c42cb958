# =============================================================================
# app/main.py - ASGI Entry Point
# =============================================================================
# Module-level application for ASGI servers.
#
# Usage:
#   uvicorn app.main:app --reload
#
# For a managed process (logging flushed on exit, startup errors logged)
# use `python -m app` instead.
# =============================================================================

import atexit

from app.config import get_settings
from app.factory import create_app
from app.logging_config import setup_logging
from app.telemetry import TelemetryConfig, init_telemetry, shutdown_telemetry

settings = get_settings()

setup_logging(level=settings.log_level, json_format=settings.LOG_JSON)
if init_telemetry(TelemetryConfig.from_settings(settings)):
    atexit.register(shutdown_telemetry)

app = create_app(settings)
