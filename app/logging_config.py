# =============================================================================
# app/logging_config.py - Structured Logging
# =============================================================================
# Process-wide logging setup for the API.
#
# Provides:
# - setup_logging(): configure the root logger once at startup
# - JSONFormatter: one JSON object per line for log aggregators
# - RequestContextMiddleware: request id propagation and access logging
# - logging_lifetime(): set up on entry, flush and shut down on every exit
#
# Usage:
#   from app.logging_config import logging_lifetime
#
#   with logging_lifetime(level="INFO", json_format=False):
#       run_server()
# =============================================================================

import json
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Request id for the request being handled on this task
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName", "request_id",
}


def get_request_id() -> Optional[str]:
    """Get the request id of the current request, if any."""
    return request_id_var.get()


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Produces JSON lines with timestamp, level, logger, message, request id,
    source location for warnings and above, exception text, and any fields
    passed through `extra=`.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_data["request_id"] = request_id

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure the root logger.

    Existing root handlers are removed so only ours remain, and uvicorn's
    loggers are routed through the root logger.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Emit JSON lines instead of the plain text format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    handler.addFilter(RequestIdFilter())
    root_logger.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    # Our middleware already writes an access line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger.debug(f"Logging configured: level={level}, json={json_format}")


@contextmanager
def logging_lifetime(level: str = "INFO", json_format: bool = False) -> Iterator[None]:
    """
    Scope logging to the process lifetime.

    logging.shutdown() runs on every exit path, including exceptions,
    so buffered records reach their handlers before the process ends.
    """
    setup_logging(level=level, json_format=json_format)
    try:
        yield
    finally:
        logging.shutdown()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request id propagation and access logging.

    - Reads X-Request-ID from the request or generates a uuid4
    - Makes it available to log records for the duration of the request
    - Echoes it in the response headers
    - Logs method, path, status and duration
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - started) * 1000

            response.headers[self.HEADER_NAME] = request_id
            logger.info(
                f"{request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms",
                extra={
                    "http_method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            return response
        finally:
            request_id_var.reset(token)
