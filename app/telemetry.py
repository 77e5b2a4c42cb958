# =============================================================================
# app/telemetry.py - Sentry Error Tracking & Tracing
# =============================================================================
# Initializes the Sentry SDK once per process and registers the trace
# sampling policy from core.services.sampling_service.
#
# Usage:
#   from app.telemetry import TelemetryConfig, init_telemetry, shutdown_telemetry
#
#   config = TelemetryConfig.from_settings(settings)
#   init_telemetry(config)
#   ...
#   shutdown_telemetry()
#
# The FastAPI/Starlette integrations start one transaction per request and
# hand the ASGI scope to the sampler as part of the sampling context.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from app.config import Settings
from core.models.tracing import TraceContext
from core.services.sampling_service import evaluate_sampling

logger = logging.getLogger(__name__)

TracesSampler = Callable[[dict[str, Any]], float]


@dataclass(frozen=True)
class TelemetryConfig:
    """
    Everything the Sentry SDK is initialized with.

    Built once at startup and passed to init_telemetry().
    """

    dsn: Optional[str] = None
    environment: str = "development"
    release: Optional[str] = None
    traces_sample_rate: float = 1.0
    debug: bool = False
    send_default_pii: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelemetryConfig":
        return cls(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            release=settings.SENTRY_RELEASE,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            debug=settings.SENTRY_DEBUG,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.dsn)


def _request_url(sampling_context: dict[str, Any]) -> Optional[str]:
    """The "url" key if the caller supplied one, else the ASGI request path."""
    if "url" in sampling_context:
        return sampling_context["url"]

    asgi_scope = sampling_context.get("asgi_scope") or {}
    return asgi_scope.get("path")


def build_traces_sampler(default_rate: float = 1.0) -> TracesSampler:
    """
    Build the traces_sampler callback registered with the SDK.

    The SDK ignores traces_sample_rate once a traces_sampler is set, so an
    unset decision is turned into default_rate here.

    Args:
        default_rate: Rate for transactions no sampling rule applies to

    Returns:
        Callable taking the SDK sampling context and returning a rate
    """

    def traces_sampler(sampling_context: dict[str, Any]) -> float:
        context = TraceContext.from_sampling_context({
            "parent_sampled": sampling_context.get("parent_sampled"),
            "url": _request_url(sampling_context),
        })

        decision = evaluate_sampling(context)
        return default_rate if decision is None else decision

    return traces_sampler


def init_telemetry(config: TelemetryConfig) -> bool:
    """
    Initialize the Sentry SDK.

    Call exactly once, during process startup, before the app serves
    requests.

    Returns:
        bool: True if the SDK was initialized, False when no DSN is set
    """
    if not config.enabled:
        logger.info("SENTRY_DSN not set, error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=config.dsn,
        environment=config.environment,
        release=config.release,
        debug=config.debug,
        send_default_pii=config.send_default_pii,
        # Ignored by the SDK while traces_sampler is set
        traces_sample_rate=config.traces_sample_rate,
        traces_sampler=build_traces_sampler(config.traces_sample_rate),
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
    )

    logger.info(
        f"Sentry initialized for environment={config.environment}, "
        f"default traces sample rate={config.traces_sample_rate}"
    )
    return True


def telemetry_active() -> bool:
    """Check whether a Sentry client is currently active."""
    return sentry_sdk.get_client().is_active()


def shutdown_telemetry(timeout: float = 2.0) -> None:
    """
    Flush pending events and close the Sentry client.

    Safe to call when the SDK was never initialized, and a no-op on any
    call after the first.
    """
    if not telemetry_active():
        return

    logger.debug("Flushing Sentry events")
    sentry_sdk.flush(timeout=timeout)
    sentry_sdk.get_client().close(timeout=timeout)

    # A closed client still reports itself active
    sentry_sdk.get_global_scope().set_client(None)
