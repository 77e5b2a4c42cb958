# =============================================================================
# tests/test_telemetry.py - Sentry Integration Tests
# =============================================================================

import logging
from unittest.mock import MagicMock, patch

import pytest
import sentry_sdk
from fastapi.testclient import TestClient
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from sentry_sdk.transport import Transport

from app.config import Settings
from app.factory import create_app
from app.telemetry import (
    TelemetryConfig,
    build_traces_sampler,
    init_telemetry,
    shutdown_telemetry,
    telemetry_active,
)

TEST_DSN = "https://public@sentry.example.com/1"


class CapturingTransport(Transport):
    """Keeps envelopes in memory instead of sending them."""

    def __init__(self):
        super().__init__()
        self.envelopes = []

    def capture_envelope(self, envelope):
        self.envelopes.append(envelope)

    @property
    def transactions(self) -> list[dict]:
        events = (envelope.get_transaction_event() for envelope in self.envelopes)
        return [event for event in events if event is not None]


@pytest.fixture
def live_sdk():
    """Initialize the real SDK through init_telemetry, capturing what it sends."""
    transport = CapturingTransport()
    real_init = sentry_sdk.init

    def init_with_transport(**kwargs):
        return real_init(transport=transport, auto_enabling_integrations=False, **kwargs)

    with patch("app.telemetry.sentry_sdk.init", side_effect=init_with_transport):
        assert init_telemetry(TelemetryConfig(dsn=TEST_DSN)) is True

    yield transport

    shutdown_telemetry()


# =============================================================================
# TelemetryConfig Tests
# =============================================================================

class TestTelemetryConfig:

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            ENVIRONMENT="staging",
            SENTRY_DSN="https://key@o0.ingest.sentry.io/1",
            SENTRY_RELEASE="api@1.2.3",
            SENTRY_TRACES_SAMPLE_RATE=0.25,
        )

        config = TelemetryConfig.from_settings(settings)

        assert config.dsn == "https://key@o0.ingest.sentry.io/1"
        assert config.environment == "staging"
        assert config.release == "api@1.2.3"
        assert config.traces_sample_rate == 0.25
        assert config.enabled is True

    def test_default_rate_is_one(self):
        assert TelemetryConfig().traces_sample_rate == 1.0

    @pytest.mark.parametrize("dsn", [None, ""])
    def test_disabled_without_dsn(self, dsn):
        assert TelemetryConfig(dsn=dsn).enabled is False


# =============================================================================
# Traces Sampler Tests
# =============================================================================

class TestTracesSampler:
    """The SDK callback wraps the sampling policy."""

    def test_parent_decision_passes_through(self):
        sampler = build_traces_sampler(0.5)

        assert sampler({"parent_sampled": True, "asgi_scope": {"path": "/api/notify"}}) == 1.0
        assert sampler({"parent_sampled": False, "asgi_scope": {"path": "/orders"}}) == 0.0

    def test_notify_path_from_asgi_scope_is_dropped(self):
        sampler = build_traces_sampler(1.0)

        assert sampler({"parent_sampled": None, "asgi_scope": {"path": "/api/notify"}}) == 0.0

    def test_explicit_url_key_wins_over_asgi_scope(self):
        sampler = build_traces_sampler(1.0)

        context = {
            "parent_sampled": None,
            "url": "api/notify/negotiate",
            "asgi_scope": {"path": "/api/notify/negotiate"},
        }

        assert sampler(context) == 0.0

    def test_asgi_negotiate_path_is_not_normalized(self):
        """The ASGI path has a leading slash, so it does not match."""
        sampler = build_traces_sampler(1.0)

        assert sampler({"asgi_scope": {"path": "/api/notify/negotiate"}}) == 1.0

    def test_unset_falls_back_to_default_rate(self):
        sampler = build_traces_sampler(0.3)

        assert sampler({"parent_sampled": None, "asgi_scope": {"path": "/orders/42"}}) == 0.3

    def test_missing_url_falls_back_to_default_rate(self):
        sampler = build_traces_sampler(1.0)

        assert sampler({"transaction_context": {"op": "queue.task"}}) == 1.0


# =============================================================================
# init / shutdown Tests
# =============================================================================

class TestInitTelemetry:

    def test_skips_sdk_without_dsn(self):
        with patch("app.telemetry.sentry_sdk.init") as mock_init:
            assert init_telemetry(TelemetryConfig(dsn=None)) is False

        mock_init.assert_not_called()

    def test_initializes_sdk(self):
        config = TelemetryConfig(
            dsn="https://key@o0.ingest.sentry.io/1",
            environment="production",
            release="api@1.0.0",
        )

        with patch("app.telemetry.sentry_sdk.init") as mock_init:
            assert init_telemetry(config) is True

        mock_init.assert_called_once()
        kwargs = mock_init.call_args.kwargs
        assert kwargs["dsn"] == config.dsn
        assert kwargs["environment"] == "production"
        assert kwargs["release"] == "api@1.0.0"
        assert kwargs["traces_sample_rate"] == 1.0

        integration_types = {type(i) for i in kwargs["integrations"]}
        assert integration_types == {StarletteIntegration, FastApiIntegration, LoggingIntegration}

    def test_registers_sampling_policy(self):
        config = TelemetryConfig(dsn="https://key@o0.ingest.sentry.io/1")

        with patch("app.telemetry.sentry_sdk.init") as mock_init:
            init_telemetry(config)

        sampler = mock_init.call_args.kwargs["traces_sampler"]
        assert sampler({"asgi_scope": {"path": "/api/notify"}}) == 0.0
        assert sampler({"asgi_scope": {"path": "/orders/42"}}) == 1.0

    def test_logs_disabled(self, caplog):
        with caplog.at_level(logging.INFO, logger="app.telemetry"):
            init_telemetry(TelemetryConfig())

        assert "error tracking disabled" in caplog.text


class TestShutdownTelemetry:

    def test_noop_when_inactive(self):
        client = MagicMock()
        client.is_active.return_value = False

        with patch("app.telemetry.sentry_sdk.get_client", return_value=client), \
             patch("app.telemetry.sentry_sdk.flush") as mock_flush:
            shutdown_telemetry()

        mock_flush.assert_not_called()
        client.close.assert_not_called()

    def test_flushes_and_closes(self):
        client = MagicMock()
        client.is_active.return_value = True

        with patch("app.telemetry.sentry_sdk.get_client", return_value=client), \
             patch("app.telemetry.sentry_sdk.get_global_scope") as mock_scope, \
             patch("app.telemetry.sentry_sdk.flush") as mock_flush:
            shutdown_telemetry(timeout=1.5)

        mock_flush.assert_called_once_with(timeout=1.5)
        client.close.assert_called_once_with(timeout=1.5)
        mock_scope.return_value.set_client.assert_called_once_with(None)

    def test_runs_once_with_real_client(self, live_sdk):
        shutdown_telemetry()

        assert telemetry_active() is False
        with patch("app.telemetry.sentry_sdk.flush") as mock_flush:
            shutdown_telemetry()

        mock_flush.assert_not_called()

    def test_app_lifespan_leaves_sdk_to_entry_point(self, live_sdk, settings):
        with TestClient(create_app(settings)) as client:
            client.get("/api/v1/health/live")

        assert telemetry_active() is True


# =============================================================================
# End-to-end Sampling Tests
# =============================================================================

class TestSamplingWithLiveSdk:
    """Transactions the SDK actually sends for real requests."""

    def test_notify_channel_dropped_other_requests_kept(self, live_sdk, settings):
        with TestClient(create_app(settings)) as client:
            with client.websocket_connect("/api/notify") as websocket:
                websocket.receive_json()

            assert client.get("/api/v1/health/live").status_code == 200

        names = [event["transaction"] for event in live_sdk.transactions]
        ops = [event["contexts"]["trace"]["op"] for event in live_sdk.transactions]

        assert any(name.endswith("liveness_check") for name in names)
        assert not any(name.endswith("notify_websocket") for name in names)
        assert "websocket.server" not in ops
