# =============================================================================
# tests/test_sampling_service.py - Trace Sampling Policy Tests
# =============================================================================

import pytest
from pydantic import ValidationError

from core.models.tracing import TraceContext
from core.services.sampling_service import DROPPED_URLS, evaluate_sampling


# =============================================================================
# TraceContext Tests
# =============================================================================

class TestTraceContext:
    """Tests for the TraceContext model."""

    def test_defaults_are_unset(self):
        """A bare context has no parent decision and no url."""
        context = TraceContext()

        assert context.parent_sampled is None
        assert context.url is None

    def test_from_sampling_context(self):
        """Reads parent_sampled and url from a mapping."""
        context = TraceContext.from_sampling_context({
            "parent_sampled": True,
            "url": "/api/notify",
            "transaction_context": {"op": "http.server"},
        })

        assert context.parent_sampled is True
        assert context.url == "/api/notify"

    def test_from_sampling_context_missing_keys(self):
        """Missing keys become None."""
        context = TraceContext.from_sampling_context({})

        assert context == TraceContext()

    def test_url_is_not_normalized(self):
        """The url is kept exactly as supplied."""
        context = TraceContext.from_sampling_context({"url": "api/notify/negotiate"})

        assert context.url == "api/notify/negotiate"

    def test_is_immutable(self):
        """Contexts are frozen."""
        context = TraceContext(url="/orders/42")

        with pytest.raises(ValidationError):
            context.url = "/api/notify"


# =============================================================================
# Parent Decision Tests
# =============================================================================

class TestParentDecision:
    """A parent decision always wins over url rules."""

    @pytest.mark.parametrize("url", [None, "/api/notify", "api/notify/negotiate", "/orders/42"])
    def test_sampled_parent_returns_one(self, url):
        assert evaluate_sampling(TraceContext(parent_sampled=True, url=url)) == 1.0

    @pytest.mark.parametrize("url", [None, "/api/notify", "api/notify/negotiate", "/orders/42"])
    def test_unsampled_parent_returns_zero(self, url):
        assert evaluate_sampling(TraceContext(parent_sampled=False, url=url)) == 0.0

    def test_parent_decision_is_a_float(self):
        """Returns exactly 1.0 / 0.0, not booleans."""
        assert type(evaluate_sampling(TraceContext(parent_sampled=True))) is float
        assert type(evaluate_sampling(TraceContext(parent_sampled=False))) is float


# =============================================================================
# URL Rule Tests
# =============================================================================

class TestUrlRules:
    """Root transactions are decided by url."""

    def test_notify_channel_is_dropped(self):
        assert evaluate_sampling(TraceContext(url="/api/notify")) == 0.0

    def test_negotiate_endpoint_is_dropped(self):
        assert evaluate_sampling(TraceContext(url="api/notify/negotiate")) == 0.0

    @pytest.mark.parametrize("url", [
        "/orders/42",
        "/api/notify/negotiate",
        "api/notify",
        "/api/notify/",
        "/API/NOTIFY",
        "/api/notify?x=1",
        "",
    ])
    def test_other_urls_are_unset(self, url):
        """Only exact matches are dropped; everything else defers."""
        assert evaluate_sampling(TraceContext(url=url)) is None

    def test_absent_url_is_unset(self):
        assert evaluate_sampling(TraceContext()) is None

    def test_dropped_urls_literals(self):
        """Both spellings are kept exactly."""
        assert DROPPED_URLS == {"/api/notify", "api/notify/negotiate"}


# =============================================================================
# Scenario Tests
# =============================================================================

class TestScenarios:

    def test_root_notify_request(self):
        assert evaluate_sampling(TraceContext(parent_sampled=None, url="/api/notify")) == 0.0

    def test_parent_overrides_url_rule(self):
        assert evaluate_sampling(TraceContext(parent_sampled=False, url="/api/notify")) == 0.0

    def test_ordinary_request_defers(self):
        assert evaluate_sampling(TraceContext(parent_sampled=None, url="/orders/42")) is None

    def test_idempotent(self):
        """Same input, same output, every time."""
        for context in (
            TraceContext(parent_sampled=True, url="/api/notify"),
            TraceContext(url="/api/notify"),
            TraceContext(url="/orders/42"),
        ):
            assert evaluate_sampling(context) == evaluate_sampling(context)
