# =============================================================================
# tests/ - Test Suite
# =============================================================================
# - test_sampling_service.py: Trace sampling policy
# - test_telemetry.py: Sentry SDK setup and sampler adapter
# - test_logging_config.py: Logging setup, JSON output, process lifetime
# - test_config.py: Settings parsing
# - test_app.py: Middleware, docs, health, error handling
# - test_auth.py: Bearer token verification
# - test_realtime.py: Notification channel
# - test_entrypoint.py: Process entry point
#
# Run tests with: pytest
# =============================================================================
