# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up the test environment before any imports
# - Builds a fresh app per test from explicit Settings
# - Issues signed bearer tokens
# =============================================================================

import os
import time

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# Tests never talk to Sentry or Redis

os.environ.pop("SENTRY_DSN", None)
os.environ.pop("REDIS_URL", None)
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.config import Settings
from app.factory import create_app

TEST_SECRET = "test-secret-key-0123456789"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def settings():
    """Development settings with no external services."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        SECRET_KEY=TEST_SECRET,
        SENTRY_DSN=None,
        REDIS_URL=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # One event loop for HTTP and WebSocket sessions, lifespan included
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_token():
    """Factory for signed bearer tokens."""

    def _make_token(
        sub: str = "user-123",
        email: str | None = "user@example.com",
        audience: str = "authenticated",
        expires_in: int = 3600,
        secret: str = TEST_SECRET,
        **claims,
    ) -> str:
        now = int(time.time())
        payload = {
            "sub": sub,
            "aud": audience,
            "iat": now,
            "exp": now + expires_in,
            **claims,
        }
        if email is not None:
            payload["email"] = email
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make_token


@pytest.fixture
def auth_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}
