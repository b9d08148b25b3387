"""
Global test configuration and fixtures for sealed-session

Shared fixtures for session options, fake request/response pairs, a
controllable clock and the FastAPI demo client.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from sealed_session.core.config import settings
from sealed_session.core.limiter import limiter
from sealed_session.main import app
from tests.utils.helpers import (
    SECOND_PASSWORD,
    TEST_PASSWORD,
    FakeClock,
    make_request,
    make_response,
)

COOKIE_NAME = "test"


# ============================================================================
# Session Option Fixtures
# ============================================================================

@pytest.fixture
def password():
    return TEST_PASSWORD


@pytest.fixture
def second_password():
    return SECOND_PASSWORD


@pytest.fixture
def cookie_name():
    return COOKIE_NAME


@pytest.fixture
def options(cookie_name, password):
    """Minimal valid session options as a plain mapping"""
    return {"cookie_name": cookie_name, "password": password}


# ============================================================================
# Transport Fixtures
# ============================================================================

@pytest.fixture
def blank_request():
    """Request without any Cookie header"""
    return make_request()


@pytest.fixture
def response():
    """Classic response recording set_header calls"""
    return make_response()


# ============================================================================
# Time Fixtures
# ============================================================================

@pytest.fixture
def clock():
    """Freeze time.time() at 0; tests move it by assigning clock.now"""
    fake = FakeClock(0)
    with patch("time.time", fake):
        yield fake


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture
def test_settings(monkeypatch):
    """Override settings for the demo service"""
    monkeypatch.setattr(settings, "session_password", TEST_PASSWORD)
    monkeypatch.setattr(settings, "session_cookie_name", "sealed_session")
    monkeypatch.setattr(settings, "session_ttl", 3600)
    monkeypatch.setattr(settings, "secure_cookies", True)
    monkeypatch.setattr(settings, "dev_mode", False)
    return settings


@pytest.fixture
def client(test_settings):
    """FastAPI test client over HTTPS so Secure cookies round-trip"""
    limiter.reset()
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client
    limiter.reset()


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "security: mark test as security-related"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as exercising HTTP endpoints"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on file location"""
    for item in items:
        path = str(item.fspath)
        if "security" in path:
            item.add_marker(pytest.mark.security)
        if "integration" in path:
            item.add_marker(pytest.mark.integration)
