"""
Integration tests for API endpoints

These tests drive the demo service through FastAPI's TestClient and check
that the sealed session cookie survives real HTTP round trips.
"""

import pytest

from sealed_session.core.codec import SessionCodec
from sealed_session.core.keys import KeyRegistry
from tests.utils.helpers import (
    DEFAULT_ATTRIBUTES,
    TEST_PASSWORD,
    cookie_value,
    sealed_cookie_pattern,
)

# Mark all tests in this module as integration tests
pytestmark = pytest.mark.integration

COOKIE_NAME = "sealed_session"


def session_cookies(response) -> list[str]:
    return [
        value for value in response.headers.get_list("set-cookie")
        if value.startswith(f"{COOKIE_NAME}=")
    ]


@pytest.mark.api
class TestHealthEndpoints:
    """Test health check and status endpoints"""

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_api_health_endpoint(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["services"]["sessions"] == {"status": "healthy", "cookie_name": COOKIE_NAME}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["x-request-id"] == "req-42"

    def test_request_id_generated_when_missing(self, client):
        assert client.get("/health").headers["x-request-id"]

    def test_api_health_degraded_without_password(self, client, test_settings, monkeypatch):
        monkeypatch.setattr(test_settings, "session_password", None)

        data = client.get("/api/health").json()

        assert data["status"] == "degraded"
        assert data["services"]["sessions"]["status"] == "unhealthy"


@pytest.mark.api
class TestSessionAPI:
    """Test login, status and logout"""

    def test_anonymous_status(self, client):
        response = client.get("/api/session")

        assert response.status_code == 200
        assert response.json() == {
            "is_logged_in": False,
            "username": None,
            "bio": None,
            "login_count": 0,
        }
        assert session_cookies(response) == []

    def test_login_sets_sealed_cookie(self, client):
        response = client.post("/api/session/login", json={"username": "ada"})

        assert response.status_code == 200
        assert response.json()["is_logged_in"] is True

        cookies = session_cookies(response)
        assert len(cookies) == 1
        assert sealed_cookie_pattern(COOKIE_NAME, f"Max-Age=3600; {DEFAULT_ATTRIBUTES}").match(cookies[0])

    def test_login_cookie_does_not_expose_username(self, client):
        response = client.post("/api/session/login", json={"username": "grace-hopper"})

        assert "grace-hopper" not in session_cookies(response)[0]

    def test_login_cookie_unseals_with_configured_password(self, client):
        response = client.post("/api/session/login", json={"username": "ada", "bio": "math"})
        token = cookie_value(session_cookies(response)[0])

        data = SessionCodec(KeyRegistry(TEST_PASSWORD)).decode(token, 3600)
        assert data == {"user": {"username": "ada", "bio": "math"}, "login_count": 1}

    def test_session_persists_between_requests(self, client):
        client.post("/api/session/login", json={"username": "ada", "bio": "math"})

        data = client.get("/api/session").json()

        assert data == {
            "is_logged_in": True,
            "username": "ada",
            "bio": "math",
            "login_count": 1,
        }

    def test_login_count_increments(self, client):
        client.post("/api/session/login", json={"username": "ada"})
        response = client.post("/api/session/login", json={"username": "ada"})

        assert response.json()["login_count"] == 2

    def test_logout_destroys_session(self, client):
        client.post("/api/session/login", json={"username": "ada"})
        response = client.post("/api/session/logout")

        assert response.status_code == 200
        assert response.json()["is_logged_in"] is False
        assert session_cookies(response) == [f"{COOKIE_NAME}=; Max-Age=0; {DEFAULT_ATTRIBUTES}"]

        assert client.get("/api/session").json()["is_logged_in"] is False

    def test_tampered_cookie_is_anonymous(self, client):
        response = client.get("/api/session", headers={"Cookie": f"{COOKIE_NAME}=sv1*AAAA*forged"})

        assert response.status_code == 200
        assert response.json()["is_logged_in"] is False

    def test_invalid_login_payload(self, client):
        response = client.post("/api/session/login", json={"username": ""})

        assert response.status_code == 422


@pytest.mark.api
class TestSessionErrors:
    """Test error mapping for session failures"""

    def test_oversized_session_returns_413(self, client):
        response = client.post("/api/session/login", json={"username": "ada", "bio": "x" * 5000})

        assert response.status_code == 413
        assert "Cookie length is too big" in response.json()["detail"]
        assert session_cookies(response) == []

    def test_missing_password_returns_500(self, client, test_settings, monkeypatch):
        monkeypatch.setattr(test_settings, "session_password", None)

        response = client.get("/api/session")

        assert response.status_code == 500
        assert response.json() == {"detail": "Session configuration error"}

    def test_rotated_password_keeps_users_logged_in(self, client, test_settings, monkeypatch):
        client.post("/api/session/login", json={"username": "ada"})

        rotated = '{"2": "%s", "1": "%s"}' % ("n" * 32, TEST_PASSWORD)
        monkeypatch.setattr(test_settings, "session_password", rotated)

        assert client.get("/api/session").json()["username"] == "ada"
