"""
Test helper functions for common testing operations

These helpers build fake request/response pairs for the classic header
transport, freeze time and inspect Set-Cookie strings.
"""

import re
from types import SimpleNamespace
from typing import Optional, Union
from unittest.mock import Mock

# name=sv1*<salt>*<fernet token>
SEALED_COOKIE_VALUE = r"sv1\*[A-Za-z0-9_-]{22}\*[A-Za-z0-9_=-]+"
DEFAULT_ATTRIBUTES = "Path=/; HttpOnly; Secure; SameSite=Lax"

TEST_PASSWORD = "kq3Vt8ZxN1pW6rLsYc0HfJ2mDb9GeA4u"
SECOND_PASSWORD = "12345678901234567890123456789012"


class FakeClock:
    """Callable stand-in for time.time()"""

    def __init__(self, now: float = 0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_request(cookie: Optional[str] = None) -> SimpleNamespace:
    """Classic request exposing a lowercase header mapping"""
    headers = {} if cookie is None else {"cookie": cookie}
    return SimpleNamespace(headers=headers)


def make_response(
    existing: Union[str, list[str], None] = None, headers_sent: bool = False
) -> SimpleNamespace:
    """Classic response with recorded get_header/set_header calls"""
    return SimpleNamespace(
        get_header=Mock(return_value=existing),
        set_header=Mock(),
        headers_sent=headers_sent,
    )


def set_cookie_values(response) -> list[str]:
    """Set-Cookie list passed to the last set_header call"""
    assert response.set_header.called, "set_header was never called"
    header_name, values = response.set_header.call_args.args
    assert header_name == "set-cookie"
    return values


def cookie_pair(set_cookie: str) -> str:
    """name=value part of a Set-Cookie string, usable as a Cookie header"""
    return set_cookie.split(";", 1)[0]


def cookie_value(set_cookie: str) -> str:
    return cookie_pair(set_cookie).split("=", 1)[1]


def sealed_cookie_pattern(name: str, attributes: str) -> re.Pattern:
    """Regex for a full sealed Set-Cookie string"""
    return re.compile(
        rf"^{re.escape(name)}={SEALED_COOKIE_VALUE}; {re.escape(attributes)}$"
    )


def assert_no_sensitive_data_in_logs(caplog, sensitive_patterns: list[str]):
    """Assert that sensitive data patterns don't appear in logs"""
    all_logs = " ".join([record.getMessage() for record in caplog.records])

    for pattern in sensitive_patterns:
        assert pattern not in all_logs, f"Sensitive pattern '{pattern}' found in logs"
