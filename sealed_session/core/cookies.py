"""
Set-Cookie assembly for sealed sessions.

Builds the outgoing header value, resolves Max-Age, enforces the browser
size limit and merges the new entry with cookies already on the response.
"""

import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import List, Optional, Sequence, Union

from sealed_session.core.exceptions import CookieTooLargeError, UsageError
from sealed_session.core.schemas.session import CookieOptions

logger = logging.getLogger(__name__)

# Largest Max-Age browsers honour (2^31 - 1 seconds); used when ttl is 0
MAX_AGE_SENTINEL = 2147483647

# Whole Set-Cookie value, name and attributes included
MAX_COOKIE_SIZE = 4096

SetCookieState = Union[None, str, bytes, Sequence[Union[str, bytes]]]


def compute_max_age(ttl: int, cookie_options: CookieOptions) -> Optional[int]:
    """
    Resolve the Max-Age attribute.

    Priority: explicit cookie_options.max_age (None omits Max-Age entirely),
    then the sentinel for ttl == 0, then the ttl itself.
    """
    if cookie_options.has_explicit_max_age:
        return cookie_options.max_age
    if ttl == 0:
        return MAX_AGE_SENTINEL
    # Full ttl; the skew allowance only widens acceptance on decode
    return ttl


def _format_expires(expires: datetime) -> str:
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return format_datetime(expires.astimezone(timezone.utc), usegmt=True)


def serialize_cookie(
    name: str,
    value: str,
    cookie_options: CookieOptions,
    max_age: Optional[int],
    include_expires: bool = True,
) -> str:
    """Serialize a cookie into a Set-Cookie header value."""
    parts = [f"{name}={value}"]

    if max_age is not None:
        parts.append(f"Max-Age={int(max_age)}")
    if cookie_options.domain:
        parts.append(f"Domain={cookie_options.domain}")
    if cookie_options.path:
        parts.append(f"Path={cookie_options.path}")
    if include_expires and cookie_options.expires is not None:
        parts.append(f"Expires={_format_expires(cookie_options.expires)}")
    if cookie_options.http_only:
        parts.append("HttpOnly")
    if cookie_options.secure:
        parts.append("Secure")
    if cookie_options.partitioned:
        parts.append("Partitioned")
    if cookie_options.priority:
        parts.append(f"Priority={cookie_options.priority.capitalize()}")
    if cookie_options.same_site:
        parts.append(f"SameSite={cookie_options.same_site.capitalize()}")

    return "; ".join(parts)


def build_set_cookie(name: str, token: str, ttl: int, cookie_options: CookieOptions) -> str:
    """
    Build the Set-Cookie value carrying a sealed token.

    Raises:
        CookieTooLargeError: If the cookie exceeds MAX_COOKIE_SIZE
    """
    cookie_value = serialize_cookie(name, token, cookie_options, compute_max_age(ttl, cookie_options))
    if len(cookie_value) > MAX_COOKIE_SIZE:
        logger.warning(
            "Refusing to write oversized session cookie",
            extra={"header_length": len(cookie_value), "limit": MAX_COOKIE_SIZE},
        )
        raise CookieTooLargeError(
            f"Cookie length is too big ({len(cookie_value)} bytes), browsers will refuse it. "
            "Try to remove some data."
        )
    return cookie_value


def build_destroy_cookie(name: str, cookie_options: CookieOptions) -> str:
    """Build a Set-Cookie value that clears the session cookie."""
    return serialize_cookie(name, "", cookie_options, max_age=0, include_expires=False)


def merge_with_existing(existing: SetCookieState, new_value: str) -> List[str]:
    """
    Append a Set-Cookie value after whatever the response already carries.

    Args:
        existing: None, a single header value, or a sequence of values.
            Bytes are decoded as latin-1, the HTTP header encoding.
        new_value: The cookie to append

    Returns:
        Existing values in their original order, followed by new_value

    Raises:
        UsageError: If the response reports Set-Cookie state of another type
    """
    if existing is None:
        values: Sequence[Union[str, bytes]] = []
    elif isinstance(existing, (str, bytes)):
        values = [existing] if existing else []
    elif isinstance(existing, Sequence):
        values = existing
    else:
        raise UsageError(
            f"Unsupported Set-Cookie state of type {type(existing).__name__}"
        )

    merged = [_header_text(value) for value in values]
    merged.append(new_value)
    return merged


def _header_text(value: Union[str, bytes]) -> str:
    if isinstance(value, bytes):
        return value.decode("latin-1")
    if isinstance(value, str):
        return value
    raise UsageError(f"Unsupported Set-Cookie value of type {type(value).__name__}")
