"""
Transport adapters between request/response objects and the session core.

The core needs four things from a transport: the inbound Cookie header, whether
the response is already flushed, the current Set-Cookie state, and a way to
write a merged Set-Cookie list back.
"""

import abc
import logging
from typing import Any, List, Optional

from starlette.requests import HTTPConnection, cookie_parser
from starlette.responses import Response

from sealed_session.core.cookies import SetCookieState
from sealed_session.core.exceptions import UsageError

logger = logging.getLogger(__name__)

SET_COOKIE_HEADER = "set-cookie"

BAD_USAGE_MESSAGE = "Bad usage: use get_sealed_session(request, response, options)."


class CookieTransport(abc.ABC):
    """Shape-neutral access to the cookie headers of one request/response pair."""

    @abc.abstractmethod
    def read_cookie_header(self) -> Optional[str]: ...

    @property
    @abc.abstractmethod
    def headers_sent(self) -> bool: ...

    @abc.abstractmethod
    def get_set_cookie(self) -> SetCookieState: ...

    @abc.abstractmethod
    def set_set_cookie(self, values: List[str]) -> None: ...

    def read_cookie(self, name: str) -> Optional[str]:
        """Find the value of cookie `name` in the inbound Cookie header.

        Browsers list the cookie with the most specific path first, so the
        first occurrence of a duplicated name wins.
        """
        header = self.read_cookie_header()
        if not header:
            return None
        for chunk in header.split(";"):
            parsed = cookie_parser(chunk)
            if name in parsed:
                return parsed[name] or None
        return None


class HeaderTransport(CookieTransport):
    """Classic header-based shape.

    The request exposes a ``headers`` mapping. The response exposes
    ``get_header(name)``, ``set_header(name, value)`` and optionally a
    ``headers_sent`` flag.
    """

    def __init__(self, request: Any, response: Any):
        self.request = request
        self.response = response

    def read_cookie_header(self) -> Optional[str]:
        headers = getattr(self.request, "headers", None)
        if not headers:
            return None
        value = headers.get("cookie") or headers.get("Cookie")
        if isinstance(value, (list, tuple)):
            value = "; ".join(value)
        return value or None

    @property
    def headers_sent(self) -> bool:
        return bool(getattr(self.response, "headers_sent", False))

    def _response_method(self, name: str):
        method = getattr(self.response, name, None)
        if not callable(method):
            raise UsageError(
                f"Response object of type {type(self.response).__name__} has no {name}() method"
            )
        return method

    def get_set_cookie(self) -> SetCookieState:
        return self._response_method("get_header")(SET_COOKIE_HEADER)

    def set_set_cookie(self, values: List[str]) -> None:
        self._response_method("set_header")(SET_COOKIE_HEADER, values)


class StarletteTransport(CookieTransport):
    """Starlette/FastAPI Request and Response objects.

    A Response held by a handler has not been sent yet, so headers_sent is
    always False here.
    """

    def __init__(self, request: HTTPConnection, response: Response):
        self.request = request
        self.response = response

    def read_cookie_header(self) -> Optional[str]:
        return self.request.headers.get("cookie")

    @property
    def headers_sent(self) -> bool:
        return False

    def get_set_cookie(self) -> SetCookieState:
        return self.response.headers.getlist(SET_COOKIE_HEADER)

    def set_set_cookie(self, values: List[str]) -> None:
        headers = self.response.headers
        del headers[SET_COOKIE_HEADER]
        for value in values:
            headers.append(SET_COOKIE_HEADER, value)


def resolve_transport(request: Any, response: Any) -> CookieTransport:
    """
    Pick the adapter matching the request/response shape.

    Raises:
        UsageError: If either argument is missing
    """
    if request is None or response is None:
        raise UsageError(BAD_USAGE_MESSAGE)

    if isinstance(request, HTTPConnection) and isinstance(response, Response):
        return StarletteTransport(request, response)
    return HeaderTransport(request, response)
