"""
Per-request session handle backed by a sealed cookie.

Usage with FastAPI/Starlette::

    session = await get_sealed_session(request, response, options)
    session["user"] = {"id": 1}
    await session.save()

The handle is a mutable mapping of the caller's data. ``save``, ``destroy``
and ``update_config`` are fixed operations and cannot be reassigned.
"""

import logging
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from starlette.concurrency import run_in_threadpool

from sealed_session.core.codec import SessionCodec
from sealed_session.core.cookies import build_destroy_cookie, build_set_cookie, merge_with_existing
from sealed_session.core.exceptions import AlreadySentError
from sealed_session.core.schemas.session import SessionOptions
from sealed_session.core.transports import CookieTransport, resolve_transport

logger = logging.getLogger(__name__)

HEADERS_SENT_MESSAGE = (
    "Cannot set session cookie: session.{operation}() was called after headers were sent. "
    "Make sure to call it before the response is sent."
)


class SealedSession(MutableMapping):
    """Session data for one request plus the operations that persist it."""

    __slots__ = ("_data", "_options", "_transport")

    _OPERATIONS = frozenset({"save", "destroy", "update_config"})

    def __init__(self, data: Mapping[str, Any], options: SessionOptions, transport: CookieTransport):
        self._data: Dict[str, Any] = dict(data)
        self._options = options
        self._transport = transport

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._OPERATIONS:
            raise AttributeError(f"'{type(self).__name__}' object attribute '{name}' is read-only")
        super().__setattr__(name, value)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<SealedSession(keys={list(self._data)!r})>"

    @property
    def options(self) -> SessionOptions:
        """Options currently bound to this handle."""
        return self._options

    def _ensure_not_sent(self, operation: str) -> None:
        if self._transport.headers_sent:
            raise AlreadySentError(HEADERS_SENT_MESSAGE.format(operation=operation))

    def _append_cookie(self, cookie_value: str) -> None:
        # Always re-read: other code may have added cookies since the last write
        existing = self._transport.get_set_cookie()
        self._transport.set_set_cookie(merge_with_existing(existing, cookie_value))

    async def save(self) -> None:
        """
        Seal the current data and append the session cookie to the response.

        Raises:
            AlreadySentError: If the response was already flushed
            CookieTooLargeError: If the sealed cookie exceeds the size limit
            SessionEncryptionError: If the data cannot be sealed
        """
        self._ensure_not_sent("save")

        options = self._options
        codec = SessionCodec(options.key_registry())
        token = await run_in_threadpool(codec.encode, dict(self._data))
        cookie_value = build_set_cookie(options.cookie_name, token, options.ttl, options.cookie_options)

        self._append_cookie(cookie_value)
        logger.debug("Session cookie %s saved (%d keys)", options.cookie_name, len(self._data))

    def destroy(self) -> None:
        """
        Clear all session data and expire the session cookie.

        Raises:
            AlreadySentError: If the response was already flushed
        """
        self._ensure_not_sent("destroy")

        self._data.clear()
        options = self._options
        self._append_cookie(build_destroy_cookie(options.cookie_name, options.cookie_options))
        logger.debug("Session cookie %s destroyed", options.cookie_name)

    def update_config(self, partial: Optional[Mapping[str, Any]] = None, /, **changes: Any) -> None:
        """
        Change the options used by later save()/destroy() calls on this handle.

        Args:
            partial: Mapping of option fields to replace
            **changes: Option fields to replace, merged after `partial`

        Raises:
            ConfigError: If the merged options are invalid
        """
        updates = dict(partial or {})
        updates.update(changes)
        self._options = self._options.merged(updates)


async def get_sealed_session(
    request: Any,
    response: Any,
    options: Union[SessionOptions, Mapping[str, Any]],
) -> SealedSession:
    """
    Load the session for a request.

    Args:
        request: Starlette Request, or any object with a ``headers`` mapping
        response: Starlette Response, or any object with get_header/set_header
        options: SessionOptions or a mapping of option fields

    Returns:
        A SealedSession holding the decoded data, or empty when the cookie is
        absent, invalid or expired

    Raises:
        UsageError: If request or response is missing
        ConfigError: If the options are invalid
    """
    transport = resolve_transport(request, response)
    resolved = SessionOptions.resolve(options)

    token = transport.read_cookie(resolved.cookie_name)
    data: Dict[str, Any] = {}
    if token:
        codec = SessionCodec(resolved.key_registry())
        data = await run_in_threadpool(codec.decode, token, resolved.ttl)

    return SealedSession(data, resolved, transport)
