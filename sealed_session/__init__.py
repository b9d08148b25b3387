"""Stateless sessions stored in sealed (encrypted and authenticated) cookies."""

from sealed_session.core.codec import SessionCodec, seal_data, unseal_data
from sealed_session.core.exceptions import (
    AlreadySentError,
    ConfigError,
    CookieTooLargeError,
    SealedSessionError,
    SessionEncryptionError,
    UsageError,
)
from sealed_session.core.keys import KeyRegistry, generate_secret
from sealed_session.core.schemas.session import CookieOptions, SessionOptions
from sealed_session.core.session import SealedSession, get_sealed_session

__all__ = [
    "AlreadySentError",
    "ConfigError",
    "CookieOptions",
    "CookieTooLargeError",
    "KeyRegistry",
    "SealedSession",
    "SealedSessionError",
    "SessionCodec",
    "SessionEncryptionError",
    "SessionOptions",
    "UsageError",
    "generate_secret",
    "get_sealed_session",
    "seal_data",
    "unseal_data",
]
