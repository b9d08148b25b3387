"""
Exception taxonomy for sealed cookie sessions.

Only configuration, usage, size and timing problems are raised to callers.
Expired, tampered or foreign cookies never raise: they decode to a blank
session instead.
"""


class SealedSessionError(Exception):
    """Base class for every error raised by sealed_session"""
    pass


class UsageError(SealedSessionError, TypeError):
    """Raised when the request/response pair is missing or unusable"""
    pass


class ConfigError(SealedSessionError, ValueError):
    """Raised when session options are missing or invalid"""
    pass


class CookieTooLargeError(SealedSessionError):
    """Raised by save() when the assembled cookie exceeds the size bound"""
    pass


class AlreadySentError(SealedSessionError, RuntimeError):
    """Raised when save()/destroy() runs after the response was flushed"""
    pass


class SessionEncryptionError(SealedSessionError):
    """Raised when session data encryption fails"""
    pass


class InvalidSealError(SealedSessionError):
    """Raised when a token cannot be unsealed with any candidate secret"""
    pass
