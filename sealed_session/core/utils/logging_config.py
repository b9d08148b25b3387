"""
Structured logging for sealed-session services.

JSON log lines carry a per-request correlation id. Extra fields whose names
suggest secrets or session material are redacted. Session tokens are never
logged; use token_fingerprint() when a log line needs to tell two tokens
apart.
"""

import hashlib
import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, Optional

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

SENSITIVE_KEYWORDS: FrozenSet[str] = frozenset({
    "password", "secret", "key", "token", "credential", "auth",
    "session", "cookie", "seal", "private",
})

REDACTED = "[REDACTED]"

# Attributes every LogRecord has; anything else came in through `extra=`
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation_id", "taskName"}


def token_fingerprint(token: Optional[str]) -> str:
    """Short, non-reversible tag for a token, safe to log."""
    if not token:
        return "none"
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


class CorrelationIdFilter(logging.Filter):
    """Copy the current correlation id onto every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get()
        return True


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter with redaction of sensitive extra fields.
    """

    def __init__(
        self,
        include_sensitive: bool = False,
        sensitive_keywords: Iterable[str] = SENSITIVE_KEYWORDS,
    ):
        """
        Args:
            include_sensitive: Emit sensitive extra fields unredacted (dev only)
            sensitive_keywords: Substrings that mark an extra field as sensitive
        """
        super().__init__()
        self.include_sensitive = include_sensitive
        self.sensitive_keywords = frozenset(k.lower() for k in sensitive_keywords)

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = self._extra_fields(record)
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str)

    def _extra_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        fields = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            if not self.include_sensitive and self.is_sensitive(key):
                value = REDACTED
            fields[key] = value
        return fields

    def is_sensitive(self, field_name: str) -> bool:
        name = field_name.lower()
        return any(keyword in name for keyword in self.sensitive_keywords)


def setup_logging(
    log_level: str = "INFO",
    enable_json: bool = True,
    log_file: Optional[str] = None,
    include_sensitive: bool = False,
) -> None:
    """
    Replace the root handlers with a console (and optional file) handler.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        enable_json: JSON lines when True, plain text otherwise
        log_file: Optional file path to log to as well
        include_sensitive: Disable redaction of sensitive extra fields
    """
    if enable_json:
        formatter: logging.Formatter = StructuredFormatter(include_sensitive=include_sensitive)
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"
        )

    handlers: list = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_correlation_id() -> str:
    """Return the correlation id of the current context, creating one if needed."""
    correlation_id = correlation_id_ctx.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        correlation_id_ctx.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: Optional[str]) -> None:
    correlation_id_ctx.set(correlation_id)


def get_security_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"security.{name}")


def log_security_event(
    event_type: str,
    message: str,
    ip_address: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    """
    Log a security event on the ``security.events`` logger.

    Args:
        event_type: Event name (login, logout, session_seal_rejected...)
        message: Human-readable message
        ip_address: Optional client address
        extra_data: Additional structured fields
        level: Log level, INFO unless the event needs attention
    """
    # Events always carry a correlation id
    get_correlation_id()

    security_data: Dict[str, Any] = {"event_type": event_type}
    if ip_address:
        security_data["ip_address"] = ip_address
    if extra_data:
        security_data.update(extra_data)

    get_security_logger("events").log(level, message, extra=security_data)


def init_application_logging() -> None:
    """Configure logging for the demo service from settings."""
    from sealed_session.core.config import settings

    is_dev = settings.dev_mode
    log_level = "DEBUG" if is_dev else settings.log_level

    setup_logging(
        log_level=log_level,
        enable_json=not is_dev,
        include_sensitive=is_dev,
    )

    logging.getLogger("sealed_session.startup").info(
        "Structured logging initialized",
        extra={"dev_mode": is_dev, "json_logging": not is_dev, "log_level": log_level},
    )
