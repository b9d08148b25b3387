"""Session and cookie option schemas."""

import re
from datetime import datetime
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, TypeAdapter, ValidationError, field_validator

from sealed_session.core.exceptions import ConfigError
from sealed_session.core.keys import KeyRegistry

FOURTEEN_DAYS = 14 * 24 * 3600

# RFC 7230 token characters
_COOKIE_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def _format_validation_error(error: ValidationError) -> str:
    """Summarize a pydantic error without echoing input values (may be secrets)."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'options'}: {err['msg']}"
        for err in error.errors()
    )


_TTL_ADAPTER = TypeAdapter(NonNegativeInt)


def resolve_ttl(ttl: Any) -> int:
    """
    Validate a standalone ttl with the same rules as SessionOptions.ttl.

    Raises:
        ConfigError: If ttl is negative or not an integer
    """
    try:
        return _TTL_ADAPTER.validate_python(ttl)
    except ValidationError as e:
        raise ConfigError(
            "Invalid ttl: " + "; ".join(err["msg"] for err in e.errors())
        ) from None


class CookieOptions(BaseModel):
    """Attributes of the session cookie"""

    max_age: Optional[int] = Field(
        None,
        ge=0,
        description="Explicit Max-Age. Overrides the ttl-derived value; explicit None omits Max-Age",
    )
    path: Optional[str] = Field("/", description="Path attribute")
    domain: Optional[str] = Field(None, description="Domain attribute")
    expires: Optional[datetime] = Field(None, description="Expires attribute")
    http_only: bool = Field(True, description="HttpOnly flag")
    secure: bool = Field(True, description="Secure flag")
    same_site: Optional[Literal["strict", "lax", "none"]] = Field(
        "lax", description="SameSite attribute, None to omit"
    )
    partitioned: bool = Field(False, description="Partitioned flag (CHIPS)")
    priority: Optional[Literal["low", "medium", "high"]] = Field(
        None, description="Priority attribute"
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("same_site", "priority", mode="before")
    @classmethod
    def lowercase_enum_values(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def has_explicit_max_age(self) -> bool:
        """True when max_age was supplied by the caller, even as None"""
        return "max_age" in self.model_fields_set


class SessionOptions(BaseModel):
    """Per-request session configuration"""

    cookie_name: Optional[str] = Field(None, description="Name of the session cookie")
    password: Optional[Union[str, Dict[int, str]]] = Field(
        None,
        repr=False,
        description="Single secret, or mapping of id to secret (highest id seals)",
    )
    ttl: int = Field(
        FOURTEEN_DAYS, ge=0, description="Session lifetime in seconds, 0 for no expiry"
    )
    cookie_options: CookieOptions = Field(default_factory=CookieOptions)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def resolve(cls, options: Union["SessionOptions", Mapping[str, Any], None]) -> "SessionOptions":
        """
        Validate caller-supplied options.

        Args:
            options: A SessionOptions instance or a plain mapping

        Returns:
            Validated SessionOptions

        Raises:
            ConfigError: If the cookie name or password is missing or invalid
        """
        if isinstance(options, cls):
            resolved = options
        elif options is None or isinstance(options, Mapping):
            try:
                resolved = cls.model_validate(dict(options or {}))
            except ValidationError as e:
                raise ConfigError(
                    f"Invalid session options: {_format_validation_error(e)}"
                ) from None
        else:
            raise ConfigError(
                f"Session options must be a mapping or SessionOptions, got {type(options).__name__}"
            )

        resolved.check()
        return resolved

    def check(self) -> None:
        """Fail fast on configuration that would make every request unusable."""
        if not self.cookie_name:
            raise ConfigError("Missing cookie name")
        if not _COOKIE_NAME_RE.match(self.cookie_name):
            raise ConfigError(f"Invalid cookie name: {self.cookie_name!r}")
        if not self.password:
            raise ConfigError("Missing password")
        self.key_registry()

    def key_registry(self) -> KeyRegistry:
        return KeyRegistry(self.password)

    def merged(self, changes: Mapping[str, Any]) -> "SessionOptions":
        """Return new options with `changes` applied field by field."""
        current = self.model_dump(exclude_unset=True)
        current.update(changes)
        return type(self).resolve(current)
