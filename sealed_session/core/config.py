"""
Application configuration using Pydantic Settings.

Configuration values can be set via environment variables or .env file.
Only the demo service reads these; the session library itself takes explicit
SessionOptions.
"""

import json
import logging
from typing import Dict, Optional, Union

from pydantic_settings import BaseSettings, SettingsConfigDict

from sealed_session.core.exceptions import ConfigError
from sealed_session.core.keys import generate_secret
from sealed_session.core.schemas.session import FOURTEEN_DAYS, CookieOptions, SessionOptions

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "sealed-session"
    version: str = "1.0.0"
    debug: bool = False
    dev_mode: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Session cookie configuration
    session_cookie_name: str = "sealed_session"
    # Plain secret, or JSON object of id -> secret for rotation
    session_password: Optional[str] = None
    session_ttl: int = FOURTEEN_DAYS
    secure_cookies: bool = True

    # Rate limiting configuration
    rate_limit_auth_endpoints: str = "10/minute"

    # Optional Redis URL for distributed rate limiting
    redis_url: Optional[str] = None

    @staticmethod
    def parse_password(value: str) -> Union[str, Dict[str, str]]:
        """Parse a password from a JSON rotation map or a plain string."""
        value = value.strip()
        if value.startswith("{"):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError:
                return value
            if isinstance(parsed, dict):
                return parsed
        return value

    def session_options(self) -> SessionOptions:
        """
        Build the SessionOptions used by the demo service.

        Raises:
            ConfigError: If no password is configured outside dev mode
        """
        if self.session_password:
            password = self.parse_password(self.session_password)
        elif self.dev_mode:
            logger.warning("No SESSION_PASSWORD configured, generating an ephemeral one for dev mode")
            self.session_password = generate_secret()
            password = self.session_password
        else:
            raise ConfigError("SESSION_PASSWORD must be set (or enable DEV_MODE)")

        return SessionOptions.resolve(
            {
                "cookie_name": self.session_cookie_name,
                "password": password,
                "ttl": self.session_ttl,
                "cookie_options": CookieOptions(secure=self.secure_cookies),
            }
        )


# Global settings instance
settings = Settings()
