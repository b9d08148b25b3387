"""
Key registry for sealing secrets.

A password is either a single secret or a mapping of integer id -> secret.
The highest id seals new cookies; every configured secret may unseal, which
lets operators rotate secrets without logging everybody out.
"""

import logging
import secrets
import string
from typing import Dict, List, Mapping, Union

from sealed_session.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 32

Password = Union[str, Mapping[int, str]]


def generate_secret(length: int = 64) -> str:
    """
    Generate a cryptographically secure secret suitable for sealing.

    Args:
        length: Length of the secret (default: 64 characters)

    Returns:
        A random string of letters, digits and URL-safe symbols
    """
    alphabet = string.ascii_letters + string.digits + "-_"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def validate_secret(secret: str) -> None:
    """
    Validate that a secret meets the minimum length requirement.

    Raises:
        ConfigError: If the secret is not a string or is too short
    """
    if not isinstance(secret, str):
        raise ConfigError("Password must be a string")
    if len(secret.encode("utf-8")) < MIN_PASSWORD_LENGTH:
        raise ConfigError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def normalize_password(password: Password) -> Dict[int, str]:
    """Normalize a password setting into an id -> secret mapping."""
    if password is None or password == "" or password == {}:
        raise ConfigError("Missing password")

    if isinstance(password, str):
        passwords = {1: password}
    elif isinstance(password, Mapping):
        passwords = {}
        for raw_id, secret in password.items():
            try:
                key_id = int(raw_id)
            except (TypeError, ValueError):
                raise ConfigError(f"Invalid password id: {raw_id!r}") from None
            if key_id < 1:
                raise ConfigError(f"Password ids must be positive integers, got {key_id}")
            passwords[key_id] = secret
    else:
        raise ConfigError("Password must be a string or a mapping of id to string")

    for secret in passwords.values():
        validate_secret(secret)
    return passwords


class KeyRegistry:
    """Resolves a password setting into sealing and unsealing secrets."""

    def __init__(self, password: Password):
        self._passwords = normalize_password(password)
        self._order = sorted(self._passwords, reverse=True)
        logger.debug("Key registry resolved %d secret(s)", len(self._order))

    @property
    def current_id(self) -> int:
        return self._order[0]

    def current_secret(self) -> str:
        """Secret used for sealing new tokens."""
        return self._passwords[self.current_id]

    def candidate_secrets(self) -> List[str]:
        """Secrets accepted for unsealing, current first."""
        return [self._passwords[key_id] for key_id in self._order]

    def __repr__(self) -> str:
        return f"<KeyRegistry(ids={self._order!r})>"
