"""
Session codec: turns session data into sealed tokens and back.

Decoding never raises for problems a browser can cause on its own (missing,
expired, edited or foreign cookies). Those all come back as an empty session.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from sealed_session.core.exceptions import InvalidSealError
from sealed_session.core.freshness import DATA_FIELD, FreshnessEvaluator
from sealed_session.core.keys import KeyRegistry, Password
from sealed_session.core.schemas.session import FOURTEEN_DAYS, resolve_ttl
from sealed_session.core.utils.encryption import seal, unseal
from sealed_session.core.utils.logging_config import log_security_event, token_fingerprint

logger = logging.getLogger(__name__)

# Envelopes written by the first protocol generation nest data under this key
LEGACY_DATA_FIELD = "persistent"


class SessionCodec:
    """Composes the key registry, freshness evaluator and sealing primitive."""

    def __init__(self, registry: KeyRegistry, freshness: Optional[FreshnessEvaluator] = None):
        self.registry = registry
        self.freshness = freshness or FreshnessEvaluator()

    def encode(self, data: Mapping[str, Any]) -> str:
        """
        Seal session data with the current secret.

        The ttl is not part of the envelope; it is applied when decoding.

        Args:
            data: Session data (JSON serializable)

        Returns:
            Sealed token

        Raises:
            SessionEncryptionError: If the data cannot be sealed
        """
        envelope = self.freshness.stamp(data)
        return seal(envelope, self.registry.current_secret())

    def decode(self, token: Optional[str], ttl: int) -> Dict[str, Any]:
        """
        Unseal a token into session data, or an empty dict.

        Args:
            token: Sealed token, or None when no cookie was sent
            ttl: Currently configured lifetime used for the staleness check

        Returns:
            The session data, or {} when the token is absent, invalid or stale
        """
        if not token:
            return {}

        try:
            payload = unseal(token, self.registry.candidate_secrets())
        except InvalidSealError as e:
            logger.warning(
                "Session cookie %s failed verification, starting blank session: %s",
                token_fingerprint(token),
                e,
            )
            log_security_event(
                "session_seal_rejected",
                "Sealed session token failed verification",
                extra_data={"reason": str(e), "fingerprint": token_fingerprint(token)},
                level=logging.WARNING,
            )
            return {}

        if not isinstance(payload, dict):
            logger.warning("Sealed payload is not an object, starting blank session")
            return {}

        if self.freshness.is_legacy(payload):
            data = payload.get(LEGACY_DATA_FIELD, payload)
            logger.debug("Accepted legacy session envelope without staleness check")
        elif self.freshness.is_stale(payload, ttl):
            logger.debug("Session envelope is stale, starting blank session")
            return {}
        else:
            data = payload.get(DATA_FIELD)

        if not isinstance(data, dict):
            logger.warning("Session envelope data is not an object, starting blank session")
            return {}
        return data


async def seal_data(data: Mapping[str, Any], *, password: Password, ttl: int = FOURTEEN_DAYS) -> str:
    """
    Seal data into a token outside of any cookie handling.

    Useful for pre-issuing tokens (magic links, migrations, tests). `ttl` is
    accepted for symmetry with unseal_data(); lifetime is enforced on unseal.

    Raises:
        ConfigError: If the password is missing or too short, or ttl is invalid
        SessionEncryptionError: If the data cannot be sealed
    """
    resolve_ttl(ttl)
    codec = SessionCodec(KeyRegistry(password))
    return await run_in_threadpool(codec.encode, data)


async def unseal_data(token: Optional[str], *, password: Password, ttl: int = FOURTEEN_DAYS) -> Dict[str, Any]:
    """
    Unseal a token produced by seal_data() or a session cookie.

    Returns {} for absent, tampered or stale tokens.

    Raises:
        ConfigError: If the password is missing or too short, or ttl is invalid
    """
    ttl = resolve_ttl(ttl)
    codec = SessionCodec(KeyRegistry(password))
    return await run_in_threadpool(codec.decode, token, ttl)
