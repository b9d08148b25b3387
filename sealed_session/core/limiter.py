"""
Rate limiter for the demo service.

Only the login endpoint is limited; reading or destroying a session costs
nothing server-side. The limiter lives in its own module so route modules can
import it without importing the app.
"""

import logging
from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address

from sealed_session.core.config import settings

logger = logging.getLogger(__name__)

REDIS_SCHEMES = ("redis://", "rediss://")


def get_limiter_storage(redis_url: Optional[str]) -> Optional[str]:
    """
    Pick the limits storage URI.

    Returns:
        The Redis URL when it is usable, None for in-memory storage
    """
    if not redis_url:
        return None
    if not redis_url.startswith(REDIS_SCHEMES):
        logger.warning("Ignoring REDIS_URL with unsupported scheme, rate limits stay in memory")
        return None
    return redis_url


def create_limiter(redis_url: Optional[str] = None) -> Limiter:
    """
    Build the slowapi limiter keyed on client address.

    In-memory counters are per process; set REDIS_URL when running more than
    one worker.
    """
    storage_uri = get_limiter_storage(redis_url)
    options = {"storage_uri": storage_uri} if storage_uri else {}
    logger.info("Rate limit storage: %s", "redis" if storage_uri else "memory")

    # headers_enabled adds X-RateLimit-* on success and Retry-After on 429
    return Limiter(
        key_func=get_remote_address,
        default_limits=[],
        headers_enabled=True,
        **options,
    )


limiter = create_limiter(settings.redis_url)
