"""Creation-time stamping and staleness checks for sealed envelopes."""

import time
from typing import Any, Callable, Dict, Mapping, Optional

# Tolerated clock drift between the machine that sealed and the one verifying
SKEW_SECONDS = 60

CREATED_AT_FIELD = "createdAt"
DATA_FIELD = "data"


class FreshnessEvaluator:
    """Stamps envelopes with their creation time and decides staleness.

    The ttl is never stored in the envelope. It is passed in on every check,
    so changing the configured ttl applies to cookies already issued.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time

    def now(self) -> int:
        return int(self._clock())

    def stamp(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        return {DATA_FIELD: dict(data), CREATED_AT_FIELD: self.now()}

    @staticmethod
    def is_legacy(payload: Mapping[str, Any]) -> bool:
        """Envelopes from the previous protocol generation carry no createdAt."""
        return CREATED_AT_FIELD not in payload

    def is_stale(self, envelope: Mapping[str, Any], ttl: int) -> bool:
        if ttl == 0:
            return False
        created_at = envelope[CREATED_AT_FIELD]
        if not isinstance(created_at, (int, float)) or isinstance(created_at, bool):
            return True
        return self.now() >= created_at + ttl + SKEW_SECONDS
