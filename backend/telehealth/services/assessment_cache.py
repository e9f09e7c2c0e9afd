"""Assessment Cache.

Caches serialized analysis responses in Redis, keyed by a SHA-256 digest of
the normalized request, so repeated identical requests skip the engine.

Redis is an optimisation only: every Redis failure is logged and treated
as a cache miss, and the analysis proceeds normally.
"""

import hashlib
import json
import logging
from collections.abc import Callable
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "assessment:"
DEFAULT_TTL_SECONDS = 300


def make_cache_key(payload: Any) -> str:
    """Stable cache key for a JSON-serializable request payload."""
    encoded = json.dumps(payload, sort_keys=True, default=str)
    return KEY_PREFIX + hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class AssessmentCache:
    """Read-through cache of analysis responses."""

    def __init__(
        self,
        redis_factory: Callable[[], Redis],
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
    ) -> None:
        self._redis_factory = redis_factory
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled

    def get(self, payload: Any) -> dict | None:
        """Return the cached response for ``payload``, or None on miss or failure."""
        if not self.enabled:
            return None

        key = make_cache_key(payload)
        try:
            raw = self._redis_factory().get(key)
        except RedisError as e:
            logger.warning(f"Assessment cache read failed, treating as miss: {type(e).__name__}")
            return None

        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding unreadable cache entry {key}")
            return None
        return value if isinstance(value, dict) else None

    def set(self, payload: Any, response: dict) -> bool:
        """Store ``response`` under ``payload``; returns False if it was not stored."""
        if not self.enabled:
            return False

        key = make_cache_key(payload)
        try:
            self._redis_factory().setex(key, self.ttl_seconds, json.dumps(response, default=str))
        except RedisError as e:
            logger.warning(f"Assessment cache write failed: {type(e).__name__}")
            return False
        return True
