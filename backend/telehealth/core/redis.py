"""Redis connection management."""

from redis import Redis

from telehealth.core.config import settings

# Redis connection instance (lazy initialized)
_redis_client: Redis | None = None


def get_redis() -> Redis:
    """Get or create the Redis connection.

    The client is created from settings on first call and reused after.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=1.0,
            socket_connect_timeout=1.0,
        )
    return _redis_client


def close_redis() -> None:
    """Close the Redis connection during application shutdown."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


def ping_redis() -> bool:
    """Return True if Redis responds to ping."""
    try:
        return bool(get_redis().ping())
    except Exception:
        return False
