# Redis client helper: opt-in, fail-open access to a shared Redis connection.
# Only the lease lock uses Redis; the API must work identically when it is disabled or down.
import logging
import os
from typing import Optional

_logger = logging.getLogger("rentalhub.redis")

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}


def is_redis_enabled() -> bool:
    return (os.getenv("REDIS_ENABLED") or "false").strip().lower() in _TRUTHY


# Cached client and a one-shot guard: after a failed connect this process stays fail-open
_client = None
_initialized = False


def get_redis():
    """
    Return a connected Redis client, or None when Redis is disabled or unreachable.

    The first call connects and pings; failures are logged once and never raised.
    """
    global _client, _initialized
    if not is_redis_enabled():
        return None
    if _initialized:
        return _client

    url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    _initialized = True
    try:
        import redis

        client = redis.Redis.from_url(
            url,
            socket_timeout=0.25,
            socket_connect_timeout=0.25,
            retry_on_timeout=False,
        )
        client.ping()
    except Exception as exc:
        _logger.warning("Redis unavailable, continuing without locks: %s", exc)
        _client = None
        return None

    _client = client
    _logger.info("Connected to Redis at %s", url)
    return _client


def reset_redis(client: Optional[object] = None) -> None:
    """Drop the cached client (or install one); used by tests and after configuration changes."""
    global _client, _initialized
    _client = client
    _initialized = client is not None
