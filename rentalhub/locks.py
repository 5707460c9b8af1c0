# Per-property lock around lease creation, backed by Redis SET NX PX.
# Coarse cross-process guard in front of the database's conditional status update; fails open.
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator
from uuid import uuid4

from .redis_client import get_redis

logger = logging.getLogger("rentalhub.locks")

LEASE_LOCK_TTL_MS = int(os.getenv("LEASE_LOCK_TTL_MS", "5000"))

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


def lease_lock_key(property_id: int) -> str:
    return f"lock:lease:property:{property_id}"


@contextmanager
def property_lease_lock(property_id: int, ttl_ms: int = LEASE_LOCK_TTL_MS) -> Iterator[bool]:
    """
    Yield True when this process may run the lease critical section for the property.

    - True: lock acquired, or Redis disabled/unavailable (the database check still serializes writers)
    - False: another process holds the lock; callers answer "busy, retry"
    """
    r = get_redis()
    if r is None:
        yield True
        return

    key = lease_lock_key(property_id)
    token = uuid4().hex
    try:
        acquired = bool(r.set(key, token, nx=True, px=ttl_ms))
    except Exception as exc:
        logger.warning("lease lock error, proceeding unlocked (key=%s): %s", key, exc)
        yield True
        return

    try:
        yield acquired
    finally:
        if acquired:
            try:
                r.eval(_RELEASE_SCRIPT, 1, key, token)
            except Exception as exc:
                # The TTL releases it eventually
                logger.debug("lease lock release error (key=%s): %s", key, exc)
