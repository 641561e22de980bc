from __future__ import annotations

import logging
import time
from contextlib import contextmanager

import redis

logger = logging.getLogger(__name__)


class SessionBusyError(ValueError):
    pass


@contextmanager
def session_lock(*, r: redis.Redis, prefix: str, session_id: str, ttl_ms: int = 5_000):
    """Best-effort per-session lock so two actions never interleave.

    If Redis itself is unreachable the action still runs unlocked: storage is
    best-effort throughout and a dead backend must not stop play.
    """

    key = f"{prefix}:lock:{session_id}"
    try:
        acquired = r.set(key, "1", nx=True, px=ttl_ms)
        held = True
    except redis.RedisError as e:
        logger.warning("Could not take session lock %s; continuing unlocked (%s)", key, e)
        acquired = True
        held = False

    if not acquired:
        raise SessionBusyError("Session is busy")
    try:
        yield
    finally:
        if held:
            try:
                r.delete(key)
            except redis.RedisError as e:
                logger.warning("Could not release session lock %s (%s)", key, e)
        # small yield to avoid tight contention in tests
        time.sleep(0)
