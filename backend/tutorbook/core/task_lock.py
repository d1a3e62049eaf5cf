"""
Redis-backed mutex for periodic jobs.

Fails open: if Redis cannot be reached the caller proceeds, relying on beat
being the single scheduler. Each holder stores its own token, and release
only deletes the key while that token is still there.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
from typing import Iterator, Optional

from redis import Redis
import ulid

from .config import settings

logger = logging.getLogger(__name__)

LOCK_NAMESPACE = "tutorbook:lock"

# Delete the key only if it still holds the caller's token.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


def _namespaced_key(key: str) -> str:
    return f"{LOCK_NAMESPACE}:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("task_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def acquire_task_lock(key: str, ttl_s: int) -> Optional[str]:
    """
    Take the lock and return the owner token, or None if someone else holds it.

    When Redis is unavailable a token is still returned so the job runs.
    """
    token = str(ulid.ULID())
    client = _get_sync_redis()
    if client is None:
        logger.warning("task_lock_redis_unavailable", extra={"lock_key": key})
        return token
    try:
        if client.set(_namespaced_key(key), token, nx=True, ex=ttl_s):
            return token
        return None
    except Exception as exc:
        logger.warning(
            "task_lock_acquire_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        return token


def release_task_lock(key: str, token: str) -> bool:
    """Release the lock if ``token`` still owns it; return whether a key was deleted."""
    client = _get_sync_redis()
    if client is None:
        return False
    try:
        return bool(client.eval(_RELEASE_SCRIPT, 1, _namespaced_key(key), token))
    except Exception as exc:
        logger.warning(
            "task_lock_release_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        return False


@contextmanager
def task_lock(key: str, ttl_s: int) -> Iterator[bool]:
    """Yield whether the lock was taken; release it on exit if it was."""
    token = acquire_task_lock(key, ttl_s=ttl_s)
    try:
        yield token is not None
    finally:
        if token is not None:
            release_task_lock(key, token)
