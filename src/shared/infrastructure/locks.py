"""Lock provider implementations.

- ``InMemoryLockProvider``: process-local, thread-safe.
- ``RedisLockProvider``: ``SET NX EX`` acquire with a compare-and-delete
  release, for deployments running several worker processes.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional
from uuid import uuid4

import redis
import structlog

from config import settings
from shared.domain.locks import ILockProvider

logger = structlog.get_logger(__name__)


class InMemoryLockProvider(ILockProvider):
    """Thread-safe in-process lock table."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._held: Dict[str, str] = {}

    def acquire(self, key: str) -> Optional[str]:
        with self._guard:
            if key in self._held:
                return None
            token = uuid4().hex
            self._held[key] = token
            return token

    def release(self, key: str, token: str) -> None:
        with self._guard:
            if self._held.get(key) == token:
                del self._held[key]

    def is_locked(self, key: str) -> bool:
        with self._guard:
            return key in self._held


class RedisLockProvider(ILockProvider):
    """Redis-backed lock shared by every process pointing at the same server.

    The TTL bounds how long a crashed holder can keep a key.
    """

    RELEASE_SCRIPT = (
        "if redis.call('get', KEYS[1]) == ARGV[1] then "
        "return redis.call('del', KEYS[1]) "
        "else return 0 end"
    )

    def __init__(
        self,
        client: redis.Redis,
        ttl_seconds: int = settings.ORDER_LOCK_TTL_SECONDS,
        prefix: str = "lock:",
    ) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> RedisLockProvider:
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def acquire(self, key: str) -> Optional[str]:
        token = uuid4().hex
        was_set = self._client.set(
            self._prefix + key, token, nx=True, ex=self._ttl_seconds
        )
        return token if was_set else None

    def release(self, key: str, token: str) -> None:
        released = self._client.eval(self.RELEASE_SCRIPT, 1, self._prefix + key, token)
        if not released:
            logger.warning("lock.release_missed", key=key)


def build_lock_provider(backend: Optional[str] = None) -> ILockProvider:
    """Return the lock provider selected by ``LOCK_BACKEND``."""
    backend = backend or settings.LOCK_BACKEND
    if backend == "memory":
        return InMemoryLockProvider()
    if backend == "redis":
        return RedisLockProvider.from_url(settings.REDIS_URL)
    raise ValueError(f"Unknown lock backend: {backend}")
