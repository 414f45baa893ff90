"""Redis-backed work queue of ScopeInstance names awaiting reconciliation.

Delivery is at-least-once: a name is removed from the queue before it is
processed, so a crash mid-pass loses it until the next resync, and a name
re-added while it is being processed is delivered again. A name waiting in
the ready list is never queued twice: the membership check and the push run
in one WATCH/MULTI transaction, and popping is a single command.
"""

import logging
import time

from django.conf import settings
from redis.exceptions import WatchError

from core.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class ReconcileQueue:
    """Ready list + delayed sorted set + per-key failure counters."""

    def __init__(self, client=None, prefix: str | None = None):
        self._client = client
        self.prefix = prefix or settings.SCOPE_QUEUE_PREFIX

    @property
    def client(self):
        return self._client if self._client is not None else get_redis_client()

    @property
    def ready_key(self) -> str:
        return f"{self.prefix}:ready"

    @property
    def delayed_key(self) -> str:
        return f"{self.prefix}:delayed"

    @property
    def failures_key(self) -> str:
        return f"{self.prefix}:failures"

    def add(self, name: str) -> bool:
        """Queue ``name`` unless it is already waiting; return True if queued."""
        with self.client.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(self.ready_key)
                    if pipe.lpos(self.ready_key, name) is not None:
                        return False
                    pipe.multi()
                    pipe.rpush(self.ready_key, name)
                    pipe.execute()
                    break
                except WatchError:
                    # Another worker touched the ready list; check again.
                    continue
        logger.debug("Queued ScopeInstance %s", name)
        return True

    def add_after(self, name: str, delay: float, now: float | None = None) -> None:
        """Queue ``name`` once ``delay`` seconds have passed."""
        now = time.time() if now is None else now
        self.client.zadd(self.delayed_key, {name: now + delay})
        logger.debug("Queued ScopeInstance %s in %.1fs", name, delay)

    def promote_due(self, now: float | None = None) -> int:
        """Move delayed names whose time has come onto the ready list."""
        now = time.time() if now is None else now
        promoted = 0
        for name in self.client.zrangebyscore(self.delayed_key, 0, now):
            # zrem guards against another worker promoting the same name.
            if self.client.zrem(self.delayed_key, name) and self.add(name):
                promoted += 1
        return promoted

    def get(self, timeout: int = 0) -> str | None:
        """Pop the next name, waiting up to ``timeout`` seconds (0: don't wait)."""
        if timeout:
            item = self.client.blpop([self.ready_key], timeout=timeout)
            return item[1] if item else None
        return self.client.lpop(self.ready_key)

    def record_failure(self, name: str) -> int:
        """Increment and return the consecutive failure count of ``name``."""
        return int(self.client.hincrby(self.failures_key, name, 1))

    def forget(self, name: str) -> None:
        """Reset the failure count after a successful (or abandoned) pass."""
        self.client.hdel(self.failures_key, name)

    def __len__(self) -> int:
        return int(self.client.llen(self.ready_key))


def backoff_delay(failures: int, base: float | None = None, maximum: float | None = None) -> float:
    """Exponential backoff: base, 2*base, 4*base, ... capped at ``maximum``."""

    base = settings.SCOPE_BACKOFF_BASE if base is None else base
    maximum = settings.SCOPE_BACKOFF_MAX if maximum is None else maximum
    if failures <= 0:
        return 0.0
    # Cap the exponent so huge failure counts cannot overflow.
    return float(min(maximum, base * (2 ** min(failures - 1, 32))))


__all__ = ["ReconcileQueue", "backoff_delay"]
