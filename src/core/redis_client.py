"""Redis connection shared by the reconcile work queue and change notifications."""

import logging

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide client for ``REDIS_URL``.

    Responses are decoded so queue entries come back as instance names.
    """

    global _client
    if _client is None:
        timeout = getattr(settings, "REDIS_SOCKET_TIMEOUT", None)
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            health_check_interval=30,
        )
        logger.debug("Connected Redis client to %s", settings.REDIS_URL)
    return _client


def close_redis_client() -> None:
    """Drop the shared client so the next call reconnects."""

    global _client
    if _client is not None:
        _client.close()
        _client = None


__all__ = ["get_redis_client", "close_redis_client"]
