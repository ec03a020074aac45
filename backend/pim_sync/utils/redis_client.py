"""Redis client factory for the job store and readiness checks."""

from __future__ import annotations

from typing import Any

from redis import Redis

HOSTED_TLS_DOMAINS = (".upstash.io", ".redislabs.com", ".cache.amazonaws.com")


def create_redis_client(url: str, **kwargs: Any) -> Redis:
    """Create a Redis client, switching hosted providers to TLS.

    Args:
        url: Redis connection URL (redis:// or rediss://)
        **kwargs: Extra ``Redis.from_url`` options (decode_responses, timeouts)

    Returns:
        Configured Redis client
    """
    if url.startswith("redis://") and any(domain in url for domain in HOSTED_TLS_DOMAINS):
        url = url.replace("redis://", "rediss://", 1)

    if url.startswith("rediss://"):
        kwargs.setdefault("ssl_cert_reqs", "none")

    kwargs.setdefault("socket_connect_timeout", 5)
    kwargs.setdefault("health_check_interval", 30)
    return Redis.from_url(url, **kwargs)
