# detailing/config/redis.py
"""
Redis access for the API process.

Redis is the Celery broker for notification delivery and the periodic jobs;
the API itself only talks to it to report broker reachability.
"""
import redis.asyncio as redis
from typing import Optional

from detailing.config.settings import get_settings

settings = get_settings()

_broker_pool: Optional[redis.ConnectionPool] = None


def get_broker_pool() -> redis.ConnectionPool:
    """Lazily create the shared pool; no connection is opened until first use"""
    global _broker_pool
    if _broker_pool is None:
        _broker_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=2,
        )
    return _broker_pool


async def ping_broker() -> None:
    """Round-trip a PING; raises redis.RedisError (or OSError) when unreachable"""
    client = redis.Redis(connection_pool=get_broker_pool())
    try:
        await client.ping()
    finally:
        await client.aclose()
