"""Connection helpers for the Redis cache service."""

from __future__ import annotations

import redis.asyncio as redis

from memlock.common.config.models import RedisConfig


def create_redis_client(config: RedisConfig) -> redis.Redis:
    pool = redis.ConnectionPool(
        host=config.host,
        port=config.port,
        db=config.db,
        username=config.username,
        password=config.password,
        max_connections=config.pool_size or 100,
        socket_timeout=config.socket_timeout,
        **({"connection_class": redis.SSLConnection} if config.tls else {}),
    )
    return redis.Redis(connection_pool=pool)

