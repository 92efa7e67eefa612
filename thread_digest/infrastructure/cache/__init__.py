"""
Cache Infrastructure

- key_codec: canonical cache keys
- redis_client: pooled async Redis client (singleton)
- durable_store: Redis-backed summary store
- local_store: bounded in-process summary store
"""

from thread_digest.infrastructure.cache.durable_store import RedisSummaryStore
from thread_digest.infrastructure.cache.key_codec import CacheKey, derive_key, local_key, parse_key
from thread_digest.infrastructure.cache.local_store import LocalSummaryStore
from thread_digest.infrastructure.cache.redis_client import (
    RedisClient,
    close_redis,
    get_redis_client,
    init_redis,
)

__all__ = [
    "CacheKey",
    "derive_key",
    "parse_key",
    "local_key",
    "RedisClient",
    "get_redis_client",
    "init_redis",
    "close_redis",
    "RedisSummaryStore",
    "LocalSummaryStore",
]
