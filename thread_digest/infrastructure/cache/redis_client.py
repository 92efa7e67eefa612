"""
Redis Client with Connection Pooling

Architecture:
    RedisClient (Public API: connect/disconnect, commands, health)
        └── OperationExecutor (Command execution with error handling)

Used by:
    - RedisSummaryStore (durable summary cache, string keys with native TTL)
    - InstallationTokenStore (bot tokens in hashes)

Every command failure is raised as CacheKeyError; deciding whether a failure
is fatal is left to the caller (the summary store always absorbs it).

Author: System Architect
Date: 2025-12-13
"""

import time
from collections.abc import Awaitable
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from thread_digest.core.config.settings import Settings, get_settings
from thread_digest.core.exceptions import CacheConnectionError, CacheKeyError
from thread_digest.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


# =============================================================================
# OPERATION EXECUTOR
# =============================================================================


class OperationExecutor:
    """
    Executes Redis commands with consistent error handling.

    Error Handling Strategy:
    - Catch RedisError
    - Log with the command name and its key(s)
    - Raise CacheKeyError chained to the original error
    """

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    async def _run(self, command: str, call: Awaitable[T], **context: Any) -> T:
        try:
            return await call
        except RedisError as e:
            logger.error(f"Redis {command} failed", stage=f"REDIS.{command}", error=str(e), **context)
            raise CacheKeyError(message=f"Redis {command} failed: {e}", details=context) from e

    async def get(self, key: str) -> str | None:
        return await self._run("GET", self._redis.get(key), key=key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set a string value, optionally expiring after ``ttl`` seconds."""
        return bool(await self._run("SET", self._redis.set(key, value, ex=ttl), key=key))

    async def delete(self, *keys: str) -> int:
        return await self._run("DEL", self._redis.delete(*keys), keys=list(keys))

    async def hget(self, name: str, key: str) -> str | None:
        """
        Get a hash field value.

        Use Case: installation records (``slack:installation:{team}`` → bot_token)
        """
        return await self._run("HGET", self._redis.hget(name, key), name=name, field=key)

    async def hset(self, name: str, key: str, value: str) -> int:
        return await self._run("HSET", self._redis.hset(name, key, value), name=name, field=key)

    async def hdel(self, name: str, *keys: str) -> int:
        return await self._run("HDEL", self._redis.hdel(name, *keys), name=name, fields=list(keys))


# =============================================================================
# PUBLIC API
# =============================================================================


class RedisClient:
    """
    Async Redis client over one connection pool.

    Pool Configuration:
    - Max connections: REDIS_MAX_CONNECTIONS
    - Socket timeouts: REDIS_SOCKET_CONNECT_TIMEOUT / REDIS_SOCKET_TIMEOUT
    - decode_responses=True (values come back as str)

    Usage:
        client = RedisClient()
        await client.connect()

        await client.set("summary_cache:T...:C...:1.2:ja", payload, ttl=7776000)
        value = await client.get("summary_cache:T...:C...:1.2:ja")

        await client.disconnect()
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._executor: OperationExecutor | None = None

    @property
    def is_connected(self) -> bool:
        return self._executor is not None

    async def connect(self) -> None:
        """
        Open the pool and verify it with a PING.

        STAGE-REDIS.1: Connection establishment

        Raises:
            CacheConnectionError: If the ping fails
        """
        if self._executor is not None:
            return

        cfg = self._settings.redis
        self._pool = ConnectionPool(
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            db=cfg.REDIS_DB,
            password=cfg.REDIS_PASSWORD,
            max_connections=cfg.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=cfg.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=cfg.REDIS_SOCKET_TIMEOUT,
            retry_on_timeout=True,
            health_check_interval=cfg.REDIS_HEALTH_CHECK_INTERVAL,
            decode_responses=True,
        )
        self._client = redis.Redis(connection_pool=self._pool)

        try:
            await self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            logger.error("Failed to connect to Redis", stage="REDIS.1", host=cfg.REDIS_HOST, error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={"host": cfg.REDIS_HOST, "port": cfg.REDIS_PORT},
            ) from e

        self._executor = OperationExecutor(self._client)
        logger.info("Redis connected", stage="REDIS.1", host=cfg.REDIS_HOST, port=cfg.REDIS_PORT)

    async def disconnect(self) -> None:
        """
        STAGE-REDIS.2: Connection cleanup
        """
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._executor = None
        logger.info("Redis disconnected", stage="REDIS.2")

    def _require_executor(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError("Redis client is not connected")
        return self._executor

    async def get(self, key: str) -> str | None:
        return await self._require_executor().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        return await self._require_executor().set(key, value, ttl)

    async def delete(self, *keys: str) -> int:
        return await self._require_executor().delete(*keys)

    async def hget(self, name: str, key: str) -> str | None:
        return await self._require_executor().hget(name, key)

    async def hset(self, name: str, key: str, value: str) -> int:
        return await self._require_executor().hset(name, key, value)

    async def hdel(self, name: str, *keys: str) -> int:
        return await self._require_executor().hdel(name, *keys)

    async def health_check(self) -> dict[str, Any]:
        """
        STAGE-REDIS.HEALTH: Ping with latency
        """
        health: dict[str, Any] = {
            "status": "healthy",
            "connected": self.is_connected,
            "host": self._settings.redis.REDIS_HOST,
            "ping_latency_ms": None,
        }
        if self._client is None:
            health.update(status="unhealthy", error="Client not initialized")
            return health

        try:
            start = time.perf_counter()
            await self._client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except RedisError as e:
            health.update(status="unhealthy", error=str(e))
        return health


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_redis_client: RedisClient | None = None


def get_redis_client() -> RedisClient:
    """Get the global Redis client instance (lazily constructed)."""
    global _redis_client

    if _redis_client is None:
        _redis_client = RedisClient()

    return _redis_client


async def init_redis() -> RedisClient:
    """
    Initialize and connect the global Redis client.

    STAGE-0.2: Connection attempts use exponential backoff with jitter;
    the last CacheConnectionError propagates once REDIS_CONNECT_RETRIES
    attempts are exhausted.
    """
    client = get_redis_client()
    attempts = get_settings().redis.REDIS_CONNECT_RETRIES

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=0.2, max=5.0),
        retry=retry_if_exception_type(CacheConnectionError),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            "Redis connect retry",
            stage="0.2",
            attempt=retry_state.attempt_number,
            delay=round(retry_state.idle_for, 3),
        ),
    )
    async def _connect_with_retry() -> None:
        await client.connect()

    await _connect_with_retry()
    return client


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client:
        await _redis_client.disconnect()
        _redis_client = None
