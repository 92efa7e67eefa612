"""
Durable Summary Store (Redis)

Server-side summary cache shared by every user of a workspace.

Record layout (one Redis string per canonical key):
    summary_cache:{team}:{channel}:{thread_ts}:{language} →
    {
        "summary": {...StructuredSummary without "language"...},
        "messageCount": 12,
        "createdAt": 1700000000000,   # epoch ms
        "expiresAt": 1707776000000    # epoch ms
    }

Expiry is enforced twice:
- Logically: probe() compares expiresAt with the injected clock
- Physically: the Redis key carries a native TTL of the same length

Failure discipline:
- Any Redis error (CacheError), corrupt record or invalid key makes probe()
  return None
- upsert() and evict() log and swallow the same failures
- The delete of an expired record runs as a detached task

Author: System Architect
Date: 2025-12-08
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import orjson

from thread_digest.core.config.constants import (
    REDIS_KEY_SUMMARY_CACHE,
    SECONDS_PER_DAY,
    SUMMARY_CACHE_TTL_DAYS,
)
from thread_digest.core.exceptions import CacheError, InvalidKeyComponentError
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.core.models import CacheEntry, StructuredSummary
from thread_digest.infrastructure.cache.key_codec import parse_key
from thread_digest.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class RedisSummaryStore:
    """
    CacheStore implementation over the shared Redis client.

    STAGE-2: Durable summary cache

    Usage:
        store = RedisSummaryStore(get_redis_client(), ttl_days=90)
        await store.upsert(key, summary, fingerprint=12)
        entry = await store.probe(key, expected_fingerprint=12)
    """

    def __init__(
        self,
        redis_client: RedisClient,
        ttl_days: int = SUMMARY_CACHE_TTL_DAYS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._redis = redis_client
        self._ttl = timedelta(days=ttl_days)
        self._ttl_seconds = ttl_days * SECONDS_PER_DAY
        self._clock = clock
        self._background: set[asyncio.Task] = set()

    @staticmethod
    def _redis_key(key: str) -> str:
        return f"{REDIS_KEY_SUMMARY_CACHE}:{key}"

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    @staticmethod
    def _encode(result: StructuredSummary, fingerprint: int, created_at: datetime, expires_at: datetime) -> str:
        summary = result.to_wire()
        summary.pop("language", None)
        return orjson.dumps(
            {
                "summary": summary,
                "messageCount": fingerprint,
                "createdAt": to_epoch_ms(created_at),
                "expiresAt": to_epoch_ms(expires_at),
            }
        ).decode()

    @staticmethod
    def _decode(raw: str, language: str) -> CacheEntry:
        record = orjson.loads(raw)
        return CacheEntry(
            result=StructuredSummary(**record["summary"], language=language),
            content_fingerprint=record["messageCount"],
            created_at=from_epoch_ms(record["createdAt"]),
            expires_at=from_epoch_ms(record["expiresAt"]),
        )

    # -------------------------------------------------------------------------
    # CacheStore
    # -------------------------------------------------------------------------

    async def probe(self, key: str, expected_fingerprint: int | None = None) -> CacheEntry | None:
        """
        Return the live entry under ``key`` or None.

        Order of checks: not found → expired → fingerprint mismatch.
        """
        try:
            language = parse_key(key).language.value
        except InvalidKeyComponentError as e:
            log_stage(logger, "2.1", "Cache probe skipped: invalid key", level="warning", error=e.message)
            return None

        try:
            raw = await self._redis.get(self._redis_key(key))
        except CacheError as e:
            log_stage(logger, "2.1", "Cache probe failed", level="error", cache_key=key, error=e.message)
            return None

        if raw is None:
            log_stage(logger, "2.1", "Cache miss: not found", level="debug", cache_key=key)
            return None

        # ValueError also covers JSON decode and pydantic validation errors
        try:
            entry = self._decode(raw, language)
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            log_stage(logger, "2.1", "Cache miss: unreadable record", level="warning", cache_key=key, error=str(e))
            return None

        if entry.is_expired(self._clock()):
            log_stage(logger, "2.2", "Cache miss: expired", level="debug", cache_key=key)
            self._spawn(self._delete_quietly(key))
            return None

        if expected_fingerprint is not None and entry.content_fingerprint != expected_fingerprint:
            log_stage(
                logger,
                "2.3",
                "Cache miss: message count changed",
                level="debug",
                cache_key=key,
                cached=entry.content_fingerprint,
                expected=expected_fingerprint,
            )
            return None

        log_stage(logger, "2.4", "Cache hit", cache_key=key)
        return entry

    async def upsert(self, key: str, result: StructuredSummary, fingerprint: int) -> None:
        try:
            parse_key(key)
        except InvalidKeyComponentError as e:
            log_stage(logger, "5.1", "Cache set skipped: invalid key", level="error", error=e.message)
            return

        created_at = self._clock()
        payload = self._encode(result, fingerprint, created_at, created_at + self._ttl)
        try:
            await self._redis.set(self._redis_key(key), payload, ttl=self._ttl_seconds)
        except CacheError as e:
            log_stage(logger, "5.1", "Cache set error", level="error", cache_key=key, error=e.message)
            return

        log_stage(logger, "5.1", "Cache set", cache_key=key, message_count=fingerprint)

    async def evict(self, key: str) -> None:
        try:
            parse_key(key)
            await self._redis.delete(self._redis_key(key))
        except (InvalidKeyComponentError, CacheError) as e:
            log_stage(logger, "2.5", "Cache delete error", level="error", cache_key=key, error=e.message)
            return

        log_stage(logger, "2.5", "Cache deleted", cache_key=key)

    async def health_check(self) -> dict[str, Any]:
        health = await self._redis.health_check()
        return {"backend": "redis", **health}

    # -------------------------------------------------------------------------
    # Background deletes
    # -------------------------------------------------------------------------

    async def _delete_quietly(self, key: str) -> None:
        try:
            await self._redis.delete(self._redis_key(key))
        except CacheError as e:
            log_stage(logger, "2.2", "Expired record delete failed", level="debug", cache_key=key, error=e.message)

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Wait for pending background deletes (shutdown and tests)."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
