"""
Installation Token Store

Bot tokens per workspace, read from Redis with a short in-process cache.

Storage:
    HSET slack:installation:{team_id} bot_token xoxb-...

Lookup order:
    1. In-process cache (TTL SLACK_TOKEN_CACHE_TTL, 5 minutes by default)
    2. Redis hash
    3. SLACK_BOT_TOKEN fallback (single-workspace deployments)

A failed Redis lookup is logged and treated as "no token"; the HTTP layer
answers NOT_INSTALLED.
"""

import time
from collections.abc import Callable

from thread_digest.core.config.constants import (
    REDIS_FIELD_BOT_TOKEN,
    REDIS_KEY_INSTALLATION,
    TOKEN_CACHE_TTL_SECONDS,
)
from thread_digest.core.exceptions import CacheError
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


class InstallationTokenStore:
    """Process-scoped token cache in front of the installation records."""

    def __init__(
        self,
        redis_client: RedisClient | None,
        fallback_token: str | None = None,
        ttl_seconds: int = TOKEN_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._redis = redis_client
        self._fallback_token = fallback_token
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: dict[str, tuple[str, float]] = {}

    @staticmethod
    def _record_key(team_id: str) -> str:
        return f"{REDIS_KEY_INSTALLATION}:{team_id}"

    async def get_token(self, team_id: str) -> str | None:
        """
        Return the bot token of ``team_id`` or None when not installed.

        STAGE-1.3: Installation lookup
        """
        cached = self._cache.get(team_id)
        if cached and cached[1] > self._clock():
            log_stage(logger, "1.3", "Token cache hit", level="debug", team_id=team_id)
            return cached[0]

        token: str | None = None
        if self._redis is not None:
            try:
                token = await self._redis.hget(self._record_key(team_id), REDIS_FIELD_BOT_TOKEN)
            except CacheError as e:
                log_stage(logger, "1.3", "Failed to get Slack token", level="error", team_id=team_id, error=e.message)
                return None

        token = token or self._fallback_token
        if token:
            self._cache[team_id] = (token, self._clock() + self._ttl_seconds)
            log_stage(logger, "1.3", "Token cached", level="debug", team_id=team_id)
        return token

    async def save_token(self, team_id: str, token: str) -> None:
        """
        Persist a bot token (installation tooling and tests).

        Raises:
            CacheError: If the Redis write fails
        """
        if self._redis is None:
            raise CacheError("No Redis client configured for installation records")
        await self._redis.hset(self._record_key(team_id), REDIS_FIELD_BOT_TOKEN, token)
        self._cache[team_id] = (token, self._clock() + self._ttl_seconds)
        log_stage(logger, "1.3", "Installation stored", team_id=team_id)

    async def delete_token(self, team_id: str) -> bool:
        """
        Remove an installation (app uninstalled or tokens revoked).

        Raises:
            CacheError: If the Redis write fails
        """
        self._cache.pop(team_id, None)
        if self._redis is None:
            return False
        removed = await self._redis.hdel(self._record_key(team_id), REDIS_FIELD_BOT_TOKEN)
        log_stage(logger, "1.3", "Installation removed", team_id=team_id, removed=bool(removed))
        return bool(removed)

    def clear(self, team_id: str) -> None:
        """Forget the cached token of one workspace (revoked or rotated)."""
        self._cache.pop(team_id, None)

    def clear_all(self) -> int:
        count = len(self._cache)
        self._cache.clear()
        return count

    def __len__(self) -> int:
        return len(self._cache)
