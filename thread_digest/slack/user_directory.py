"""
User Directory

Resolves Slack user IDs to display names with a per-process TTL cache shared
by every request, keyed by (team_id, user_id).

Name precedence: real_name → name → profile.display_name → user ID.
A failed users.info call is logged and falls back to the user ID; it is not
cached, so the next request tries again.
"""

import time
from collections.abc import Callable

import aiohttp
from slack_sdk.errors import SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from thread_digest.core.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_USER_CACHE_TTL = 3600


class UserDirectory:
    def __init__(self, ttl_seconds: int = DEFAULT_USER_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._names: dict[tuple[str, str], tuple[str, float]] = {}

    def cached_name(self, team_id: str, user_id: str) -> str | None:
        hit = self._names.get((team_id, user_id))
        if hit and hit[1] > self._clock():
            return hit[0]
        return None

    async def resolve(self, client: AsyncWebClient, team_id: str, user_id: str) -> str:
        cached = self.cached_name(team_id, user_id)
        if cached is not None:
            return cached

        try:
            response = await client.users_info(user=user_id)
        except (SlackClientError, aiohttp.ClientError) as e:
            logger.warning("Failed to resolve user name", stage="3.2", user_id=user_id, error=str(e))
            return user_id

        user = response.get("user") or {}
        if not user:
            return user_id

        name = (
            user.get("real_name")
            or user.get("name")
            or (user.get("profile") or {}).get("display_name")
            or user_id
        )
        self._names[(team_id, user_id)] = (name, self._clock() + self._ttl_seconds)
        return name

    def clear(self) -> int:
        count = len(self._names)
        self._names.clear()
        return count

    def __len__(self) -> int:
        return len(self._names)
