"""
Cache Test Factory

In-memory Redis stand-in with the RedisClient surface used by the stores.
"""

from typing import Any

from thread_digest.core.exceptions import CacheKeyError


class FakeRedisClient:
    """
    Mimics RedisClient: strings with optional TTL (recorded, not enforced) and hashes.

    Set ``fail = True`` to make every operation raise CacheKeyError.
    """

    def __init__(self, initial_data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial_data or {})
        self.ttls: dict[str, int | None] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.fail = False
        self.calls: list[tuple] = []

    def _check(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if self.fail:
            raise CacheKeyError(f"Redis {op.upper()} failed: connection reset", details={"op": op})

    async def get(self, key: str) -> str | None:
        self._check("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        self._check("set", key)
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete", *keys)
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def hget(self, name: str, key: str) -> str | None:
        self._check("hget", name, key)
        return self.hashes.get(name, {}).get(key)

    async def hset(self, name: str, key: str, value: str) -> int:
        self._check("hset", name, key)
        is_new = key not in self.hashes.get(name, {})
        self.hashes.setdefault(name, {})[key] = value
        return int(is_new)

    async def hdel(self, name: str, *keys: str) -> int:
        self._check("hdel", name, *keys)
        fields = self.hashes.get(name, {})
        return sum(1 for key in keys if fields.pop(key, None) is not None)

    async def health_check(self) -> dict[str, Any]:
        if self.fail:
            return {"status": "unhealthy", "connected": False, "error": "connection reset"}
        return {"status": "healthy", "connected": True, "type": "in_memory"}
