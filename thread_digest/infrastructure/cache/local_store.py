"""
Bounded Local Summary Store

Client-side latency shortcut in front of the summary API, and an optional
server backend (SUMMARY_CACHE_BACKEND=local) for single-node deployments.

Layout (one mapping entry per thread, language NOT part of the key):
    "{channel}-{thread_ts}" → {
        "summary": {...StructuredSummary...},
        "language": "ja",
        "messageCount": 12,
        "timestamp": 1700000000000   # creation time, epoch ms
    }

Policies:
- TTL: LOCAL_CACHE_TTL_DAYS (14) counted from ``timestamp``
- Capacity: LOCAL_CACHE_MAX_ENTRIES (100); on overflow the oldest entries by
  creation time are evicted until the store is back at capacity. The entry
  just written is never evicted.
- One cached language per thread: a probe for another language is a miss
- Optional JSON file persistence (orjson, written off the event loop)

Author: System Architect
Date: 2025-12-08
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import orjson

from thread_digest.core.config.constants import LOCAL_CACHE_MAX_ENTRIES, LOCAL_CACHE_TTL_DAYS
from thread_digest.core.exceptions import InvalidKeyComponentError
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.core.models import CacheEntry, StructuredSummary
from thread_digest.infrastructure.cache.durable_store import from_epoch_ms, to_epoch_ms, utc_now
from thread_digest.infrastructure.cache.key_codec import local_key, parse_key

logger = get_logger(__name__)


def _created_ms(record: dict[str, Any]) -> int:
    """Creation time used for eviction order; unreadable values sort first."""
    value = record.get("timestamp")
    return value if isinstance(value, int) else 0


class LocalSummaryStore:
    """
    Size-bounded CacheStore kept in process memory.

    STAGE-2: Local summary cache

    Eviction approximates LRU with creation time, not access time: reading
    an entry does not make it younger.
    """

    def __init__(
        self,
        max_entries: int = LOCAL_CACHE_MAX_ENTRIES,
        ttl_days: int = LOCAL_CACHE_TTL_DAYS,
        path: str | Path | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            max_entries: Capacity of the store
            ttl_days: Entry lifetime in days
            path: Optional JSON file loaded on first use and rewritten on change
            clock: Returns the current aware datetime (injectable for tests)
        """
        self._max_entries = max_entries
        self._ttl = timedelta(days=ttl_days)
        self._path = Path(path) if path else None
        self._clock = clock
        self._entries: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        self._loaded = self._path is None

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _read_file(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        data = orjson.loads(self._path.read_bytes())
        if not isinstance(data, dict):
            return {}
        return {slot: record for slot, record in data.items() if isinstance(record, dict)}

    def _write_file(self, snapshot: dict[str, dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_bytes(orjson.dumps(snapshot))
        tmp_path.replace(self._path)

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        try:
            self._entries = await asyncio.to_thread(self._read_file)
        except (OSError, orjson.JSONDecodeError) as e:
            log_stage(logger, "2.0", "Local cache file unreadable, starting empty", level="warning", error=str(e))
            self._entries = {}
        self._loaded = True

    async def _persist(self) -> None:
        if self._path is None:
            return
        try:
            await asyncio.to_thread(self._write_file, dict(self._entries))
        except OSError as e:
            log_stage(logger, "5.2", "Local cache file write failed", level="error", error=str(e))

    # -------------------------------------------------------------------------
    # CacheStore
    # -------------------------------------------------------------------------

    def _entry_from_record(self, record: dict[str, Any]) -> CacheEntry:
        created_at = from_epoch_ms(record["timestamp"])
        summary = dict(record["summary"])
        summary["language"] = record["language"]
        return CacheEntry(
            result=StructuredSummary(**summary),
            content_fingerprint=record["messageCount"],
            created_at=created_at,
            expires_at=created_at + self._ttl,
        )

    async def probe(self, key: str, expected_fingerprint: int | None = None) -> CacheEntry | None:
        try:
            parsed = parse_key(key)
        except InvalidKeyComponentError as e:
            log_stage(logger, "2.1", "Local cache probe skipped: invalid key", level="warning", error=e.message)
            return None

        slot = local_key(parsed.scope_id, parsed.anchor_id)
        async with self._lock:
            await self._ensure_loaded()
            record = self._entries.get(slot)
            if record is None:
                return None

            if record.get("language") != parsed.language.value:
                log_stage(logger, "2.1", "Local cache miss: language differs", level="debug", slot=slot)
                return None

            # ValueError also covers pydantic validation errors
            try:
                entry = self._entry_from_record(record)
            except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
                log_stage(logger, "2.1", "Local cache record unreadable", level="warning", slot=slot, error=str(e))
                return None

            if entry.is_expired(self._clock()):
                log_stage(logger, "2.2", "Local cache miss: expired", level="debug", slot=slot)
                del self._entries[slot]
                await self._persist()
                return None

        if expected_fingerprint is not None and entry.content_fingerprint != expected_fingerprint:
            log_stage(logger, "2.3", "Local cache miss: message count changed", level="debug", slot=slot)
            return None

        return entry

    async def upsert(self, key: str, result: StructuredSummary, fingerprint: int) -> None:
        try:
            parsed = parse_key(key)
        except InvalidKeyComponentError as e:
            log_stage(logger, "5.2", "Local cache set skipped: invalid key", level="error", error=e.message)
            return

        slot = local_key(parsed.scope_id, parsed.anchor_id)
        async with self._lock:
            await self._ensure_loaded()
            self._entries[slot] = {
                "summary": result.to_wire(),
                "language": parsed.language.value,
                "messageCount": fingerprint,
                "timestamp": to_epoch_ms(self._clock()),
            }
            evicted = self._enforce_capacity(keep=slot)
            await self._persist()

        log_stage(logger, "5.2", "Local cache set", slot=slot, message_count=fingerprint, evicted=evicted)

    def _enforce_capacity(self, keep: str) -> int:
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return 0

        candidates = sorted(
            (k for k in self._entries if k != keep),
            key=lambda k: _created_ms(self._entries[k]),
        )
        for slot in candidates[:overflow]:
            del self._entries[slot]
        return min(overflow, len(candidates))

    async def evict(self, key: str) -> None:
        try:
            parsed = parse_key(key)
        except InvalidKeyComponentError as e:
            log_stage(logger, "2.5", "Local cache delete skipped: invalid key", level="error", error=e.message)
            return

        slot = local_key(parsed.scope_id, parsed.anchor_id)
        async with self._lock:
            await self._ensure_loaded()
            if self._entries.pop(slot, None) is not None:
                await self._persist()

    async def health_check(self) -> dict[str, Any]:
        return {
            "backend": "local",
            "status": "healthy",
            "size": len(self._entries),
            "max_entries": self._max_entries,
            "persistent": self._path is not None,
        }

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    async def clear(self) -> None:
        """Drop every entry (and the persisted file contents)."""
        async with self._lock:
            self._entries.clear()
            self._loaded = True
            await self._persist()

    async def size(self) -> int:
        async with self._lock:
            await self._ensure_loaded()
            return len(self._entries)

    async def keys(self) -> list[str]:
        """Slots ordered oldest first."""
        async with self._lock:
            await self._ensure_loaded()
            return sorted(self._entries, key=lambda k: _created_ms(self._entries[k]))
