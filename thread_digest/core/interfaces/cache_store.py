"""
Summary Cache Store Protocol

This module defines the capability interface shared by the two summary
cache implementations:

- RedisSummaryStore: durable, multi-tenant, keyed by the full canonical key
- LocalSummaryStore: bounded (100 entries), keyed by "{scope}-{anchor}"

Architectural Decision: Protocol-based abstraction
- The two stores keep their own schemas and TTL policies
- The orchestrator depends only on probe/upsert/evict
- Tests inject in-memory fakes without inheritance

Failure contract (all implementations):
- probe() never raises for I/O problems; it returns None
- upsert() and evict() log and swallow I/O problems

Author: System Architect
Date: 2025-12-08
"""

from typing import Any, Protocol, runtime_checkable

from thread_digest.core.models import CacheEntry, StructuredSummary


@runtime_checkable
class CacheStore(Protocol):
    """Keyed store of generation results with expiry and fingerprint checks."""

    async def probe(self, key: str, expected_fingerprint: int | None = None) -> CacheEntry | None:
        """
        Look up the entry stored under ``key``.

        Args:
            key: Canonical cache key (see key_codec.derive_key)
            expected_fingerprint: When given, a stored entry with a different
                fingerprint is reported as absent

        Returns:
            CacheEntry, or None on miss, expiry, mismatch or store failure
        """
        ...

    async def upsert(self, key: str, result: StructuredSummary, fingerprint: int) -> None:
        """Replace the entry under ``key`` with a fresh one (TTL restarts)."""
        ...

    async def evict(self, key: str) -> None:
        """Remove the entry under ``key`` if present."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Report store status for the readiness endpoint."""
        ...
