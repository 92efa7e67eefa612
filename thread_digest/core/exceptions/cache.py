"""
Cache-Related Exceptions

All exceptions related to the summary cache stores (Redis and the local store).
Stores absorb these: a cache failure is logged and treated as a miss.

Author: System Architect
Date: 2025-12-08
"""

from thread_digest.core.exceptions.base import DigestBaseError


class CacheError(DigestBaseError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to Redis.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    """
    pass


class CacheKeyError(CacheError):
    """Raised when a single Redis command fails."""
    pass

