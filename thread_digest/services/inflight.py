"""
In-flight Generation Registry

Optional per-key coalescing of concurrent cache misses: the first caller for
a key runs the generation, later callers for the same key await the same
future instead of starting their own. The entry is removed as soon as the
generation settles, so a later request starts a fresh generation.

Enabled with ENABLE_INFLIGHT_DEDUP; without it concurrent misses each
generate and the last write wins.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from thread_digest.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

T = TypeVar("T")


class InFlightRegistry(Generic[T]):
    def __init__(self):
        self._pending: dict[str, asyncio.Future[T]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Await the generation for ``key``, starting it only if none is pending.

        Exceptions of the shared generation are raised to every waiter.
        """
        existing = self._pending.get(key)
        if existing is not None:
            log_stage(logger, "4.3", "Joining in-flight generation", level="debug", cache_key=key)
            # shield: one waiter being cancelled must not cancel the shared work
            return await asyncio.shield(existing)

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved exception is not reported on GC
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._pending.pop(key, None)
