"""
Summary Orchestrator Service
============================

WHAT IS THE SUMMARY ORCHESTRATOR?
---------------------------------
The SummaryOrchestrator implements lookup-or-generate for thread summaries.
It does not talk to Slack, Redis or Gemini itself; it coordinates the
content source, the cache store and the generation gateway that are
injected into it.

THE REQUEST LIFECYCLE:
----------------------
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 1: KEY DERIVATION                                         │
│ - Canonical key from (team, channel, thread_ts, language)       │
│ - Malformed input raises InvalidKeyComponentError               │
│ - Workspace credentials resolved (WorkspaceNotInstalledError)   │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 2+3: PROBE ‖ FETCH (concurrent)                           │
│ - Cache probe WITHOUT fingerprint filter                        │
│ - Thread content fetch from Slack                               │
│ - A failing probe counts as a miss                              │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ FINGERPRINT COMPARE                                             │
│ - No content → EmptyContentError (beats any cache entry)        │
│ - Stored fingerprint == fresh fingerprint → HIT, return stored  │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 4: GENERATION (miss or stale)                             │
│ - 1 message → translate_single, more → summarize                │
│ - Bounded by GENERATION_TIMEOUT_SECONDS                         │
│ - Optionally coalesced per key (InFlightRegistry)               │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 5: WRITE-BACK (fire-and-forget)                           │
│ - upsert() runs as a detached task, never awaited by the caller │
│ - Its outcome only reaches the logs                             │
└─────────────────────────────────────────────────────────────────┘

Nothing is retried: a failure while fetching or generating ends the request.

DEPENDENCY INJECTION PATTERN:
-----------------------------
All collaborators come in through the constructor, so tests replace them
with in-memory fakes.
"""

import asyncio
from collections.abc import Sequence

from thread_digest.core.config.constants import CacheOutcome, SupportedLanguage
from thread_digest.core.exceptions import EmptyContentError, ProviderTimeoutError
from thread_digest.core.interfaces import CacheStore, ContentSourceProvider
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.core.models import CacheEntry, ContentItem, ResolveOutcome, StructuredSummary
from thread_digest.infrastructure.cache.key_codec import derive_key
from thread_digest.llm.base_gateway import GenerationGateway
from thread_digest.services.fingerprint import FingerprintStrategy, MessageCountFingerprint
from thread_digest.services.inflight import InFlightRegistry

logger = get_logger(__name__)

DEFAULT_GENERATION_TIMEOUT = 60.0


class SummaryOrchestrator:
    """
    Lookup-or-generate coordinator.

    Usage:
        orchestrator = SummaryOrchestrator(
            store=RedisSummaryStore(redis_client),
            content_sources=SlackContentSourceProvider(token_store, user_directory),
            gateway=GeminiGateway.from_settings(settings),
        )
        outcome = await orchestrator.resolve("T0123ABCD9", "C0123ABCD9", "1700000000.000100", "ja")
    """

    def __init__(
        self,
        store: CacheStore | None,
        content_sources: ContentSourceProvider,
        gateway: GenerationGateway,
        fingerprint: FingerprintStrategy | None = None,
        generation_timeout: float = DEFAULT_GENERATION_TIMEOUT,
        inflight: InFlightRegistry[StructuredSummary] | None = None,
    ):
        """
        Args:
            store: Summary cache; None disables probing and write-back
            content_sources: Resolves the thread reader of a workspace
            gateway: Summary/translation generator
            fingerprint: Content change detector (message count by default)
            generation_timeout: Seconds before a generation call is abandoned
            inflight: Optional registry coalescing concurrent misses per key
        """
        self._store = store
        self._content_sources = content_sources
        self._gateway = gateway
        self._fingerprint = fingerprint or MessageCountFingerprint()
        self._generation_timeout = generation_timeout
        self._inflight = inflight
        self._write_backs: set[asyncio.Task] = set()

    async def resolve(
        self,
        workspace_id: str,
        scope_id: str,
        anchor_id: str,
        language: str | SupportedLanguage,
    ) -> ResolveOutcome:
        """
        Return the summary of a thread, from cache when it is still current.

        Raises:
            InvalidKeyComponentError: Malformed team/channel/ts/language
            WorkspaceNotInstalledError: No credentials for the workspace
            EmptyContentError: The thread has no human-authored messages
            ContentSourceError: Slack could not be read
            UpstreamGenerationError: Generation failed or timed out
        """
        # STAGE-1: Key derivation (validation errors surface to the caller)
        cache_key = derive_key(workspace_id, scope_id, anchor_id, language)
        target_language = SupportedLanguage(language)
        log_stage(logger, "1.1", "Cache key derived", cache_key=cache_key)

        source = await self._content_sources.for_workspace(workspace_id)

        # STAGE-2 + STAGE-3: probe and fetch run concurrently
        items, entry = await asyncio.gather(
            source.fetch_content(scope_id, anchor_id),
            self._probe(cache_key),
        )

        if not items:
            raise EmptyContentError(
                "No messages found in this thread",
                details={"channel_id": scope_id, "thread_ts": anchor_id},
            )

        fingerprint = self._fingerprint.compute(items)
        outcome = self._classify(entry, fingerprint)
        log_stage(
            logger,
            "2.6",
            "Cache decision",
            cache_key=cache_key,
            outcome=outcome.value,
            message_count=len(items),
        )

        if outcome is CacheOutcome.HIT:
            return ResolveOutcome(summary=entry.result, message_count=len(items), cached=True)

        # STAGE-4: Generation
        if self._inflight is not None:
            summary = await self._inflight.run(
                cache_key, lambda: self._generate(items, target_language)
            )
        else:
            summary = await self._generate(items, target_language)

        # STAGE-5: Write-back, not awaited
        self._schedule_write_back(cache_key, summary, fingerprint)

        return ResolveOutcome(summary=summary, message_count=len(items), cached=False)

    @staticmethod
    def _classify(entry: CacheEntry | None, fingerprint: int) -> CacheOutcome:
        if entry is None:
            return CacheOutcome.MISS
        if entry.content_fingerprint != fingerprint:
            return CacheOutcome.STALE
        return CacheOutcome.HIT

    async def _probe(self, cache_key: str) -> CacheEntry | None:
        """
        STAGE-2.1: Cache probe (fingerprint check deferred until content is known)
        """
        if self._store is None:
            return None
        try:
            return await self._store.probe(cache_key)
        except Exception as e:
            # Store contract says probe never raises; a broken store is a miss
            log_stage(
                logger,
                "2.1",
                "Cache probe raised, treating as miss",
                level="warning",
                cache_key=cache_key,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    async def _generate(self, items: Sequence[ContentItem], language: SupportedLanguage) -> StructuredSummary:
        if len(items) == 1:
            call = self._gateway.translate_single(items[0], language)
        else:
            call = self._gateway.summarize(items, language)

        try:
            return await asyncio.wait_for(call, timeout=self._generation_timeout)
        except asyncio.TimeoutError as e:
            log_stage(logger, "4.4", "Generation timed out", level="error", timeout=self._generation_timeout)
            raise ProviderTimeoutError(
                f"Generation did not finish within {self._generation_timeout}s",
                details={"gateway": self._gateway.name},
            ) from e

    def _schedule_write_back(self, cache_key: str, summary: StructuredSummary, fingerprint: int) -> None:
        if self._store is None:
            return
        task = asyncio.create_task(self._store.upsert(cache_key, summary, fingerprint))
        self._write_backs.add(task)
        task.add_done_callback(lambda t: self._on_write_back_done(t, cache_key))

    def _on_write_back_done(self, task: asyncio.Task, cache_key: str) -> None:
        self._write_backs.discard(task)
        if task.cancelled():
            log_stage(logger, "5.1", "Cache write-back cancelled", level="warning", cache_key=cache_key)
            return
        error = task.exception()
        if error is not None:
            log_stage(
                logger,
                "5.1",
                "Failed to cache summary",
                level="error",
                cache_key=cache_key,
                error_type=type(error).__name__,
                error=str(error),
            )

    @property
    def pending_write_backs(self) -> int:
        return len(self._write_backs)

    async def drain(self) -> None:
        """Wait for outstanding write-backs (shutdown and tests)."""
        if self._write_backs:
            await asyncio.gather(*list(self._write_backs), return_exceptions=True)
