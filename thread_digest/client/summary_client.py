"""
Summary API Client
==================

Consumer side of POST /api/summary with its own small result cache.

    ┌──────────────────────┐   probe (scope-anchor, language)   ┌───────────────────┐
    │ CachedSummaryClient  │ ─────────────────────────────────▶ │ LocalSummaryStore │
    │                      │ ◀───────── hit: stored summary ─── │ (100 entries/14d) │
    └──────────┬───────────┘                                    └───────────────────┘
               │ miss
               ▼
    ┌──────────────────────┐   POST /api/summary   ┌──────────────────────┐
    │  SummaryApiClient    │ ────────────────────▶ │  thread digest API   │
    └──────────────────────┘                       └──────────────────────┘

The local store is keyed by channel and thread only; a stored summary in a
different language is a miss and gets replaced by the new one.

USAGE:
------
    async with SummaryApiClient("http://localhost:8080") as api:
        client = CachedSummaryClient(api, LocalSummaryStore(path="~/.thread-digest.json"))
        result = await client.summarize("T0123ABCD9", "C0123ABCD9", "1700000000.000100", "en")
"""

from typing import Any

import httpx

from thread_digest.core.config.constants import DEFAULT_LANGUAGE, SupportedLanguage
from thread_digest.core.exceptions import DigestBaseError
from thread_digest.core.logging import get_logger, log_stage
from thread_digest.core.models import StructuredSummary
from thread_digest.infrastructure.cache.key_codec import derive_key
from thread_digest.infrastructure.cache.local_store import LocalSummaryStore

logger = get_logger(__name__)

DEFAULT_ENDPOINT = "http://localhost:8080"
SUMMARY_PATH = "/api/summary"
DEFAULT_TIMEOUT_SECONDS = 90.0


class SummaryApiError(DigestBaseError):
    """Non-2xx answer, an error envelope, or a transport failure."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details=details)
        self.status_code = status_code
        self.error_code = error_code


class SummaryApiClient:
    """
    Thin async client for the summary endpoint.

    Use as an async context manager, or pass an existing httpx.AsyncClient
    (which the caller then owns and closes).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "SummaryApiClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def summarize(
        self,
        team_id: str,
        channel_id: str,
        thread_ts: str,
        target_lang: str | SupportedLanguage = DEFAULT_LANGUAGE,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Request a summary.

        Returns:
            The success envelope: {"status": "ok", "summary", "messageCount", "cached"}

        Raises:
            SummaryApiError: On transport failure, non-2xx status or an error envelope
        """
        if self._client is None:
            raise SummaryApiError("SummaryApiClient used outside 'async with'")

        body = {
            "team_id": team_id,
            "channel_id": channel_id,
            "thread_ts": thread_ts,
            "target_lang": SupportedLanguage(target_lang).value,
        }
        if user_id:
            body["user_id"] = user_id

        try:
            response = await self._client.post(f"{self.base_url}{SUMMARY_PATH}", json=body)
        except httpx.HTTPError as e:
            raise SummaryApiError(f"Summary request failed: {e}", details={"url": self.base_url}) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error or payload.get("status") != "ok":
            raise SummaryApiError(
                payload.get("message") or f"Summary request failed with HTTP {response.status_code}",
                status_code=response.status_code,
                error_code=payload.get("errorCode"),
            )
        return payload


class CachedSummaryClient:
    """SummaryApiClient fronted by a bounded LocalSummaryStore."""

    def __init__(self, api: SummaryApiClient, store: LocalSummaryStore):
        self.api = api
        self.store = store

    async def summarize(
        self,
        team_id: str,
        channel_id: str,
        thread_ts: str,
        target_lang: str | SupportedLanguage = DEFAULT_LANGUAGE,
    ) -> dict[str, Any]:
        key = derive_key(team_id, channel_id, thread_ts, target_lang)

        entry = await self.store.probe(key)
        if entry is not None:
            log_stage(logger, "2.1", "Local cache hit", cache_key=key)
            return {
                "summary": entry.result.to_wire(),
                "messageCount": entry.content_fingerprint,
                "cached": True,
            }

        payload = await self.api.summarize(team_id, channel_id, thread_ts, target_lang)
        summary_data = dict(payload["summary"])
        summary_data.setdefault("language", SupportedLanguage(target_lang).value)
        summary = StructuredSummary(**summary_data)
        message_count = int(payload.get("messageCount", 0))

        await self.store.upsert(key, summary, message_count)
        return {"summary": summary.to_wire(), "messageCount": message_count, "cached": bool(payload.get("cached"))}
