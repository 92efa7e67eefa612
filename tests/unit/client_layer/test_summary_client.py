"""
Unit Tests for the Summary API Client and CLI

HTTP is served by httpx.MockTransport; no server is started.
"""

from unittest.mock import AsyncMock, patch

import httpx
import orjson
import pytest

from tests.test_fixtures import CHANNEL_ID, TEAM_ID, THREAD_TS, SummaryFactory
from thread_digest.client import cli
from thread_digest.client.summary_client import CachedSummaryClient, SummaryApiClient, SummaryApiError
from thread_digest.core.exceptions import InvalidKeyComponentError
from thread_digest.infrastructure.cache.key_codec import derive_key
from thread_digest.infrastructure.cache.local_store import LocalSummaryStore

OK_ENVELOPE = {
    "status": "ok",
    "summary": {"title": "", "overview": "Ship Friday", "techNotes": [], "language": "en"},
    "messageCount": 5,
    "cached": False,
}


class RecordingHandler:
    def __init__(self, status_code: int = 200, payload=None, content: bytes | None = None):
        self.status_code = status_code
        self.payload = OK_ENVELOPE if payload is None else payload
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)


def api_client(handler) -> SummaryApiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SummaryApiClient("http://digest.test/", http_client=http_client)


@pytest.mark.unit
class TestSummaryApiClient:
    @pytest.mark.asyncio
    async def test_posts_request_body(self):
        handler = RecordingHandler()

        payload = await api_client(handler).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS, "en", user_id="U0000000001")

        assert payload == OK_ENVELOPE
        request = handler.requests[0]
        assert str(request.url) == "http://digest.test/api/summary"
        assert orjson.loads(request.content) == {
            "team_id": TEAM_ID,
            "channel_id": CHANNEL_ID,
            "thread_ts": THREAD_TS,
            "target_lang": "en",
            "user_id": "U0000000001",
        }

    @pytest.mark.asyncio
    async def test_error_envelope(self):
        handler = RecordingHandler(
            401,
            {"status": "error", "errorCode": "NOT_INSTALLED", "message": "Slack app is not installed for this workspace"},
        )

        with pytest.raises(SummaryApiError) as exc_info:
            await api_client(handler).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS)

        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "NOT_INSTALLED"
        assert exc_info.value.message == "Slack app is not installed for this workspace"

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        handler = RecordingHandler(502, content=b"<html>bad gateway</html>")

        with pytest.raises(SummaryApiError) as exc_info:
            await api_client(handler).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS)

        assert exc_info.value.status_code == 502
        assert exc_info.value.error_code is None

    @pytest.mark.asyncio
    async def test_non_object_json_body(self):
        handler = RecordingHandler(200, ["not", "an", "envelope"])

        with pytest.raises(SummaryApiError) as exc_info:
            await api_client(handler).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS)

        assert exc_info.value.status_code == 200
        assert exc_info.value.error_code is None

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SummaryApiError) as exc_info:
            await api_client(refuse).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_requires_open_client(self):
        with pytest.raises(SummaryApiError):
            await SummaryApiClient().summarize(TEAM_ID, CHANNEL_ID, THREAD_TS)

    @pytest.mark.asyncio
    async def test_context_manager_owns_client(self):
        async with SummaryApiClient() as api:
            assert api._client is not None
        assert api._client is None


@pytest.mark.unit
class TestCachedSummaryClient:
    @pytest.mark.asyncio
    async def test_miss_calls_api_and_stores(self):
        handler = RecordingHandler()
        store = LocalSummaryStore()
        client = CachedSummaryClient(api_client(handler), store)

        result = await client.summarize(TEAM_ID, CHANNEL_ID, THREAD_TS, "en")

        assert result["summary"]["overview"] == "Ship Friday"
        assert result["summary"]["decisions"] == []
        assert (result["messageCount"], result["cached"]) == (5, False)
        entry = await store.probe(derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "en"))
        assert entry.content_fingerprint == 5

    @pytest.mark.asyncio
    async def test_hit_skips_api(self):
        handler = RecordingHandler()
        store = LocalSummaryStore()
        key = derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "en")
        await store.upsert(key, SummaryFactory.summary(language="en", overview="Stored"), 4)

        result = await CachedSummaryClient(api_client(handler), store).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS, "en")

        assert result["cached"] is True
        assert result["summary"]["overview"] == "Stored"
        assert result["messageCount"] == 4
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_other_language_replaces_entry(self):
        handler = RecordingHandler()
        store = LocalSummaryStore()
        await store.upsert(
            derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "ja"), SummaryFactory.summary(language="ja"), 4
        )

        await CachedSummaryClient(api_client(handler), store).summarize(TEAM_ID, CHANNEL_ID, THREAD_TS, "en")

        assert len(handler.requests) == 1
        assert await store.size() == 1
        assert await store.probe(derive_key(TEAM_ID, CHANNEL_ID, THREAD_TS, "ja")) is None

    @pytest.mark.asyncio
    async def test_invalid_reference_never_calls_api(self):
        handler = RecordingHandler()

        with pytest.raises(InvalidKeyComponentError):
            await CachedSummaryClient(api_client(handler), LocalSummaryStore()).summarize(
                TEAM_ID, "general", THREAD_TS, "en"
            )

        assert handler.requests == []


@pytest.mark.unit
class TestCli:
    ARGS = ["summarize", "--team", TEAM_ID, "--channel", CHANNEL_ID, "--ts", THREAD_TS]

    def test_parser_defaults(self):
        args = cli.build_parser().parse_args(self.ARGS)

        assert args.lang == "ja"
        assert args.endpoint == "http://localhost:8080"
        assert args.cache_file is None

    def test_prints_result(self, capsys):
        result = {"summary": {"overview": "Ship Friday"}, "messageCount": 5, "cached": True}
        with patch.object(cli, "run_summarize", AsyncMock(return_value=result)), patch.object(cli, "setup_logging"):
            assert cli.main(self.ARGS) == 0

        assert orjson.loads(capsys.readouterr().out) == result

    def test_api_error_exit_code(self, capsys):
        error = SummaryApiError("No messages found in this thread", status_code=404, error_code="THREAD_NOT_FOUND")
        with patch.object(cli, "run_summarize", AsyncMock(side_effect=error)), patch.object(cli, "setup_logging"):
            assert cli.main(self.ARGS) == 1

        assert "[THREAD_NOT_FOUND]" in capsys.readouterr().err

    def test_invalid_reference_exit_code(self, capsys):
        error = InvalidKeyComponentError("Invalid channel ID")
        with patch.object(cli, "run_summarize", AsyncMock(side_effect=error)), patch.object(cli, "setup_logging"):
            assert cli.main(self.ARGS) == 2

        assert "Invalid channel ID" in capsys.readouterr().err
