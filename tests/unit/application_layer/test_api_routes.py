"""
Unit Tests for API Routes

Tests the FastAPI application with TestClient. The lifespan is not run:
each test app gets fakes (or a SummaryOrchestrator over fakes) on app.state.
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import urlencode

import pytest
from fastapi.testclient import TestClient
from slack_sdk.signature import SignatureVerifier
from starlette.requests import Request

from tests.test_fixtures import (
    CHANNEL_ID,
    OTHER_TEAM_ID,
    TEAM_ID,
    THREAD_TS,
    FakeContentSourceProvider,
    FakeGateway,
    SummaryFactory,
)
from thread_digest.application.api.dependencies import get_app_settings
from thread_digest.application.api.middleware.error_handler import INTERNAL_ERROR_MESSAGE
from thread_digest.application.api.rate_limiter import get_client_identifier
from thread_digest.application.app import create_app
from thread_digest.core.config.constants import (
    COMMAND_EMPTY_TEXT,
    COMMAND_FAILED_TEXT,
    COMMAND_NOT_INSTALLED_TEXT,
    COMMAND_PENDING_TEXT,
    COMMAND_USAGE_TEXT,
    SupportedLanguage,
)
from thread_digest.core.exceptions import CacheKeyError, ContentSourceError, ProviderTimeoutError
from thread_digest.core.models import ResolveOutcome
from thread_digest.services.summary_orchestrator import SummaryOrchestrator

VALID_BODY = {"team_id": TEAM_ID, "channel_id": CHANNEL_ID, "thread_ts": THREAD_TS, "target_lang": "en"}


@pytest.fixture
def orchestrator_stub():
    stub = MagicMock()
    stub.resolve = AsyncMock(
        return_value=ResolveOutcome(
            summary=SummaryFactory.summary(language="en", overview="Done", tech_notes=["note"]),
            message_count=4,
            cached=True,
        )
    )
    return stub


@pytest.fixture
def test_app(mock_settings, orchestrator_stub):
    app = create_app(settings=mock_settings, use_lifespan=False)
    app.dependency_overrides[get_app_settings] = lambda: mock_settings
    app.state.orchestrator = orchestrator_stub
    app.state.summary_store = None
    app.state.token_store = MagicMock()
    app.state.user_directory = MagicMock()
    return app


@pytest.fixture
def client(test_app):
    with TestClient(test_app) as test_client:
        yield test_client


def use_real_orchestrator(app, provider) -> SummaryOrchestrator:
    orchestrator = SummaryOrchestrator(None, provider, FakeGateway(overview="Fresh summary"))
    app.state.orchestrator = orchestrator
    return orchestrator


@pytest.mark.unit
class TestSummaryRoute:
    """POST /api/summary"""

    def test_success_envelope(self, client, orchestrator_stub):
        response = client.post("/api/summary", json=VALID_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["messageCount"] == 4
        assert data["cached"] is True
        assert data["summary"]["overview"] == "Done"
        assert data["summary"]["techNotes"] == ["note"]
        assert data["summary"]["language"] == "en"
        orchestrator_stub.resolve.assert_awaited_once()
        assert orchestrator_stub.resolve.await_args.args[:3] == (TEAM_ID, CHANNEL_ID, THREAD_TS)

    def test_language_defaults_to_japanese(self, client, orchestrator_stub):
        body = {k: v for k, v in VALID_BODY.items() if k != "target_lang"}

        client.post("/api/summary", json=body)

        assert orchestrator_stub.resolve.await_args.args[3].value == "ja"

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"team_id": TEAM_ID, "channel_id": CHANNEL_ID},
            {**VALID_BODY, "target_lang": "xx"},
            {**VALID_BODY, "channel_id": ""},
        ],
    )
    def test_malformed_body_is_400(self, client, orchestrator_stub, body):
        response = client.post("/api/summary", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "status": "error",
            "errorCode": "VALIDATION_ERROR",
            "message": "Invalid request parameters",
        }
        orchestrator_stub.resolve.assert_not_awaited()

    def test_bad_identifier_is_400_without_lookup(self, client, test_app):
        provider = FakeContentSourceProvider({TEAM_ID: []})
        use_real_orchestrator(test_app, provider)

        response = client.post("/api/summary", json={**VALID_BODY, "channel_id": "general"})

        assert response.status_code == 400
        assert response.json()["errorCode"] == "VALIDATION_ERROR"
        assert provider.lookups == []

    def test_timestamp_with_trailing_newline_is_400(self, client, test_app):
        provider = FakeContentSourceProvider({TEAM_ID: []})
        use_real_orchestrator(test_app, provider)

        response = client.post("/api/summary", json={**VALID_BODY, "thread_ts": THREAD_TS + "\n"})

        assert response.status_code == 400
        assert provider.lookups == []

    def test_not_installed_is_401(self, client, test_app, sample_messages):
        use_real_orchestrator(test_app, FakeContentSourceProvider({TEAM_ID: sample_messages}))

        response = client.post("/api/summary", json={**VALID_BODY, "team_id": OTHER_TEAM_ID})

        assert response.status_code == 401
        assert response.json()["errorCode"] == "NOT_INSTALLED"

    def test_empty_thread_is_404(self, client, test_app):
        use_real_orchestrator(test_app, FakeContentSourceProvider({TEAM_ID: []}))

        response = client.post("/api/summary", json=VALID_BODY)

        assert response.status_code == 404
        assert response.json() == {
            "status": "error",
            "errorCode": "THREAD_NOT_FOUND",
            "message": "No messages found in this thread",
        }

    def test_generated_summary(self, client, test_app, sample_messages):
        use_real_orchestrator(test_app, FakeContentSourceProvider({TEAM_ID: sample_messages}))

        response = client.post("/api/summary", json=VALID_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["overview"] == "Fresh summary"
        assert data["messageCount"] == 3
        assert data["cached"] is False

    @pytest.mark.parametrize(
        "error",
        [
            ProviderTimeoutError("Generation did not finish within 60.0s"),
            ContentSourceError("Slack is unreachable"),
            CacheKeyError("redis down"),
        ],
    )
    def test_domain_failures_are_generic_500(self, client, orchestrator_stub, error):
        orchestrator_stub.resolve.side_effect = error

        response = client.post("/api/summary", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json() == {"status": "error", "errorCode": "INTERNAL_ERROR", "message": INTERNAL_ERROR_MESSAGE}

    def test_unexpected_exception_is_generic_500(self, client, orchestrator_stub):
        orchestrator_stub.resolve.side_effect = RuntimeError("secret connection string")

        response = client.post("/api/summary", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json()["message"] == INTERNAL_ERROR_MESSAGE
        assert "secret" not in response.text

    def test_missing_orchestrator_is_500(self, client, test_app):
        test_app.state.orchestrator = None

        response = client.post("/api/summary", json=VALID_BODY)

        assert response.status_code == 500
        assert response.json()["errorCode"] == "INTERNAL_ERROR"


@pytest.mark.unit
class TestRequestId:
    def test_echoes_caller_id(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_generates_id(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 36

    def test_present_on_errors(self, client):
        response = client.post("/api/summary", json={}, headers={"X-Request-ID": "req-400"})
        assert response.headers["X-Request-ID"] == "req-400"


@pytest.mark.unit
class TestHealthRoutes:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0-test"
        assert data["timestamp"].endswith("Z")

    def test_ready_without_cache(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["components"] == {"summary_store": "disabled"}

    def test_ready_with_healthy_store(self, client, test_app):
        store = MagicMock()
        store.health_check = AsyncMock(return_value={"backend": "local", "status": "healthy"})
        test_app.state.summary_store = store

        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_with_unhealthy_store(self, client, test_app):
        store = MagicMock()
        store.health_check = AsyncMock(return_value={"backend": "redis", "status": "unhealthy"})
        test_app.state.summary_store = store

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_root(self, client):
        data = client.get("/").json()

        assert data["name"] == "Thread Digest Test"
        assert data["health"] == "/health"


@pytest.mark.unit
class TestAdminRoutes:
    def test_evict_summary(self, client, test_app):
        store = MagicMock()
        store.evict = AsyncMock()
        test_app.state.summary_store = store

        response = client.delete(
            "/api/admin/cache",
            params={"team_id": TEAM_ID, "channel_id": CHANNEL_ID, "thread_ts": THREAD_TS, "target_lang": "en"},
        )

        expected_key = f"{TEAM_ID}:{CHANNEL_ID}:{THREAD_TS}:en"
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "evicted": expected_key}
        store.evict.assert_awaited_once_with(expected_key)

    def test_evict_with_caching_disabled(self, client):
        response = client.delete(
            "/api/admin/cache", params={"team_id": TEAM_ID, "channel_id": CHANNEL_ID, "thread_ts": THREAD_TS}
        )

        assert response.json()["evicted"] is None

    def test_evict_rejects_bad_key(self, client):
        response = client.delete(
            "/api/admin/cache", params={"team_id": TEAM_ID, "channel_id": CHANNEL_ID, "thread_ts": "yesterday"}
        )

        assert response.status_code == 400

    def test_clear_one_token(self, client, test_app):
        response = client.post("/api/admin/caches/tokens/clear", params={"team_id": TEAM_ID})

        assert response.json() == {"status": "ok", "cleared": 1}
        test_app.state.token_store.clear.assert_called_once_with(TEAM_ID)

    def test_clear_all_tokens(self, client, test_app):
        test_app.state.token_store.clear_all.return_value = 3

        response = client.post("/api/admin/caches/tokens/clear")

        assert response.json() == {"status": "ok", "cleared": 3}

    def test_clear_user_names(self, client, test_app):
        test_app.state.user_directory.clear.return_value = 7

        response = client.post("/api/admin/caches/users/clear")

        assert response.json() == {"status": "ok", "cleared": 7}


@pytest.mark.unit
class TestClientIdentifier:
    @staticmethod
    def make_request(headers=None) -> Request:
        return Request(
            {
                "type": "http",
                "method": "POST",
                "path": "/api/summary",
                "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
                "client": ("10.0.0.7", 52100),
            }
        )

    def test_prefers_user_header(self):
        assert get_client_identifier(self.make_request({"X-User-ID": "U0000000001"})) == "user:U0000000001"

    def test_falls_back_to_address(self):
        assert get_client_identifier(self.make_request()) == "ip:10.0.0.7"


@pytest.mark.unit
class TestInstallationRoutes:
    def test_save_installation(self, client, test_app):
        test_app.state.token_store.save_token = AsyncMock()

        response = client.put(f"/api/admin/installations/{TEAM_ID}", json={"bot_token": "xoxb-new"})

        assert response.json() == {"status": "ok", "team_id": TEAM_ID}
        test_app.state.token_store.save_token.assert_awaited_once_with(TEAM_ID, "xoxb-new")

    def test_save_rejects_bad_team_id(self, client, test_app):
        test_app.state.token_store.save_token = AsyncMock()

        response = client.put("/api/admin/installations/acme", json={"bot_token": "xoxb-new"})

        assert response.status_code == 400
        test_app.state.token_store.save_token.assert_not_awaited()

    def test_save_requires_token(self, client):
        response = client.put(f"/api/admin/installations/{TEAM_ID}", json={})

        assert response.status_code == 400

    def test_delete_installation(self, client, test_app):
        test_app.state.token_store.delete_token = AsyncMock(return_value=True)

        response = client.delete(f"/api/admin/installations/{TEAM_ID}")

        assert response.json() == {"status": "ok", "removed": True}
        test_app.state.token_store.delete_token.assert_awaited_once_with(TEAM_ID)


RESPONSE_URL = "https://hooks.slack.test/commands/T0123ABCD9/1"
COMMAND_FORM = {
    "team_id": TEAM_ID,
    "channel_id": CHANNEL_ID,
    "command": "/summarize",
    "text": f"{THREAD_TS} en",
    "response_url": RESPONSE_URL,
}


@pytest.mark.unit
class TestSlackCommandRoute:
    """POST /slack/commands"""

    @pytest.fixture
    def webhook_class(self):
        with patch("thread_digest.application.api.routes.slack_commands.AsyncWebhookClient") as webhook_class:
            webhook_class.return_value.send = AsyncMock(return_value=MagicMock(status_code=200))
            yield webhook_class

    @staticmethod
    def sent(webhook_class) -> dict:
        return webhook_class.return_value.send.await_args.kwargs

    def test_acknowledges_then_posts_blocks(self, client, orchestrator_stub, webhook_class):
        response = client.post("/slack/commands", data=COMMAND_FORM)

        assert response.status_code == 200
        assert response.json() == {"response_type": "ephemeral", "text": COMMAND_PENDING_TEXT}
        assert orchestrator_stub.resolve.await_args.args == (TEAM_ID, CHANNEL_ID, THREAD_TS, SupportedLanguage.EN)
        webhook_class.assert_called_once_with(RESPONSE_URL)
        sent = self.sent(webhook_class)
        assert sent["response_type"] == "ephemeral"
        assert sent["blocks"][1]["text"]["text"] == "*Overview*\nDone"

    def test_permalink_channel_wins(self, client, orchestrator_stub, webhook_class):
        form = {**COMMAND_FORM, "text": "https://acme.slack.com/archives/C9999ZZZZ1/p1700000000000100"}

        client.post("/slack/commands", data=form)

        assert orchestrator_stub.resolve.await_args.args == (
            TEAM_ID,
            "C9999ZZZZ1",
            "1700000000.000100",
            SupportedLanguage.JA,
        )

    def test_missing_thread_returns_usage(self, client, orchestrator_stub, webhook_class):
        response = client.post("/slack/commands", data={**COMMAND_FORM, "text": "en"})

        assert response.json()["text"] == COMMAND_USAGE_TEXT
        orchestrator_stub.resolve.assert_not_awaited()
        webhook_class.assert_not_called()

    def test_not_installed_reply(self, client, test_app, webhook_class, sample_messages):
        use_real_orchestrator(test_app, FakeContentSourceProvider({TEAM_ID: sample_messages}))

        client.post("/slack/commands", data={**COMMAND_FORM, "team_id": OTHER_TEAM_ID})

        assert self.sent(webhook_class)["text"] == COMMAND_NOT_INSTALLED_TEXT

    def test_empty_thread_reply(self, client, test_app, webhook_class):
        use_real_orchestrator(test_app, FakeContentSourceProvider({TEAM_ID: []}))

        client.post("/slack/commands", data=COMMAND_FORM)

        assert self.sent(webhook_class)["text"] == COMMAND_EMPTY_TEXT
        assert "blocks" not in self.sent(webhook_class)

    def test_invalid_team_reply(self, client, test_app, webhook_class):
        provider = FakeContentSourceProvider({TEAM_ID: []})
        use_real_orchestrator(test_app, provider)

        client.post("/slack/commands", data={**COMMAND_FORM, "team_id": "acme"})

        assert self.sent(webhook_class)["text"] == COMMAND_USAGE_TEXT
        assert provider.lookups == []

    def test_failure_reply_hides_details(self, client, orchestrator_stub, webhook_class):
        orchestrator_stub.resolve.side_effect = RuntimeError("secret connection string")

        response = client.post("/slack/commands", data=COMMAND_FORM)

        assert response.status_code == 200
        assert self.sent(webhook_class)["text"] == COMMAND_FAILED_TEXT

    def test_rejects_bad_signature(self, client, mock_settings, orchestrator_stub, webhook_class):
        mock_settings.slack.SLACK_SIGNING_SECRET = "signing-secret"

        response = client.post(
            "/slack/commands",
            data=COMMAND_FORM,
            headers={"X-Slack-Request-Timestamp": str(int(time.time())), "X-Slack-Signature": "v0=bad"},
        )

        assert response.status_code == 401
        orchestrator_stub.resolve.assert_not_awaited()

    def test_accepts_signed_request(self, client, mock_settings, orchestrator_stub, webhook_class):
        mock_settings.slack.SLACK_SIGNING_SECRET = "signing-secret"
        body = urlencode(COMMAND_FORM)
        timestamp = str(int(time.time()))
        signature = SignatureVerifier("signing-secret").generate_signature(timestamp=timestamp, body=body)

        response = client.post(
            "/slack/commands",
            content=body,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "X-Slack-Request-Timestamp": timestamp,
                "X-Slack-Signature": signature,
            },
        )

        assert response.json()["text"] == COMMAND_PENDING_TEXT
        orchestrator_stub.resolve.assert_awaited_once()
