"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from tests.test_fixtures import (
    TEAM_ID,
    FakeContentSourceProvider,
    FakeGateway,
    FakeRedisClient,
    MessageFactory,
)

# ============================================================================
# Mock Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_settings():
    """
    Mock application settings for testing.

    Returns a MagicMock with the section views the components read.
    """
    from thread_digest.core.config.settings import Settings

    settings = MagicMock(spec=Settings)

    settings.cache.ENABLE_CACHING = True
    settings.cache.SUMMARY_CACHE_BACKEND = "local"
    settings.cache.SUMMARY_CACHE_TTL_DAYS = 90
    settings.cache.LOCAL_CACHE_TTL_DAYS = 14
    settings.cache.LOCAL_CACHE_MAX_ENTRIES = 100
    settings.cache.LOCAL_CACHE_PATH = None
    settings.cache.CACHE_FINGERPRINT_STRATEGY = "message_count"
    settings.cache.ENABLE_INFLIGHT_DEDUP = False

    settings.slack.SLACK_BOT_TOKEN = None
    settings.slack.SLACK_SIGNING_SECRET = None
    settings.slack.MAX_THREAD_MESSAGES = 100
    settings.slack.SLACK_TOKEN_CACHE_TTL = 300
    settings.slack.SLACK_USER_CACHE_TTL = 3600

    settings.llm.GOOGLE_API_KEY = "test-google-key"
    settings.llm.GEMINI_MODEL = "gemini-2.5-pro"
    settings.llm.GEMINI_TEMPERATURE = 0.3
    settings.llm.GEMINI_MAX_OUTPUT_TOKENS = 2048
    settings.llm.MAX_MESSAGES_FOR_PROMPT = 30
    settings.llm.GENERATION_TIMEOUT_SECONDS = 60.0

    settings.app.ENVIRONMENT = "test"
    settings.app.APP_VERSION = "1.0.0-test"
    settings.app.APP_NAME = "Thread Digest Test"
    settings.app.API_BASE_PATH = "/api"
    settings.app.CORS_ORIGINS = ["*"]

    settings.rate_limit.RATE_LIMIT_DEFAULT = "1000/minute"
    settings.rate_limit.RATE_LIMIT_STORAGE_URI = "memory://"

    return settings


# ============================================================================
# Clock
# ============================================================================


class MutableClock:
    """Callable clock the tests move forward explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    return MutableClock(datetime(2025, 1, 1, tzinfo=timezone.utc))


# ============================================================================
# Mock Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def fake_redis():
    """In-memory stand-in for RedisClient (get/set/delete/hget/hset/hdel)."""
    return FakeRedisClient()


@pytest.fixture
def sample_messages():
    """Three human messages of one thread."""
    return MessageFactory.thread(3)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def content_provider(sample_messages):
    """Provider with TEAM_ID installed and serving ``sample_messages``."""
    return FakeContentSourceProvider({TEAM_ID: sample_messages})
