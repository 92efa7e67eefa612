"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import FakeRedisClient
from .content_factory import (
    CHANNEL_ID,
    OTHER_TEAM_ID,
    TEAM_ID,
    THREAD_TS,
    FakeContentSource,
    FakeContentSourceProvider,
    MessageFactory,
)
from .gateway_factory import FakeGateway, SummaryFactory

__all__ = [
    "TEAM_ID",
    "OTHER_TEAM_ID",
    "CHANNEL_ID",
    "THREAD_TS",
    "FakeRedisClient",
    "FakeContentSource",
    "FakeContentSourceProvider",
    "MessageFactory",
    "FakeGateway",
    "SummaryFactory",
]
