"""
Gateway Test Factory

A GenerationGateway whose model call is canned, plus summary builders.
"""

import asyncio
from typing import Any

import orjson

from thread_digest.core.config.constants import SupportedLanguage
from thread_digest.core.models import StructuredSummary
from thread_digest.llm.base_gateway import GatewayConfig, GenerationGateway


class FakeGateway(GenerationGateway):
    """
    Runs the real prompt building and parsing around a canned JSON answer.

    Records every summarize/translate call and every prompt.
    """

    def __init__(
        self,
        overview: str = "The team agreed to ship on Friday.",
        delay: float = 0.0,
        error: Exception | None = None,
        raw_response: str | None = None,
    ):
        super().__init__(GatewayConfig(name="fake", api_key="test-key", model="fake-model"))
        self.overview = overview
        self.delay = delay
        self.error = error
        self.raw_response = raw_response
        self.summarize_calls: list[tuple[list, SupportedLanguage]] = []
        self.translate_calls: list[tuple[Any, SupportedLanguage]] = []
        self.prompts: list[str] = []

    async def summarize(self, items, language):
        self.summarize_calls.append((list(items), language))
        return await super().summarize(items, language)

    async def translate_single(self, item, language):
        self.translate_calls.append((item, language))
        return await super().translate_single(item, language)

    async def _generate_json(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.raw_response is not None:
            return self.raw_response
        return orjson.dumps({"overview": self.overview}).decode()

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy", "gateway": self.name}

    @property
    def call_count(self) -> int:
        return len(self.summarize_calls) + len(self.translate_calls)


class SummaryFactory:
    @staticmethod
    def summary(language: str = "ja", overview: str = "Cached overview", **fields) -> StructuredSummary:
        return StructuredSummary(overview=overview, language=SupportedLanguage(language), **fields)
