#!/usr/bin/env python3
"""
Base Generation Gateway

Abstract base class for the component that turns thread content into a
StructuredSummary. The orchestrator only knows this interface; the Gemini
implementation lives in gemini_gateway.py.

Architectural Decision: template method
- summarize() / translate_single() build the prompt, call the model and
  parse the JSON payload in one place
- Subclasses implement _generate_json() (one model call, raw text back)
  and health_check()

Error contract:
- Empty or unparseable payload → EmptyUpstreamResponseError
- Transport failures → UpstreamGenerationError subclasses raised by the
  concrete gateway, propagated unchanged

Author: System Architect
Date: 2025-12-05
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import orjson
from pydantic import ValidationError as PydanticValidationError

from thread_digest.core.config.constants import MAX_MESSAGES_FOR_PROMPT, SupportedLanguage
from thread_digest.core.exceptions import EmptyUpstreamResponseError
from thread_digest.core.logging.logger import get_logger, log_stage
from thread_digest.core.models import ContentItem, StructuredSummary
from thread_digest.llm.prompts import build_summary_prompt, build_translation_prompt

logger = get_logger(__name__)


@dataclass
class GatewayConfig:
    """
    Configuration for a generation gateway.

    Attributes:
        name: Gateway name used in logs
        api_key: API key for authentication
        model: Model identifier
        temperature: Sampling temperature
        max_output_tokens: Response token cap
        max_messages_for_prompt: Newest messages included in summary prompts
    """

    name: str
    api_key: str | None
    model: str
    temperature: float = 0.3
    max_output_tokens: int = 2048
    max_messages_for_prompt: int = MAX_MESSAGES_FOR_PROMPT


class GenerationGateway(ABC):
    """
    Abstract base class for generation gateways.

    STAGE-4: Generation

    Usage:
        class GeminiGateway(GenerationGateway):
            async def _generate_json(self, prompt: str) -> str | None:
                ...
    """

    def __init__(self, config: GatewayConfig):
        """
        STAGE-4.0: Gateway initialization
        """
        self.config = config
        self.name = config.name

        logger.info("Gateway initialized", stage="4.0", gateway=config.name, model=config.model)

    async def summarize(
        self, items: Sequence[ContentItem], language: SupportedLanguage
    ) -> StructuredSummary:
        """
        Summarize a multi-message thread in ``language``.

        STAGE-4.1: Thread summary
        """
        log_stage(logger, "4.1", "Generating summary", message_count=len(items), language=language.value)
        prompt = build_summary_prompt(items, language, self.config.max_messages_for_prompt)
        summary = self._parse(await self._generate_json(prompt), language)
        log_stage(logger, "4.1", "Summary generated successfully", language=language.value)
        return summary

    async def translate_single(self, item: ContentItem, language: SupportedLanguage) -> StructuredSummary:
        """
        Translate a single-message thread into ``language``.

        STAGE-4.2: Single message translation
        """
        log_stage(logger, "4.2", "Translating message", language=language.value)
        prompt = build_translation_prompt(item, language)
        summary = self._parse(await self._generate_json(prompt), language)
        log_stage(logger, "4.2", "Translation generated successfully", language=language.value)
        return summary

    def _parse(self, text: str | None, language: SupportedLanguage) -> StructuredSummary:
        if not text or not text.strip():
            raise EmptyUpstreamResponseError(
                f"Empty response from {self.name}", details={"gateway": self.name}
            )

        try:
            payload = orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise EmptyUpstreamResponseError.from_exception(
                e, message=f"Unparseable response from {self.name}", gateway=self.name
            ) from e

        if not isinstance(payload, dict):
            raise EmptyUpstreamResponseError(
                f"Unexpected response shape from {self.name}", details={"gateway": self.name}
            )

        payload.pop("language", None)
        try:
            return StructuredSummary(**payload, language=language)
        except PydanticValidationError as e:
            raise EmptyUpstreamResponseError.from_exception(
                e, message=f"Incomplete response from {self.name}", gateway=self.name
            ) from e

    @abstractmethod
    async def _generate_json(self, prompt: str) -> str | None:
        """
        Run one model call and return the raw JSON text (or None if empty).

        Raises:
            UpstreamGenerationError: On transport or provider failures
        """

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """Report gateway reachability."""
