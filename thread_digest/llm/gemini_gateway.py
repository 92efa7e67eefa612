#!/usr/bin/env python3
"""
Google Gemini Generation Gateway

Implements GenerationGateway with the google-generativeai SDK.

- JSON output mode (response_mime_type="application/json")
- temperature 0.3, max_output_tokens 2048 by default
- google.api_core exceptions mapped onto the provider error taxonomy

Author: System Architect
Date: 2025-12-05
"""

import asyncio
import time
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from thread_digest.core.config.settings import Settings
from thread_digest.core.exceptions import (
    ConfigurationError,
    ProviderAPIError,
    ProviderAuthenticationError,
    ProviderNotAvailableError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from thread_digest.core.logging import get_logger
from thread_digest.llm.base_gateway import GatewayConfig, GenerationGateway

logger = get_logger(__name__)


class GeminiGateway(GenerationGateway):
    """
    Gemini-backed generation gateway.

    STAGE-GEMINI: Gemini calls
    """

    def __init__(self, config: GatewayConfig):
        if not config.api_key:
            raise ConfigurationError("GOOGLE_API_KEY is not configured", details={"gateway": config.name})

        super().__init__(config)

        # The SDK is configured process-wide; one key per service instance.
        genai.configure(api_key=config.api_key)
        self._model = genai.GenerativeModel(
            config.model,
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                temperature=config.temperature,
                max_output_tokens=config.max_output_tokens,
            ),
        )

        logger.info("Gemini gateway initialized", stage="GEMINI.0", model=config.model)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiGateway":
        llm = settings.llm
        return cls(
            GatewayConfig(
                name="gemini",
                api_key=llm.GOOGLE_API_KEY,
                model=llm.GEMINI_MODEL,
                temperature=llm.GEMINI_TEMPERATURE,
                max_output_tokens=llm.GEMINI_MAX_OUTPUT_TOKENS,
                max_messages_for_prompt=llm.MAX_MESSAGES_FOR_PROMPT,
            )
        )

    async def _generate_json(self, prompt: str) -> str | None:
        """
        STAGE-GEMINI.CALL: One generate_content call
        """
        try:
            response = await self._model.generate_content_async(prompt)

        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as auth_error:
            logger.error("Gemini authentication failed", stage="GEMINI.ERR", error=str(auth_error))
            raise ProviderAuthenticationError(
                message="Invalid Gemini API key", details={"gateway": self.name}
            ) from auth_error

        except google_exceptions.ResourceExhausted as rate_error:
            logger.warning("Gemini rate limit exceeded", stage="GEMINI.ERR", error=str(rate_error))
            raise ProviderRateLimitError(
                message="Gemini rate limit exceeded", details={"gateway": self.name}
            ) from rate_error

        except google_exceptions.DeadlineExceeded as timeout_error:
            logger.error("Gemini deadline exceeded", stage="GEMINI.ERR", error=str(timeout_error))
            raise ProviderTimeoutError(
                message="Gemini request timed out", details={"gateway": self.name}
            ) from timeout_error

        except google_exceptions.ServiceUnavailable as conn_error:
            logger.error("Gemini service unavailable", stage="GEMINI.ERR", error=str(conn_error))
            raise ProviderNotAvailableError(
                message="Gemini service unavailable", details={"gateway": self.name}
            ) from conn_error

        except google_exceptions.GoogleAPIError as e:
            logger.error("Gemini API error", stage="GEMINI.ERR", error=str(e))
            raise ProviderAPIError(
                message=f"Gemini API error: {e}", details={"gateway": self.name}
            ) from e

        try:
            return response.text
        except ValueError:
            # Raised by the SDK when the candidate has no text part (e.g. blocked)
            logger.warning("Gemini returned no text part", stage="GEMINI.EMPTY")
            return None

    async def health_check(self) -> dict[str, Any]:
        try:
            start_time = time.perf_counter()
            await asyncio.to_thread(lambda: next(iter(genai.list_models(page_size=1)), None))
            duration_ms = (time.perf_counter() - start_time) * 1000
            return {"status": "healthy", "latency_ms": round(duration_ms, 2), "gateway": self.name}
        except google_exceptions.GoogleAPIError as e:
            return {"status": "unhealthy", "error": str(e), "gateway": self.name}
