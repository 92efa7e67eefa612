"""
Generation Provider Exceptions

All exceptions raised by the generation gateway (Gemini). These always
propagate to the caller; they are never retried automatically.

Author: System Architect
Date: 2025-12-08
"""

from thread_digest.core.exceptions.base import DigestBaseError


class UpstreamGenerationError(DigestBaseError):
    """Base exception for generation gateway failures."""
    pass


class EmptyUpstreamResponseError(UpstreamGenerationError):
    """
    Raised when the model returns no usable payload.

    Common causes:
    - Empty response text
    - Response text that is not valid JSON
    - Response blocked by safety filters
    """
    pass


class ProviderTimeoutError(UpstreamGenerationError):
    """Raised when a generation call does not finish within its timeout."""
    pass


class ProviderAuthenticationError(UpstreamGenerationError):
    """
    Raised when provider authentication fails.

    Common causes:
    - Invalid or missing GOOGLE_API_KEY
    - Insufficient permissions
    """
    pass


class ProviderNotAvailableError(UpstreamGenerationError):
    """Raised when the provider service is unavailable."""
    pass


class ProviderRateLimitError(UpstreamGenerationError):
    """Raised when the provider rejects the call for quota reasons."""
    pass


class ProviderAPIError(UpstreamGenerationError):
    """
    Raised when the provider API returns any other error.

    Common causes:
    - Invalid request format
    - Unsupported model
    - Token limit exceeded
    """
    pass
