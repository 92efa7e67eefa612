"""
Exception Module

Structured exception hierarchy for the thread digest service.
All exceptions are organized by theme for better maintainability.

Module Structure:
-----------------
- **base.py**: DigestBaseError base class + ConfigurationError
- **cache.py**: Cache store exceptions (always absorbed by the stores)
- **content.py**: Slack content and installation exceptions
- **provider.py**: Generation gateway exceptions
- **validation.py**: Request and cache-key validation exceptions

Usage:
------
```python
from thread_digest.core.exceptions import EmptyContentError, InvalidKeyComponentError
from thread_digest.core.exceptions.provider import UpstreamGenerationError
```

Author: System Architect
Date: 2025-12-08
"""

from thread_digest.core.exceptions.base import ConfigurationError, DigestBaseError
from thread_digest.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
)
from thread_digest.core.exceptions.content import (
    ContentError,
    ContentSourceError,
    EmptyContentError,
    WorkspaceNotInstalledError,
)
from thread_digest.core.exceptions.provider import (
    EmptyUpstreamResponseError,
    ProviderAPIError,
    ProviderAuthenticationError,
    ProviderNotAvailableError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    UpstreamGenerationError,
)
from thread_digest.core.exceptions.validation import (
    InvalidKeyComponentError,
    ValidationError,
)

__all__ = [
    # Base
    "DigestBaseError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    # Content
    "ContentError",
    "ContentSourceError",
    "EmptyContentError",
    "WorkspaceNotInstalledError",
    # Provider
    "UpstreamGenerationError",
    "EmptyUpstreamResponseError",
    "ProviderTimeoutError",
    "ProviderAuthenticationError",
    "ProviderNotAvailableError",
    "ProviderRateLimitError",
    "ProviderAPIError",
    # Validation
    "ValidationError",
    "InvalidKeyComponentError",
]
