"""
Validation Exceptions

All exceptions related to request and cache-key validation.

Author: System Architect
Date: 2025-12-08
"""

from thread_digest.core.exceptions.base import DigestBaseError


class ValidationError(DigestBaseError):
    """
    Raised when request validation fails.

    This is the base class for all validation-related errors.
    """
    pass


class InvalidKeyComponentError(ValidationError):
    """
    Raised when a cache key component fails its grammar check.

    Example:
        raise InvalidKeyComponentError(
            "Invalid workspace_id",
            details={"component": "workspace_id", "value": "t123"}
        )
    """
    pass

