"""
Cache Key Codec

Derives the canonical summary cache key from
(workspace, channel, thread anchor, language) and parses it back.

Key format:
    "{workspace_id}:{scope_id}:{anchor_id}:{language}"
    e.g. "T0123ABCD9:C0123ABCD9:1700000000.000100:ja"

Injectivity:
    Slack IDs are upper-case alphanumerics, anchors are digits and a dot,
    languages are lower-case letters. ":" is legal in none of them, so two
    distinct tuples never serialize to the same string.

The same derive_key() is used on the probe and the write path, so a write is
always visible to the next probe with the same logical inputs.

Author: System Architect
Date: 2025-12-08
"""

import re
from typing import NamedTuple

from thread_digest.core.config.constants import (
    CACHE_KEY_DELIMITER,
    LOCAL_KEY_DELIMITER,
    SLACK_ID_PATTERN,
    SLACK_TS_PATTERN,
    SupportedLanguage,
)
from thread_digest.core.exceptions import InvalidKeyComponentError

_SLACK_ID_RE = re.compile(SLACK_ID_PATTERN)
_SLACK_TS_RE = re.compile(SLACK_TS_PATTERN)


class CacheKey(NamedTuple):
    """Decoded form of a canonical cache key."""

    workspace_id: str
    scope_id: str
    anchor_id: str
    language: SupportedLanguage

    def serialize(self) -> str:
        return CACHE_KEY_DELIMITER.join(
            (self.workspace_id, self.scope_id, self.anchor_id, self.language.value)
        )


def is_valid_slack_id(value: str | None) -> bool:
    """True for Slack team/channel IDs such as ``T0123ABCD9``."""
    return bool(value) and _SLACK_ID_RE.fullmatch(value) is not None


def is_valid_timestamp(value: str | None) -> bool:
    """True for Slack message timestamps such as ``1700000000.000100``."""
    return bool(value) and _SLACK_TS_RE.fullmatch(value) is not None


def _coerce_language(language: str | SupportedLanguage) -> SupportedLanguage:
    try:
        return SupportedLanguage(language)
    except ValueError:
        raise InvalidKeyComponentError(
            f"Unsupported language: {language!r}",
            details={"component": "language", "value": str(language)},
        )


def derive_key(
    workspace_id: str,
    scope_id: str,
    anchor_id: str,
    language: str | SupportedLanguage,
) -> str:
    """
    Build the canonical cache key.

    Args:
        workspace_id: Slack team ID
        scope_id: Slack channel ID
        anchor_id: Thread parent timestamp
        language: Target language code

    Returns:
        Canonical key string

    Raises:
        InvalidKeyComponentError: If any component fails its grammar
    """
    if not is_valid_slack_id(workspace_id):
        raise InvalidKeyComponentError(
            "Invalid workspace ID", details={"component": "workspace_id", "value": workspace_id}
        )
    if not is_valid_slack_id(scope_id):
        raise InvalidKeyComponentError(
            "Invalid channel ID", details={"component": "scope_id", "value": scope_id}
        )
    if not is_valid_timestamp(anchor_id):
        raise InvalidKeyComponentError(
            "Invalid thread timestamp", details={"component": "anchor_id", "value": anchor_id}
        )

    return CacheKey(workspace_id, scope_id, anchor_id, _coerce_language(language)).serialize()


def parse_key(key: str) -> CacheKey:
    """
    Inverse of derive_key().

    Raises:
        InvalidKeyComponentError: If the string is not a canonical key
    """
    parts = key.split(CACHE_KEY_DELIMITER) if isinstance(key, str) else []
    if len(parts) != 4:
        raise InvalidKeyComponentError("Malformed cache key", details={"key": key})

    workspace_id, scope_id, anchor_id, language = parts
    # Re-derive to run the same grammar checks
    canonical = derive_key(workspace_id, scope_id, anchor_id, language)
    if canonical != key:
        raise InvalidKeyComponentError("Malformed cache key", details={"key": key})

    return CacheKey(workspace_id, scope_id, anchor_id, SupportedLanguage(language))


def local_key(scope_id: str, anchor_id: str) -> str:
    """Key of the bounded local store: ``"{scope}-{anchor}"`` (no language)."""
    return f"{scope_id}{LOCAL_KEY_DELIMITER}{anchor_id}"
